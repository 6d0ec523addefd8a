"""
Tests for the HTTP API.
"""
import json
from concurrent.futures import ThreadPoolExecutor


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_session_health(self, client):
        client.post("/entities", json={"name": "User"})

        data = client.get("/health/session").json()

        assert data["entities"] == 1
        assert data["history"]["phase"] == "recording"


class TestEntityEndpoints:
    """Test entity and field endpoints."""

    def test_create_and_get(self, client):
        response = client.post("/entities", json={"name": "User"})
        assert response.status_code == 201
        entity = response.json()

        fetched = client.get(f"/entities/{entity['id']}").json()

        assert fetched["name"] == "User"
        assert fetched["table_name"] == "users"

    def test_blank_name_rejected(self, client):
        assert client.post("/entities", json={"name": ""}).status_code == 422

    def test_whitespace_name_rejected(self, client):
        assert client.post("/entities", json={"name": "   "}).status_code == 422
        assert client.post("/services", json={"name": " "}).status_code == 422
        assert client.get("/entities").json() == []

    def test_name_is_trimmed(self, client):
        entity = client.post("/entities", json={"name": "  User "}).json()

        assert entity["name"] == "User"

    def test_unknown_validation_type_rejected(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        response = client.post(
            f"/entities/{entity['id']}/fields",
            json={"name": "email", "validations": [{"type": "Bogus"}]},
        )

        assert response.status_code == 422
        assert client.get("/project/export").status_code == 200

    def test_accepted_edits_stay_exportable(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()
        client.post(
            f"/entities/{entity['id']}/fields",
            json={"name": "email", "validations": [{"type": "Email"}, {"type": "Size", "value": 5}]},
        )
        client.patch(f"/entities/{entity['id']}", json={"config": {"custom_endpoint": "/people"}})
        service = client.post("/services", json={"name": "accounts"}).json()
        client.patch(f"/services/{service['id']}", json={"config": {"port": 9000, "database_type": "mysql"}})

        exported = client.get("/project/export")

        assert exported.status_code == 200
        document = exported.json()
        assert document["entities"][0]["config"]["customEndpoint"] == "/people"
        assert [v["type"] for v in document["entities"][0]["fields"][0]["validations"]] == ["Email", "Size"]
        assert document["services"][0]["config"]["port"] == 9000

    def test_unknown_entity_404(self, client):
        response = client.get("/entities/missing")

        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_update_entity_merges_config(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        updated = client.patch(
            f"/entities/{entity['id']}",
            json={"description": "People", "config": {"enable_caching": False}},
        ).json()

        assert updated["description"] == "People"
        assert updated["config"]["enable_caching"] is False
        assert updated["config"]["generate_controller"] is True

    def test_field_lifecycle(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        field = client.post(f"/entities/{entity['id']}/fields", json={"name": "email", "nullable": False})
        assert field.status_code == 201
        field_id = field.json()["id"]

        conflict = client.post(f"/entities/{entity['id']}/fields", json={"name": "Email"})
        assert conflict.status_code == 409

        renamed = client.patch(f"/entities/{entity['id']}/fields/{field_id}", json={"name": "mail"})
        assert renamed.json()["column_name"] == "mail"

        assert client.delete(f"/entities/{entity['id']}/fields/{field_id}").status_code == 200
        assert client.delete(f"/entities/{entity['id']}/fields/{field_id}").status_code == 404

    def test_delete_selected(self, client):
        first = client.post("/entities", json={"name": "A"}).json()
        client.post("/entities", json={"name": "B"})
        client.post("/entities/selection", json={"entity_id": first["id"]})

        response = client.post("/entities/delete-selected")

        assert response.json()["deleted_ids"] == [first["id"]]
        assert [e["name"] for e in client.get("/entities").json()] == ["B"]


class TestRelationEndpoints:
    """Test relation endpoints."""

    def test_relation_to_missing_entity_rejected(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        response = client.post("/relations", json={"source_entity_id": entity["id"], "target_entity_id": "ghost"})

        assert response.status_code == 400

    def test_delete_entity_cascades_relations(self, client):
        user = client.post("/entities", json={"name": "User"}).json()
        order = client.post("/entities", json={"name": "Order"}).json()
        relation = client.post(
            "/relations",
            json={"source_entity_id": order["id"], "target_entity_id": user["id"], "source_field_name": "user"},
        ).json()

        client.delete(f"/entities/{user['id']}")

        assert client.get(f"/relations/{relation['id']}").status_code == 404

    def test_update_relation_merges_foreign_key(self, client):
        user = client.post("/entities", json={"name": "User"}).json()
        order = client.post("/entities", json={"name": "Order"}).json()
        relation = client.post(
            "/relations", json={"source_entity_id": order["id"], "target_entity_id": user["id"]}
        ).json()

        updated = client.patch(
            f"/relations/{relation['id']}",
            json={"type": "OneToOne", "foreign_key": {"on_delete": "CASCADE"}},
        ).json()

        assert updated["type"] == "OneToOne"
        assert updated["foreign_key"]["on_delete"] == "CASCADE"
        assert updated["foreign_key"]["nullable"] is True

    def test_unknown_foreign_key_action_rejected(self, client):
        user = client.post("/entities", json={"name": "User"}).json()
        order = client.post("/entities", json={"name": "Order"}).json()

        response = client.post(
            "/relations",
            json={
                "source_entity_id": order["id"],
                "target_entity_id": user["id"],
                "foreign_key": {"on_delete": "EXPLODE"},
            },
        )

        assert response.status_code == 422
        assert client.get("/relations").json() == []
        assert client.get("/project/export").status_code == 200


class TestServiceEndpoints:
    """Test service and connection endpoints."""

    def test_assignment(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()
        first = client.post("/services", json={"name": "a"}).json()
        second = client.post("/services", json={"name": "b"}).json()

        client.post(f"/services/{first['id']}/entities", json={"entity_ids": [entity["id"]]})
        moved = client.post(f"/services/{second['id']}/entities", json={"entity_ids": [entity["id"]]}).json()

        assert moved["entity_ids"] == [entity["id"]]
        assert client.get(f"/services/{first['id']}").json()["entity_ids"] == []

        cleared = client.delete(f"/services/{second['id']}/entities/{entity['id']}").json()
        assert cleared["entity_ids"] == []

    def test_assign_unknown_entity_404(self, client):
        service = client.post("/services", json={"name": "a"}).json()

        response = client.post(f"/services/{service['id']}/entities", json={"entity_ids": ["ghost"]})

        assert response.status_code == 404

    def test_out_of_range_port_rejected(self, client):
        service = client.post("/services", json={"name": "a"}).json()

        response = client.patch(f"/services/{service['id']}", json={"config": {"port": 70000}})

        assert response.status_code == 422
        assert client.get("/project/export").status_code == 200

    def test_concurrent_assignments_are_not_lost(self, client):
        service = client.post("/services", json={"name": "a"}).json()
        entity_ids = [client.post("/entities", json={"name": f"E{i}"}).json()["id"] for i in range(40)]

        def assign(entity_id):
            return client.post(f"/services/{service['id']}/entities", json={"entity_ids": [entity_id]})

        # One event loop for every request, as under uvicorn
        with client, ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(assign, entity_ids))

        assert all(response.status_code == 200 for response in responses)
        assigned = client.get(f"/services/{service['id']}").json()["entity_ids"]
        assert sorted(assigned) == sorted(entity_ids)

    def test_service_target_override(self, client):
        service = client.post("/services", json={"name": "a"}).json()

        updated = client.put(f"/services/{service['id']}/target", json={"target_config": {"language": "go"}}).json()

        assert updated["config"]["target_config"] == {"language": "go"}

    def test_connection_lifecycle(self, client):
        first = client.post("/services", json={"name": "a"}).json()
        second = client.post("/services", json={"name": "b"}).json()

        created = client.post(
            "/connections",
            json={"source_service_id": first["id"], "target_service_id": second["id"], "communication_type": "Kafka"},
        )
        assert created.status_code == 201
        connection = created.json()
        assert connection["config"]["retry_attempts"] == 3

        updated = client.patch(f"/connections/{connection['id']}", json={"config": {"timeout": 1000}}).json()
        assert updated["config"]["timeout"] == 1000
        assert updated["config"]["retry_enabled"] is True

        client.delete(f"/services/{first['id']}")
        assert client.get("/connections").json() == []

    def test_connection_to_missing_service_rejected(self, client):
        service = client.post("/services", json={"name": "a"}).json()

        response = client.post("/connections", json={"source_service_id": service["id"], "target_service_id": "x"})

        assert response.status_code == 400


class TestHistoryEndpoints:
    """Test undo and redo."""

    def test_undo_redo(self, client):
        client.post("/entities", json={"name": "User"})
        client.post("/entities", json={"name": "Order"})

        undo = client.post("/history/undo").json()
        assert undo == {"applied": True, "can_undo": True, "can_redo": True}
        assert len(client.get("/entities").json()) == 1

        redo = client.post("/history/redo").json()
        assert redo["can_redo"] is False
        assert len(client.get("/entities").json()) == 2


class TestProjectEndpoints:
    """Test project state, import and export."""

    def test_state(self, client):
        client.post("/entities", json={"name": "User"})

        state = client.get("/project").json()

        assert state["project"]["name"] == "my-api"
        assert len(state["entities"]) == 1
        assert state["canvas_view"] == "entities"
        assert state["can_undo"] is True

    def test_import_export(self, client, sample_document):
        response = client.post("/project/import", content=json.dumps(sample_document))

        assert response.status_code == 200
        assert response.json()["entity_count"] == 2

        exported = client.get("/project/export")
        assert exported.headers["content-type"].startswith("application/json")
        assert [e["id"] for e in exported.json()["entities"]] == ["user-1", "order-1"]

    def test_invalid_import_400(self, client):
        response = client.post("/project/import", content="{oops")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON format"

    def test_non_utf8_import_400(self, client, sample_document):
        body = json.dumps(sample_document).encode("utf-8").replace(b"Placed orders", b"Placed \xff orders")

        response = client.post("/project/import", content=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON format"
        assert client.get("/entities").json() == []

    def test_validate_only(self, client, sample_document):
        sample_document["relations"][0]["targetEntityId"] = "ghost"

        response = client.post("/project/validate", content=json.dumps(sample_document))

        assert response.status_code == 400
        assert "relations.0.targetEntityId" in response.json()["detail"]
        assert client.get("/entities").json() == []

    def test_update_project_and_target(self, client):
        project = client.put("/project", json={"name": "shop"}).json()
        target = client.put("/project/target", json={"framework": "micronaut"}).json()

        assert project["name"] == "shop"
        assert target["framework"] == "micronaut"

    def test_reset(self, client):
        client.post("/entities", json={"name": "User"})

        client.post("/project/reset")

        assert client.get("/entities").json() == []


class TestCanvasEndpoints:
    """Test renderer-facing canvas endpoints."""

    def test_canvas_nodes(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        canvas = client.get("/canvas").json()

        assert [node["id"] for node in canvas["nodes"]] == [entity["id"]]
        assert canvas["initialized"] is False

        client.post("/canvas/rendered")
        assert client.get("/canvas").json()["initialized"] is True

    def test_position_change(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        canvas = client.post(
            "/canvas/changes",
            json={"changes": [{"type": "position", "id": entity["id"], "position": {"x": 400, "y": 120}}]},
        ).json()

        assert canvas["nodes"][0]["position"] == {"x": 400, "y": 120}
        assert client.get(f"/entities/{entity['id']}").json()["position"] == {"x": 400, "y": 120}

    def test_drag_and_drop_into_service(self, client):
        service = client.post("/services", json={"name": "accounts"}).json()
        entity = client.post("/entities", json={"name": "User"}).json()
        client.put("/canvas/view", json={"view": "both"})
        client.post("/canvas/rendered")

        over = client.post("/canvas/drag", json={"node_id": entity["id"], "position": {"x": 60, "y": 60}}).json()
        dropped = client.post(
            "/canvas/drag/stop", json={"node_id": entity["id"], "position": {"x": 60, "y": 60}}
        ).json()

        assert over["service_id"] == service["id"]
        assert dropped["service_id"] == service["id"]
        nodes = {node["id"]: node for node in client.get("/canvas").json()["nodes"]}
        assert nodes[entity["id"]]["parent_id"] == service["id"]

    def test_click(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()
        client.post("/canvas/click", json={"node_id": None})
        assert client.get("/project").json()["selected_entity_id"] is None

        client.post("/canvas/click", json={"node_id": entity["id"]})
        assert client.get("/project").json()["selected_entity_id"] == entity["id"]

    def test_invalid_view_422(self, client):
        assert client.put("/canvas/view", json={"view": "grid"}).status_code == 422

    def test_invalid_layout_preference_400(self, client):
        assert client.put("/canvas/layout", json={"preference": "diagonal"}).status_code == 400

    def test_apply_layout(self, client):
        user = client.post("/entities", json={"name": "User"}).json()
        order = client.post("/entities", json={"name": "Order"}).json()
        client.post("/relations", json={"source_entity_id": order["id"], "target_entity_id": user["id"]})

        positions = client.post("/canvas/layout/apply").json()["positions"]

        assert set(positions) == {user["id"], order["id"]}

    def test_filter_and_expand(self, client):
        entity = client.post("/entities", json={"name": "User"}).json()

        client.post(f"/canvas/entities/{entity['id']}/expand")
        client.put("/canvas/filter", json={"entity_filter": "unassigned"})

        state = client.get("/project").json()
        assert state["expanded_entity_ids"] == [entity["id"]]
        assert state["entity_filter"] == "unassigned"
