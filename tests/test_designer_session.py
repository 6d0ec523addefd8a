"""Tests for designer session operations and their settle step."""
import pytest
from unittest.mock import Mock

from modelcanvas.domain.errors import ConflictError
from modelcanvas.domain.events import (
    EntityAssigned,
    EntityRemoved,
    HistoryRestored,
    RelationAdded,
    ServiceRemoved,
    event_publisher,
)


def relate(session, source, target):
    return session.add_relation({"source_entity_id": source["id"], "target_entity_id": target["id"]})


class TestEntityOperations:
    """Test entity and field operations through the session."""

    def test_new_entities_fill_the_grid(self, session):
        positions = [session.add_entity(f"E{i}")["position"] for i in range(5)]

        assert positions[0] == {"x": 50, "y": 50}
        assert positions[1] == {"x": 330, "y": 50}
        assert positions[4] == {"x": 50, "y": 250}

    def test_new_entity_becomes_selection(self, session):
        entity = session.add_entity("OrderItem")

        assert session.entities.selected_entity_id == entity["id"]
        assert entity["table_name"] == "order_items"

    def test_remove_entity_cascades(self, session):
        user = session.add_entity("User")
        order = session.add_entity("Order")
        relate(session, order, user)
        service = session.add_service("accounts")
        session.assign_entity_to_service(user["id"], service["id"])
        session.toggle_entity_expanded(user["id"])

        session.remove_entity(user["id"])

        assert session.relations.relations == []
        assert session.services.get_service(service["id"])["entity_ids"] == []
        assert session.layout.expanded_entity_ids == set()

    def test_remove_unknown_entity_is_silent(self, session):
        assert session.remove_entity("missing") is False

    def test_delete_selected_entities(self, session):
        first = session.add_entity("A")
        second = session.add_entity("B")
        third = session.add_entity("C")
        session.toggle_entity_selection(first["id"])
        session.toggle_entity_selection(third["id"])

        deleted = session.delete_selected_entities()

        assert sorted(deleted) == sorted([first["id"], third["id"]])
        assert [e["id"] for e in session.entities.entities] == [second["id"]]

    def test_delete_selected_includes_primary(self, session):
        entity = session.add_entity("A")

        assert session.delete_selected_entities() == [entity["id"]]

    def test_relation_to_unknown_entity_is_not_stored(self, session):
        user = session.add_entity("User")

        created = session.add_relation({"source_entity_id": user["id"], "target_entity_id": "ghost"})

        assert created is None
        assert session.relations.relations == []

    def test_duplicate_field_name_conflicts(self, session):
        entity = session.add_entity("User")
        session.add_field(entity["id"], {"name": "firstName"})

        with pytest.raises(ConflictError):
            session.add_field(entity["id"], {"name": "first_name"})

    def test_field_rename_follows_column(self, session):
        entity = session.add_entity("User")
        field = session.add_field(entity["id"], {"name": "firstName"})

        updated = session.update_field(entity["id"], field["id"], {"name": "givenName"})

        assert updated["column_name"] == "given_name"


class TestServiceOperations:
    """Test service operations through the session."""

    def test_add_service_clears_entity_selection(self, session):
        session.add_entity("User")
        service = session.add_service("accounts")

        assert session.entities.selected_entity_id is None
        assert session.services.selected_service_id == service["id"]

    def test_services_get_distinct_colors_and_ports(self, session):
        first = session.add_service("a")
        second = session.add_service("b")

        assert first["color"] != second["color"]
        assert (first["config"]["port"], second["config"]["port"]) == (8080, 8081)

    def test_reassignment_keeps_single_owner(self, session):
        entity = session.add_entity("User")
        first = session.add_service("a")
        second = session.add_service("b")

        session.assign_entity_to_service(entity["id"], first["id"])
        session.assign_entity_to_service(entity["id"], second["id"])

        owners = [s["id"] for s in session.services.services if entity["id"] in s["entity_ids"]]
        assert owners == [second["id"]]

    def test_unknown_entities_are_not_assigned(self, session):
        service = session.add_service("accounts")
        entity = session.add_entity("User")

        session.assign_entities_to_service(["ghost", entity["id"]], service["id"])
        session.assign_entity_to_service("ghost", service["id"])

        assert session.services.get_service(service["id"])["entity_ids"] == [entity["id"]]

    def test_assignment_to_unknown_service_is_silent(self, session):
        entity = session.add_entity("User")

        session.assign_entity_to_service(entity["id"], "missing")

        assert session.services.service_for_entity(entity["id"]) is None

    def test_remove_service_drops_connections(self, session):
        first = session.add_service("a")
        second = session.add_service("b")
        session.add_connection({"source_service_id": first["id"], "target_service_id": second["id"]})

        session.remove_service(first["id"])

        assert session.connections.connections == []

    def test_clear_services(self, session):
        first = session.add_service("a")
        second = session.add_service("b")
        session.add_connection({"source_service_id": first["id"], "target_service_id": second["id"]})

        session.clear_services()

        assert session.services.services == []
        assert session.connections.connections == []

    def test_service_target_config(self, session):
        service = session.add_service("a")

        session.set_service_target_config(service["id"], {"language": "kotlin"})
        assert session.services.get_service(service["id"])["config"]["target_config"] == {"language": "kotlin"}

        session.set_service_target_config(service["id"], None)
        assert session.services.get_service(service["id"])["config"]["target_config"] is None


class TestHistory:
    """Test undo and redo through the session."""

    def test_undo_redo_entities(self, session):
        session.add_entity("User")
        session.add_entity("Order")

        assert session.undo() is True
        assert [e["name"] for e in session.entities.entities] == ["User"]
        assert session.history.can_redo

        assert session.redo() is True
        assert [e["name"] for e in session.entities.entities] == ["User", "Order"]
        assert not session.history.can_redo

    def test_undo_restores_cascaded_relations(self, session):
        user = session.add_entity("User")
        order = session.add_entity("Order")
        relation = relate(session, order, user)
        session.remove_entity(user["id"])

        session.undo()

        assert session.relations.relations == [relation]
        assert session.entities.get_entity(user["id"]) is not None

    def test_undo_strips_service_membership(self, session):
        service = session.add_service("accounts")
        entity = session.add_entity("User")
        session.assign_entity_to_service(entity["id"], service["id"])

        session.undo()

        assert session.entities.entities == []
        assert session.services.get_service(service["id"])["entity_ids"] == []

    def test_restore_is_not_recorded(self, session):
        session.add_entity("User")
        session.add_entity("Order")
        past = len(session.history.past)

        session.undo()
        session.redo()

        assert len(session.history.past) == past
        assert session.history.is_time_travel is False

    def test_new_change_after_undo_drops_redo(self, session):
        session.add_entity("User")
        session.add_entity("Order")
        session.undo()

        session.add_entity("Product")

        assert not session.history.can_redo
        assert [e["name"] for e in session.entities.entities] == ["User", "Product"]

    def test_selection_changes_are_not_history(self, session):
        entity = session.add_entity("User")
        past = len(session.history.past)

        session.select_entity(None)
        session.select_entity(entity["id"])

        assert len(session.history.past) == past

    def test_one_undo_restores_multi_delete(self, session):
        names = ["A", "B", "C"]
        for entity in [session.add_entity(name) for name in names]:
            session.toggle_entity_selection(entity["id"])
        past = len(session.history.past)

        assert len(session.delete_selected_entities()) == 3
        assert len(session.history.past) == past + 1

        session.undo()

        assert [e["name"] for e in session.entities.entities] == names

    def test_failed_restore_resumes_recording(self, session):
        session.add_entity("User")
        session.add_entity("Order")
        session.canvas.sync = Mock(side_effect=RuntimeError("sync failed"))

        with pytest.raises(RuntimeError):
            session.undo()

        assert session.history.is_time_travel is False
        del session.canvas.sync
        session.add_entity("Product")
        assert [e["name"] for e in session.history.current["entities"]] == ["User", "Product"]

    def test_nothing_to_undo(self, session):
        assert session.undo() is False
        assert session.redo() is False


class TestEvents:
    """Test the audit events the session publishes."""

    def test_entity_removed_event(self, session):
        handler = Mock()
        event_publisher.subscribe(EntityRemoved, handler)
        user = session.add_entity("User")
        order = session.add_entity("Order")
        relate(session, order, user)

        session.remove_entity(user["id"])

        event = handler.call_args[0][0]
        assert event.aggregate_id == user["id"]
        assert event.removed_relation_count == 1

    def test_relation_and_service_events(self, session):
        relation_handler = Mock()
        service_handler = Mock()
        event_publisher.subscribe(RelationAdded, relation_handler)
        event_publisher.subscribe(ServiceRemoved, service_handler)

        user = session.add_entity("User")
        relate(session, user, user)
        service = session.add_service("accounts")
        session.remove_service(service["id"])

        assert relation_handler.call_args[0][0].relation_type == "ManyToOne"
        assert service_handler.call_args[0][0].name == "accounts"

    def test_assignment_events(self, both_view_session):
        handler = Mock()
        event_publisher.subscribe(EntityAssigned, handler)
        service = both_view_session.add_service("accounts")
        entity = both_view_session.add_entity("User")
        both_view_session.mark_rendered()

        both_view_session.end_drag(entity["id"], {"x": 60, "y": 60})
        both_view_session.remove_entity_from_service(entity["id"], service["id"])

        assert [call[0][0].service_id for call in handler.call_args_list] == [service["id"], None]

    def test_history_event(self, session):
        handler = Mock()
        event_publisher.subscribe(HistoryRestored, handler)
        session.add_entity("User")

        session.undo()

        assert handler.call_args[0][0].direction == "undo"


class TestView:
    """Test the composed read model."""

    def test_view_reflects_stores(self, session):
        entity = session.add_entity("User")
        session.toggle_entity_expanded(entity["id"])

        view = session.view()

        assert view.entities == session.entities.entities
        assert view.selected_entity_id == entity["id"]
        assert view.expanded_entity_ids == [entity["id"]]
        assert view.canvas_view == "entities"
        assert view.can_undo is True

    def test_auto_layout_positions_entities(self, session):
        user = session.add_entity("User")
        order = session.add_entity("Order")
        relate(session, order, user)
        session.set_layout_preference("horizontal")

        positions = session.auto_layout()

        assert positions[order["id"]]["x"] < positions[user["id"]]["x"]
        assert session.entities.get_entity(user["id"])["position"] == positions[user["id"]]

    def test_auto_layout_in_services_view_places_services(self, session):
        accounts = session.add_service("accounts")
        orders = session.add_service("orders")
        session.add_connection({"source_service_id": orders["id"], "target_service_id": accounts["id"]})
        entity = session.add_entity("User")
        before = session.entities.get_entity(entity["id"])["position"]
        session.set_canvas_view("services")
        session.set_layout_preference("horizontal")

        positions = session.auto_layout()

        assert set(positions) == {accounts["id"], orders["id"]}
        assert positions[orders["id"]]["x"] < positions[accounts["id"]]["x"]
        assert session.services.get_service(accounts["id"])["position"] == positions[accounts["id"]]
        assert session.entities.get_entity(entity["id"])["position"] == before

    def test_unknown_layout_preference_rejected(self, session):
        with pytest.raises(ValueError):
            session.set_layout_preference("diagonal")
