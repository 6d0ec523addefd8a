"""
Test configuration and fixtures for modelcanvas tests.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock

from modelcanvas.main import app
from modelcanvas.config import Settings
from modelcanvas.dependencies import build_designer_session, get_designer_session
from modelcanvas.domain.events import event_publisher
from modelcanvas.stores import (
    EntityRemovalCascade,
    EntityStore,
    HistoryStore,
    LayoutStore,
    RelationStore,
    ServiceConnectionStore,
    ServiceStore,
)


@pytest.fixture(autouse=True)
def clean_event_publisher():
    """Subscribers registered by one test must not leak into the next."""
    event_publisher.clear_subscribers()
    yield
    event_publisher.clear_subscribers()


@pytest.fixture
def test_settings():
    """Settings with the default grid and history limits."""
    return Settings(MAX_HISTORY_SIZE=50, DEFAULT_CANVAS_VIEW="entities")


@pytest.fixture
def entity_store():
    return EntityStore()


@pytest.fixture
def relation_store():
    return RelationStore()


@pytest.fixture
def service_store():
    return ServiceStore()


@pytest.fixture
def connection_store():
    return ServiceConnectionStore()


@pytest.fixture
def layout_store(entity_store, service_store):
    return LayoutStore(entity_store, service_store)


@pytest.fixture
def history_store():
    return HistoryStore()


@pytest.fixture
def wired_stores(entity_store, relation_store, service_store, connection_store, layout_store):
    """Stores wired the same way the application assembles them."""
    entity_store.set_removal_listener(EntityRemovalCascade(relation_store, service_store, layout_store))
    entity_store.set_replacement_listener(layout_store)
    service_store.set_removal_listener(connection_store)
    return {
        "entities": entity_store,
        "relations": relation_store,
        "services": service_store,
        "connections": connection_store,
        "layout": layout_store,
    }


@pytest.fixture
def session(test_settings):
    """A fully assembled designer session."""
    return build_designer_session(test_settings)


@pytest.fixture
def both_view_session(session):
    """Session showing services with their entities nested inside."""
    session.set_canvas_view("both")
    session.mark_rendered()
    return session


@pytest.fixture
def removal_listener():
    """Mock removal listener for store wiring tests."""
    return Mock(spec=["notify_removed"])


@pytest.fixture
def client(session):
    """Create test client bound to a fresh designer session."""
    app.dependency_overrides[get_designer_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_document():
    """A valid exported project document (camelCase keys)."""
    return {
        "project": {
            "name": "shop-api",
            "description": "Online shop",
            "groupId": "com.example",
            "artifactId": "shop-api",
            "packageName": "com.example.shop",
            "javaVersion": "21",
            "target": {"language": "java", "framework": "spring-boot"},
            "features": {"swagger": True, "softDelete": False, "auditing": True, "caching": True, "docker": True},
            "database": {"type": "postgresql", "generateMigrations": True},
        },
        "entities": [
            {
                "id": "user-1",
                "name": "User",
                "tableName": "users",
                "position": {"x": 50, "y": 50},
                "fields": [
                    {
                        "id": "f-1",
                        "name": "email",
                        "columnName": "email",
                        "type": "String",
                        "nullable": False,
                        "unique": True,
                        "validations": [{"type": "Email", "message": "must be an email"}],
                    }
                ],
                "config": {"generateController": True, "generateService": True, "enableCaching": True},
            },
            {
                "id": "order-1",
                "name": "Order",
                "tableName": "orders",
                "description": "Placed orders",
                "position": {"x": 330, "y": 50},
                "fields": [],
                "config": {"generateController": True, "generateService": False, "enableCaching": False},
            },
        ],
        "relations": [
            {
                "id": "rel-1",
                "type": "ManyToOne",
                "sourceEntityId": "order-1",
                "sourceFieldName": "user",
                "targetEntityId": "user-1",
                "foreignKey": {
                    "columnName": "user_id",
                    "nullable": False,
                    "onDelete": "CASCADE",
                    "onUpdate": "NO_ACTION",
                },
                "bidirectional": False,
                "fetchType": "LAZY",
                "cascade": [],
            }
        ],
        "services": [
            {
                "id": "svc-1",
                "name": "accounts",
                "description": "",
                "color": "#228be6",
                "position": {"x": 50, "y": 50},
                "width": 400,
                "height": 300,
                "entityIds": ["user-1"],
                "config": {"port": 8080, "contextPath": "/api"},
            },
            {
                "id": "svc-2",
                "name": "orders",
                "description": "",
                "color": "#40c057",
                "position": {"x": 500, "y": 50},
                "width": 400,
                "height": 300,
                "entityIds": ["order-1"],
                "config": {"port": 8081, "contextPath": "/api"},
            },
        ],
        "serviceConnections": [
            {
                "id": "conn-1",
                "sourceServiceId": "svc-2",
                "targetServiceId": "svc-1",
                "communicationType": "REST",
                "config": {"timeout": 5000},
            }
        ],
    }
