"""In-memory designer stores, each the sole writer of its collection."""
from .cascade import EntityRemovalCascade
from .entity_store import EntityStore
from .history_store import HistoryPhase, HistoryStore
from .layout_store import LayoutStore
from .relation_store import RelationStore
from .service_connection_store import ServiceConnectionStore
from .service_store import ServiceStore

__all__ = [
    "EntityStore",
    "RelationStore",
    "ServiceStore",
    "ServiceConnectionStore",
    "LayoutStore",
    "HistoryStore",
    "HistoryPhase",
    "EntityRemovalCascade",
]
