"""Domain events for the audit trail of designer changes.

Events are a side channel: cross-store consistency is handled by the stores'
removal listeners, never by subscribers here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for all domain events."""
    event_id: str
    timestamp: datetime
    aggregate_id: str

    def __post_init__(self):
        if not self.event_id:
            object.__setattr__(self, 'event_id', str(uuid4()))
        if not self.timestamp:
            object.__setattr__(self, 'timestamp', datetime.now())


@dataclass
class EntityAdded(DomainEvent):
    """Raised when an entity is placed on the canvas."""
    name: str


@dataclass
class EntityRemoved(DomainEvent):
    """Raised after an entity and everything referencing it is gone."""
    name: str
    removed_relation_count: int


@dataclass
class RelationAdded(DomainEvent):
    """Raised when a relation is drawn between two entities."""
    relation_type: str
    source_entity_id: str
    target_entity_id: str


@dataclass
class RelationRemoved(DomainEvent):
    """Raised when a relation is deleted directly."""


@dataclass
class ServiceAdded(DomainEvent):
    """Raised when a service container is created."""
    name: str
    color: str


@dataclass
class ServiceRemoved(DomainEvent):
    """Raised after a service and its connections are gone."""
    name: str


@dataclass
class EntityAssigned(DomainEvent):
    """Raised when an entity moves into (or out of) a service."""
    entity_id: str
    service_id: str | None


@dataclass
class ProjectImported(DomainEvent):
    """Raised after a project document replaced every store."""
    entity_count: int
    relation_count: int
    service_count: int


@dataclass
class ProjectReset(DomainEvent):
    """Raised after the designer was reset to an empty project."""


@dataclass
class HistoryRestored(DomainEvent):
    """Raised after an undo or redo was applied."""
    direction: str


class DomainEventPublisher:
    """Singleton publisher for domain events."""

    _instance: DomainEventPublisher | None = None
    _subscribers: Dict[type, List[Callable[[DomainEvent], None]]]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
        return cls._instance

    def subscribe(self, event_type: type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        event_type = type(event)
        if event_type in self._subscribers:
            for handler in self._subscribers[event_type]:
                try:
                    handler(event)
                except Exception:
                    # Log error but don't fail the main operation
                    logger.exception(f"Event handler error for {event_type.__name__}")

    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers = {}


# Singleton instance
event_publisher = DomainEventPublisher()
