"""Tests for domain events and event handling."""
from __future__ import annotations

import logging
from unittest.mock import Mock
from datetime import datetime

from modelcanvas.application.event_handlers import AuditLogHandler, register_event_handlers
from modelcanvas.domain.events import (
    DomainEvent, EntityAdded, EntityRemoved, EntityAssigned, ProjectImported,
    DomainEventPublisher, event_publisher
)


class TestDomainEvent:
    """Test base domain event functionality."""

    def test_defaults_filled_in(self):
        """Empty id and timestamp are generated."""
        event = EntityAdded(event_id="", timestamp=None, aggregate_id="e-1", name="User")

        assert event.event_id
        assert isinstance(event.timestamp, datetime)
        assert event.aggregate_id == "e-1"

    def test_custom_values_kept(self):
        stamp = datetime(2024, 1, 1, 12, 0, 0)
        event = DomainEvent(event_id="custom", timestamp=stamp, aggregate_id="x")

        assert event.event_id == "custom"
        assert event.timestamp == stamp


class TestDomainEventPublisher:
    """Test the singleton publisher."""

    def test_singleton(self):
        assert DomainEventPublisher() is event_publisher

    def test_publish_to_subscribers_of_type(self):
        handler = Mock()
        other = Mock()
        event_publisher.subscribe(EntityAdded, handler)
        event_publisher.subscribe(EntityRemoved, other)

        event = EntityAdded(event_id="", timestamp=None, aggregate_id="e-1", name="User")
        event_publisher.publish(event)

        handler.assert_called_once_with(event)
        other.assert_not_called()

    def test_handler_failure_does_not_propagate(self):
        failing = Mock(side_effect=RuntimeError("boom"))
        after = Mock()
        event_publisher.subscribe(EntityAdded, failing)
        event_publisher.subscribe(EntityAdded, after)

        event_publisher.publish(EntityAdded(event_id="", timestamp=None, aggregate_id="e", name="X"))

        after.assert_called_once()

    def test_clear_subscribers(self):
        handler = Mock()
        event_publisher.subscribe(EntityAdded, handler)
        event_publisher.clear_subscribers()

        event_publisher.publish(EntityAdded(event_id="", timestamp=None, aggregate_id="e", name="X"))

        handler.assert_not_called()


class TestAuditLogHandler:
    """Test audit log output."""

    def test_entity_removed_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            AuditLogHandler().handle_entity_removed(EntityRemoved(
                event_id="", timestamp=None, aggregate_id="e-1", name="User", removed_relation_count=2
            ))

        assert "[AUDIT] Entity removed: e-1 - User (2 relations cascaded)" in caplog.text

    def test_unassignment_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            AuditLogHandler().handle_entity_assigned(EntityAssigned(
                event_id="", timestamp=None, aggregate_id="e-1", entity_id="e-1", service_id=None
            ))

        assert "Entity e-1 unassigned" in caplog.text

    def test_registered_handlers_log_session_events(self, session, caplog):
        register_event_handlers()
        with caplog.at_level(logging.INFO):
            session.add_entity("User")

        assert "[AUDIT] Entity added" in caplog.text

    def test_project_imported_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            AuditLogHandler().handle_project_imported(ProjectImported(
                event_id="", timestamp=None, aggregate_id="shop", entity_count=2, relation_count=1, service_count=0
            ))

        assert "2 entities, 1 relations, 0 services" in caplog.text
