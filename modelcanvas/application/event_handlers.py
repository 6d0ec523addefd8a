"""Event handlers for domain events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modelcanvas.domain.events import (
        EntityAdded,
        EntityRemoved,
        RelationAdded,
        RelationRemoved,
        ServiceAdded,
        ServiceRemoved,
        EntityAssigned,
        ProjectImported,
        ProjectReset,
        HistoryRestored,
    )

logger = logging.getLogger(__name__)


class AuditLogHandler:
    """Logs all domain events for audit trail."""

    def handle_entity_added(self, event: EntityAdded) -> None:
        logger.info(f"[AUDIT] Entity added: {event.aggregate_id} - {event.name}")

    def handle_entity_removed(self, event: EntityRemoved) -> None:
        logger.info(
            f"[AUDIT] Entity removed: {event.aggregate_id} - {event.name} "
            f"({event.removed_relation_count} relations cascaded)"
        )

    def handle_relation_added(self, event: RelationAdded) -> None:
        logger.info(
            f"[AUDIT] Relation added: {event.aggregate_id} ({event.relation_type}) "
            f"{event.source_entity_id} -> {event.target_entity_id}"
        )

    def handle_relation_removed(self, event: RelationRemoved) -> None:
        logger.info(f"[AUDIT] Relation removed: {event.aggregate_id}")

    def handle_service_added(self, event: ServiceAdded) -> None:
        logger.info(f"[AUDIT] Service added: {event.aggregate_id} - {event.name} ({event.color})")

    def handle_service_removed(self, event: ServiceRemoved) -> None:
        logger.info(f"[AUDIT] Service removed: {event.aggregate_id} - {event.name}")

    def handle_entity_assigned(self, event: EntityAssigned) -> None:
        if event.service_id is None:
            logger.info(f"[AUDIT] Entity {event.entity_id} unassigned")
        else:
            logger.info(f"[AUDIT] Entity {event.entity_id} assigned to service {event.service_id}")

    def handle_project_imported(self, event: ProjectImported) -> None:
        logger.info(
            f"[AUDIT] Project imported: {event.aggregate_id} - {event.entity_count} entities, "
            f"{event.relation_count} relations, {event.service_count} services"
        )

    def handle_project_reset(self, event: ProjectReset) -> None:
        logger.info(f"[AUDIT] Project reset: {event.aggregate_id}")

    def handle_history_restored(self, event: HistoryRestored) -> None:
        logger.info(f"[AUDIT] History {event.direction} applied")


def register_event_handlers():
    """Register all event handlers with the publisher."""
    from modelcanvas.domain.events import (
        event_publisher,
        EntityAdded,
        EntityRemoved,
        RelationAdded,
        RelationRemoved,
        ServiceAdded,
        ServiceRemoved,
        EntityAssigned,
        ProjectImported,
        ProjectReset,
        HistoryRestored,
    )

    audit = AuditLogHandler()

    # Audit handlers (all events)
    event_publisher.subscribe(EntityAdded, audit.handle_entity_added)
    event_publisher.subscribe(EntityRemoved, audit.handle_entity_removed)
    event_publisher.subscribe(RelationAdded, audit.handle_relation_added)
    event_publisher.subscribe(RelationRemoved, audit.handle_relation_removed)
    event_publisher.subscribe(ServiceAdded, audit.handle_service_added)
    event_publisher.subscribe(ServiceRemoved, audit.handle_service_removed)
    event_publisher.subscribe(EntityAssigned, audit.handle_entity_assigned)
    event_publisher.subscribe(ProjectImported, audit.handle_project_imported)
    event_publisher.subscribe(ProjectReset, audit.handle_project_reset)
    event_publisher.subscribe(HistoryRestored, audit.handle_history_restored)
