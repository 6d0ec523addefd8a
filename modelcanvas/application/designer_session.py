"""Designer session: the assembled stores plus the operations that settle them."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from modelcanvas.application.project_facade import ProjectFacade
from modelcanvas.canvas import CanvasEdge, CanvasNode, CanvasSynchronizer, NodeChange
from modelcanvas.domain.entities import (
    EntityRecord,
    FieldRecord,
    HistorySnapshot,
    Position,
    RelationRecord,
    ServiceConnectionRecord,
    ServiceRecord,
)
from modelcanvas.domain.events import (
    EntityAdded,
    EntityAssigned,
    EntityRemoved,
    HistoryRestored,
    RelationAdded,
    RelationRemoved,
    ServiceAdded,
    ServiceRemoved,
    event_publisher,
)
from modelcanvas.stores import (
    EntityStore,
    HistoryStore,
    LayoutStore,
    RelationStore,
    ServiceConnectionStore,
    ServiceStore,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DesignerView:
    """Read model of the whole designer, composed once per request."""
    project: Dict[str, Any]
    entities: List[EntityRecord]
    relations: List[RelationRecord]
    services: List[ServiceRecord]
    service_connections: List[ServiceConnectionRecord]
    selected_entity_id: Optional[str]
    selected_entity_ids: List[str]
    selected_service_id: Optional[str]
    canvas_view: str
    entity_filter: str
    expanded_entity_ids: List[str]
    layout_preference: str
    can_undo: bool
    can_redo: bool
    nodes: List[CanvasNode]
    edges: List[CanvasEdge]


class DesignerSession:
    """Runs every mutation through the same settle step.

    After each operation the history store snapshots ``(entities, relations)``,
    the layout store forgets expansion flags of dead entities and the canvas is
    synchronized. Cross-store cleanup has already happened inside the store
    call by then; settling only observes it.
    """

    def __init__(
        self,
        entity_store: EntityStore,
        relation_store: RelationStore,
        service_store: ServiceStore,
        connection_store: ServiceConnectionStore,
        layout_store: LayoutStore,
        history_store: HistoryStore,
        facade: ProjectFacade,
        canvas: CanvasSynchronizer,
    ) -> None:
        self.entities = entity_store
        self.relations = relation_store
        self.services = service_store
        self.connections = connection_store
        self.layout = layout_store
        self.history = history_store
        self.facade = facade
        self.canvas = canvas

    def snapshot(self) -> HistorySnapshot:
        return {"entities": self.entities.entities, "relations": self.relations.relations}

    def settle(self) -> None:
        self.layout.apply_auto_layout(self.relations.relations)
        # A drag is recorded once, when it ends
        if not self.canvas.is_dragging:
            self.history.save_snapshot(self.snapshot())
        self.layout.cleanup_deleted_entities(e["id"] for e in self.entities.entities)
        self.canvas.sync()

    def view(self) -> DesignerView:
        return DesignerView(
            project=self.facade.project,
            entities=self.entities.entities,
            relations=self.relations.relations,
            services=self.services.services,
            service_connections=self.connections.connections,
            selected_entity_id=self.entities.selected_entity_id,
            selected_entity_ids=list(self.entities.selected_entity_ids),
            selected_service_id=self.services.selected_service_id,
            canvas_view=self.layout.canvas_view,
            entity_filter=self.layout.effective_filter(self.services.services),
            expanded_entity_ids=sorted(self.layout.expanded_entity_ids),
            layout_preference=self.layout.layout_preference,
            can_undo=self.history.can_undo,
            can_redo=self.history.can_redo,
            nodes=self.canvas.nodes,
            edges=self.canvas.edges,
        )

    # Entities
    def add_entity(self, name: str) -> EntityRecord:
        entity = self.entities.add_entity(name)
        self.settle()
        event_publisher.publish(EntityAdded(event_id="", timestamp=None, aggregate_id=entity["id"], name=name))
        return entity

    def update_entity(self, entity_id: str, updates: Mapping[str, Any]) -> Optional[EntityRecord]:
        entity = self.entities.update_entity(entity_id, updates)
        self.settle()
        return entity

    def _remove_entities(self, entity_ids: Iterable[str]) -> List[str]:
        """Remove entities with one settle, so a single undo brings them all back."""
        removed: List[EntityRemoved] = []
        for entity_id in entity_ids:
            entity = self.entities.get_entity(entity_id)
            if entity is None:
                continue
            relation_count = len(self.relations.relations_for_entity(entity_id))
            self.entities.remove_entity(entity_id)
            removed.append(EntityRemoved(
                event_id="",
                timestamp=None,
                aggregate_id=entity_id,
                name=entity["name"],
                removed_relation_count=relation_count,
            ))
        if not removed:
            return []
        self.settle()
        for event in removed:
            event_publisher.publish(event)
        return [event.aggregate_id for event in removed]

    def remove_entity(self, entity_id: str) -> bool:
        return bool(self._remove_entities([entity_id]))

    def delete_selected_entities(self) -> List[str]:
        """Remove the primary selection and every multi-selected entity."""
        targets = list(dict.fromkeys(
            [*self.entities.selected_entity_ids, *filter(None, [self.entities.selected_entity_id])]
        ))
        return self._remove_entities(targets)

    def select_entity(self, entity_id: Optional[str]) -> None:
        self.entities.select_entity(entity_id)
        if entity_id is not None:
            self.services.select_service(None)
        self.settle()

    def toggle_entity_selection(self, entity_id: str) -> None:
        self.entities.toggle_entity_selection(entity_id)
        self.services.select_service(None)
        self.settle()

    def clear_selection(self) -> None:
        self.entities.clear_entity_selection()
        self.services.select_service(None)
        self.settle()

    # Fields
    def add_field(self, entity_id: str, field: Mapping[str, Any]) -> Optional[FieldRecord]:
        created = self.entities.add_field(entity_id, field)
        self.settle()
        return created

    def update_field(self, entity_id: str, field_id: str, updates: Mapping[str, Any]) -> Optional[FieldRecord]:
        updated = self.entities.update_field(entity_id, field_id, updates)
        self.settle()
        return updated

    def remove_field(self, entity_id: str, field_id: str) -> None:
        self.entities.remove_field(entity_id, field_id)
        self.settle()

    # Relations
    def add_relation(self, relation: Mapping[str, Any]) -> Optional[RelationRecord]:
        """Draw a relation; nothing is stored unless both endpoints are live entities."""
        endpoints = (relation["source_entity_id"], relation["target_entity_id"])
        if any(self.entities.get_entity(entity_id) is None for entity_id in endpoints):
            logger.warning(f"Relation between {endpoints[0]} and {endpoints[1]} skipped: unknown entity")
            return None
        created = self.relations.add_relation(relation)
        self.settle()
        event_publisher.publish(RelationAdded(
            event_id="",
            timestamp=None,
            aggregate_id=created["id"],
            relation_type=created["type"],
            source_entity_id=created["source_entity_id"],
            target_entity_id=created["target_entity_id"],
        ))
        return created

    def update_relation(self, relation_id: str, updates: Mapping[str, Any]) -> Optional[RelationRecord]:
        updated = self.relations.update_relation(relation_id, updates)
        self.settle()
        return updated

    def remove_relation(self, relation_id: str) -> bool:
        removed = self.relations.remove_relation(relation_id)
        self.settle()
        if removed:
            event_publisher.publish(RelationRemoved(event_id="", timestamp=None, aggregate_id=relation_id))
        return removed

    # Services
    def add_service(self, name: str) -> ServiceRecord:
        service = self.services.add_service(name)
        self.entities.clear_entity_selection()
        self.settle()
        event_publisher.publish(ServiceAdded(
            event_id="", timestamp=None, aggregate_id=service["id"], name=name, color=service["color"]
        ))
        return service

    def update_service(self, service_id: str, updates: Mapping[str, Any]) -> Optional[ServiceRecord]:
        service = self.services.update_service(service_id, updates)
        self.settle()
        return service

    def remove_service(self, service_id: str) -> bool:
        service = self.services.get_service(service_id)
        if service is None:
            return False
        self.services.remove_service(service_id)
        self.settle()
        event_publisher.publish(ServiceRemoved(
            event_id="", timestamp=None, aggregate_id=service_id, name=service["name"]
        ))
        return True

    def clear_services(self) -> None:
        self.services.clear_services()
        self.settle()

    def select_service(self, service_id: Optional[str]) -> None:
        self.services.select_service(service_id)
        if service_id is not None:
            self.entities.clear_entity_selection()
        self.settle()

    def _publish_assignment(self, entity_id: str, service_id: Optional[str]) -> None:
        event_publisher.publish(EntityAssigned(
            event_id="", timestamp=None, aggregate_id=entity_id, entity_id=entity_id, service_id=service_id
        ))

    def assign_entities_to_service(self, entity_ids: Iterable[str], service_id: str) -> None:
        if self.services.get_service(service_id) is None:
            return
        ids = [entity_id for entity_id in entity_ids if self.entities.get_entity(entity_id) is not None]
        if not ids:
            return
        self.services.assign_entities_to_service(ids, service_id)
        self.settle()
        for entity_id in ids:
            owner = self.services.service_for_entity(entity_id)
            self._publish_assignment(entity_id, owner["id"] if owner else None)

    def assign_entity_to_service(self, entity_id: str, service_id: str) -> None:
        self.assign_entities_to_service([entity_id], service_id)

    def remove_entity_from_service(self, entity_id: str, service_id: str) -> None:
        self.services.remove_entity_from_service(entity_id, service_id)
        self.settle()
        self._publish_assignment(entity_id, None)

    def set_service_target_config(self, service_id: str, target_config: Optional[Mapping[str, Any]]) -> None:
        self.services.set_service_target_config(service_id, target_config)
        self.settle()

    # Service connections
    def add_connection(self, connection: Mapping[str, Any]) -> ServiceConnectionRecord:
        created = self.connections.add_connection(connection)
        self.settle()
        return created

    def update_connection(self, connection_id: str, updates: Mapping[str, Any]) -> Optional[ServiceConnectionRecord]:
        updated = self.connections.update_connection(connection_id, updates)
        self.settle()
        return updated

    def remove_connection(self, connection_id: str) -> bool:
        removed = self.connections.remove_connection(connection_id)
        self.settle()
        return removed

    # History
    def _restore(self, snapshot: Optional[HistorySnapshot], direction: str) -> bool:
        if snapshot is None:
            return False
        self.entities.restore_entities(snapshot["entities"])
        self.relations.set_relations(snapshot["relations"])
        # Services may still list entities the snapshot no longer has
        live = {e["id"] for e in snapshot["entities"]}
        listed = {eid for service in self.services.services for eid in service["entity_ids"]}
        for entity_id in listed - live:
            self.services.notify_removed(entity_id)
        try:
            self.settle()
        finally:
            self.history.finish_restore()
        logger.info(f"History {direction}: {len(snapshot['entities'])} entities restored")
        event_publisher.publish(HistoryRestored(event_id="", timestamp=None, aggregate_id="history", direction=direction))
        return True

    def undo(self) -> bool:
        return self._restore(self.history.undo(), "undo")

    def redo(self) -> bool:
        return self._restore(self.history.redo(), "redo")

    # Canvas
    def apply_canvas_changes(self, changes: List[NodeChange]) -> List[NodeChange]:
        applied = self.canvas.apply_changes(changes)
        self.settle()
        return applied

    def drag_node(self, node_id: str, position: Position) -> Optional[str]:
        target = self.canvas.drag(node_id, position)
        self.canvas.sync()
        return target

    def end_drag(self, node_id: str, position: Position) -> Optional[str]:
        """Finish a drag; returns the entity's service after the drop, if it changed."""
        assignment = self.canvas.end_drag(node_id, position)
        self.settle()
        if assignment is None:
            return None
        entity_id, service_id = assignment
        self._publish_assignment(entity_id, service_id)
        return service_id

    def click_node(self, node_id: str, multi: bool = False) -> None:
        self.canvas.click_node(node_id, multi=multi)
        self.settle()

    def click_pane(self) -> None:
        self.canvas.click_pane()
        self.settle()

    def mark_rendered(self) -> None:
        self.canvas.mark_rendered()

    def set_canvas_view(self, view: str) -> None:
        self.layout.set_canvas_view(view)  # type: ignore[arg-type]
        self.settle()

    def set_entity_filter(self, entity_filter: str) -> None:
        self.layout.set_entity_filter(entity_filter)
        self.settle()

    def toggle_entity_expanded(self, entity_id: str) -> None:
        self.layout.toggle_entity_expanded(entity_id)
        self.settle()

    def set_layout_preference(self, preference: str) -> None:
        self.layout.set_layout_preference(preference)
        self.settle()

    def auto_layout(self) -> Dict[str, Position]:
        """Lay out entities in entity view; otherwise lay out the service containers."""
        if self.layout.canvas_view == "entities":
            positions = self.layout.apply_auto_layout(self.relations.relations, force=True)
        else:
            positions = self.layout.apply_service_layout(self.connections.connections)
        self.settle()
        return positions

    # Project
    def import_project(self, document: str | Dict[str, Any]) -> None:
        self.facade.import_project(document)
        self.layout.clear_expanded_entities()
        self.settle()

    def export_project(self) -> str:
        return self.facade.export_project()

    def reset_project(self) -> None:
        self.facade.reset_project()
        self.settle()

    def set_project(self, updates: Mapping[str, Any]) -> Dict[str, Any]:
        return self.facade.set_project(updates)

    def set_target_config(self, updates: Mapping[str, Any]) -> Dict[str, Any]:
        return self.facade.set_target_config(updates)
