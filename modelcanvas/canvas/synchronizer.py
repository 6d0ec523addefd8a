"""Reconciles the designer stores with the renderer's node and edge lists."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from modelcanvas.canvas.changes import (
    NodeChange,
    adjust_selection_changes,
    apply_node_changes,
    calculate_absolute_entity_position,
    calculate_child_entity_positions,
    extract_service_dimensions,
    find_service_at_position,
    is_entity_node,
    update_drag_state,
)
from modelcanvas.canvas.nodes import (
    SERVICE_NODE,
    CanvasEdge,
    CanvasNode,
    build_edges,
    build_nodes,
    membership_key,
    relative_position,
    service_data,
    structural_fingerprint,
)
from modelcanvas.domain.entities import EntityRecord, Position
from modelcanvas.domain.specifications import filter_by_specification, specification_for_filter
from modelcanvas.stores import (
    EntityStore,
    LayoutStore,
    RelationStore,
    ServiceConnectionStore,
    ServiceStore,
)

logger = logging.getLogger(__name__)


class CanvasSynchronizer:
    """Keeps a renderer-owned node list stable while the stores change.

    :meth:`sync` runs three effects in order: a structural rebuild when the
    fingerprint changed, a narrower patch of service contents when membership
    changed, and an in-place patch of selection and drop-target flags. The
    first two are held back while a drag is in progress; the last only runs
    once the renderer has reported the current node list as rendered.
    """

    def __init__(
        self,
        entity_store: EntityStore,
        relation_store: RelationStore,
        service_store: ServiceStore,
        connection_store: ServiceConnectionStore,
        layout_store: LayoutStore,
    ) -> None:
        self._entities = entity_store
        self._relations = relation_store
        self._services = service_store
        self._connections = connection_store
        self._layout = layout_store

        self._nodes: List[CanvasNode] = []
        self._edges: List[CanvasEdge] = []
        self._fingerprint: Optional[Tuple[Any, ...]] = None
        self._membership: Optional[Tuple[Any, ...]] = None
        self._initialized = False

        self.is_dragging = False
        self.drop_target_service_id: Optional[str] = None
        self.rebuild_count = 0

    @property
    def nodes(self) -> List[CanvasNode]:
        return self._nodes

    @property
    def edges(self) -> List[CanvasEdge]:
        return self._edges

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _nodes_by_id(self) -> Dict[str, CanvasNode]:
        return {node.id: node for node in self._nodes}

    def _visible_entities(self) -> Tuple[str, List[EntityRecord]]:
        services = self._services.services
        entity_filter = self._layout.effective_filter(services)
        spec = specification_for_filter(entity_filter, services)
        return entity_filter, filter_by_specification(self._entities.entities, spec)

    # Effects
    def sync(self) -> None:
        view = self._layout.canvas_view
        entity_filter, entities = self._visible_entities()
        services = self._services.services

        fingerprint = structural_fingerprint(
            view, entity_filter, entities, services, self._layout.expanded_entity_ids
        )
        if fingerprint != self._fingerprint and not self.is_dragging:
            self._rebuild(view, entities)
            self._fingerprint = fingerprint
            self._membership = membership_key(services)
        else:
            current_membership = membership_key(services)
            if current_membership != self._membership and not self.is_dragging:
                self._patch_service_data()
                self._membership = current_membership

        if self._initialized:
            self._patch_selection()

        self._edges = build_edges(
            view,
            self._relations.relations,
            self._connections.connections,
            [node.id for node in self._nodes],
        )

    def mark_rendered(self) -> None:
        """Renderer has painted the current node list; patches may now run."""
        self._initialized = True
        self._patch_selection()

    def _rebuild(self, view: str, entities: List[EntityRecord]) -> None:
        self._nodes = build_nodes(
            view,
            entities,
            self._services.services,
            self._entities.entities,
            is_entity_selected=self._entities.is_selected,
            selected_service_id=self._services.selected_service_id,
            expanded_ids=self._layout.expanded_entity_ids,
            drop_target_service_id=self.drop_target_service_id,
        )
        self._initialized = False
        self.rebuild_count += 1
        logger.debug(f"Canvas rebuilt ({len(self._nodes)} nodes, rebuild #{self.rebuild_count})")

    def _patch_service_data(self) -> None:
        entities_by_id = {e["id"]: e for e in self._entities.entities}
        services = self._services.services
        services_by_id = {s["id"]: s for s in services}
        owners = {eid: s for s in services for eid in s["entity_ids"]}
        nested = self._layout.canvas_view == "both"

        patched = []
        for node in self._nodes:
            if node.type == SERVICE_NODE and node.id in services_by_id:
                service = services_by_id[node.id]
                node = node.with_changes(data={**node.data, "service": service, **service_data(service, entities_by_id)})
            elif nested and node.id in entities_by_id:
                owner = owners.get(node.id)
                owner_id = owner["id"] if owner is not None else None
                if owner_id != node.parent_id:
                    absolute = entities_by_id[node.id]["position"]
                    node = node.with_changes(
                        parent_id=owner_id,
                        position=relative_position(absolute, owner["position"]) if owner else dict(absolute),
                        data={**node.data, "service_color": owner["color"] if owner else None},
                    )
            patched.append(node)
        self._nodes = patched

    def _patch_selection(self) -> None:
        """Refresh flags and record data in place; positions too when no gesture is live."""
        entities_by_id = {e["id"]: e for e in self._entities.entities}
        services_by_id = {s["id"]: s for s in self._services.services}
        selected_service_id = self._services.selected_service_id

        patched = []
        for node in self._nodes:
            changes: Dict[str, Any] = {}
            if node.type == SERVICE_NODE:
                service = services_by_id.get(node.id)
                changes["selected"] = node.id == selected_service_id
                changes["data"] = {
                    **node.data,
                    "service": service or node.data.get("service"),
                    "is_selected": changes["selected"],
                    "is_drop_target": node.id == self.drop_target_service_id,
                }
                if service is not None and not self.is_dragging:
                    changes.update(position=service["position"], width=service["width"], height=service["height"])
            else:
                entity = entities_by_id.get(node.id)
                changes["selected"] = self._entities.is_selected(node.id)
                changes["data"] = {
                    **node.data,
                    "entity": entity or node.data.get("entity"),
                    "is_selected": changes["selected"],
                }
                if entity is not None and not self.is_dragging:
                    container = services_by_id.get(node.parent_id) if node.parent_id else None
                    changes["position"] = (
                        relative_position(entity["position"], container["position"])
                        if container is not None else entity["position"]
                    )
            if any(getattr(node, key) != value for key, value in changes.items()):
                node = node.with_changes(**changes)
            patched.append(node)
        self._nodes = patched

    # Renderer events
    def apply_changes(self, changes: List[NodeChange]) -> List[NodeChange]:
        """Apply renderer changes to the node list and write positions and sizes back."""
        self.is_dragging = update_drag_state(changes, self.is_dragging)
        nodes_by_id = self._nodes_by_id()
        adjusted = adjust_selection_changes(
            changes,
            nodes_by_id,
            self._services.selected_service_id,
            self._entities.selected_entity_id,
            self._entities.selected_entity_ids,
        )
        self._nodes = apply_node_changes(adjusted, self._nodes)

        entity_positions: Dict[str, Position] = {}
        for change in adjusted:
            if change.type != "position" or change.position is None:
                continue
            node = nodes_by_id.get(change.id)
            if node is None:
                continue
            if node.type == SERVICE_NODE:
                entity_positions.update(self._move_service(change.id, change.position))
            else:
                entity_positions[change.id] = self._absolute_position(node, change.position)

        if entity_positions:
            self._layout.update_entity_positions(entity_positions)
        for service_id, width, height in extract_service_dimensions(adjusted, nodes_by_id):
            self._layout.update_service_dimensions(service_id, width, height)
        return adjusted

    def _absolute_position(self, node: CanvasNode, position: Position) -> Position:
        if node.parent_id is None:
            return dict(position)  # type: ignore[return-value]
        container = self._services.get_service(node.parent_id)
        if container is None:
            return dict(position)  # type: ignore[return-value]
        return calculate_absolute_entity_position(position, container["position"])

    def _move_service(self, service_id: str, position: Position) -> Dict[str, Position]:
        service = self._services.get_service(service_id)
        if service is None:
            return {}
        children = calculate_child_entity_positions(
            service, position, service["position"], self._entities.entities
        )
        self._layout.update_service_positions({service_id: position})

        # Nested children move with their container; loose ones are patched here
        if children:
            self._nodes = [
                node.with_changes(position=dict(children[node.id]))
                if node.id in children and node.parent_id is None else node
                for node in self._nodes
            ]
        return children

    def drag(self, node_id: str, position: Position) -> Optional[str]:
        """Track the service an entity would be dropped into; returns its id."""
        self.is_dragging = True
        node = self._nodes_by_id().get(node_id)
        target = None
        if self._layout.canvas_view == "both" and is_entity_node(node):
            service = find_service_at_position(self._absolute_position(node, position), self._services.services)
            target = service["id"] if service is not None else None
        if target != self.drop_target_service_id:
            self.drop_target_service_id = target
            if self._initialized:
                self._patch_selection()
        return target

    def end_drag(self, node_id: str, position: Position) -> Optional[Tuple[str, Optional[str]]]:
        """Finish a gesture; returns ``(entity_id, service_id)`` when membership changed."""
        self.is_dragging = False
        self.drop_target_service_id = None

        node = self._nodes_by_id().get(node_id)
        if self._layout.canvas_view != "both" or not is_entity_node(node):
            return None

        absolute = self._absolute_position(node, position)
        target = find_service_at_position(absolute, self._services.services)
        current = self._services.service_for_entity(node_id)
        if target is not None:
            if current is not None and current["id"] == target["id"]:
                return None
            self._services.assign_entity_to_service(node_id, target["id"])
            return node_id, target["id"]
        if current is not None:
            self._services.remove_entity_from_service(node_id, current["id"])
            return node_id, None
        return None

    def click_node(self, node_id: str, multi: bool = False) -> None:
        node = self._nodes_by_id().get(node_id)
        if node is None:
            return
        if node.type == SERVICE_NODE:
            self._services.select_service(node_id)
            self._entities.clear_entity_selection()
        elif multi:
            self._entities.toggle_entity_selection(node_id)
            self._services.select_service(None)
        else:
            self._entities.select_entity(node_id)
            self._services.select_service(None)

    def click_pane(self) -> None:
        self._entities.clear_entity_selection()
        self._services.select_service(None)
