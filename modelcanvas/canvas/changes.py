"""Renderer change events and the pure helpers that translate them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from modelcanvas.canvas.nodes import ENTITY_NODE, SERVICE_NODE, CanvasNode
from modelcanvas.domain.entities import EntityRecord, Position, ServiceRecord
from modelcanvas.domain.strategies import ENTITY_NODE_MIN_HEIGHT, ENTITY_NODE_WIDTH

ChangeType = Literal["position", "dimensions", "select"]


@dataclass
class NodeChange:
    type: ChangeType
    id: str
    position: Optional[Position] = None
    dragging: Optional[bool] = None
    dimensions: Optional[Dict[str, float]] = None
    resizing: Optional[bool] = None
    selected: Optional[bool] = None


def update_drag_state(changes: Iterable[NodeChange], is_dragging: bool) -> bool:
    """A position change with ``dragging`` set starts or ends a gesture."""
    for change in changes:
        if change.type == "position" and change.dragging is not None:
            is_dragging = change.dragging
    return is_dragging


def calculate_absolute_entity_position(relative: Position, container: Position) -> Position:
    return {"x": container["x"] + relative["x"], "y": container["y"] + relative["y"]}


def calculate_child_entity_positions(
    service: ServiceRecord,
    new_position: Position,
    old_position: Position,
    entities: Iterable[EntityRecord],
) -> Dict[str, Position]:
    """Shift every entity of ``service`` by the container's move, keeping offsets."""
    dx = new_position["x"] - old_position["x"]
    dy = new_position["y"] - old_position["y"]
    if dx == 0 and dy == 0:
        return {}
    members = set(service["entity_ids"])
    return {
        entity["id"]: {"x": entity["position"]["x"] + dx, "y": entity["position"]["y"] + dy}
        for entity in entities
        if entity["id"] in members
    }


def extract_service_dimensions(
    changes: Iterable[NodeChange], nodes_by_id: Dict[str, CanvasNode]
) -> List[Tuple[str, float, float]]:
    """Resize results for service nodes; resize-start events carry no size and are skipped."""
    updates = []
    for change in changes:
        if change.type != "dimensions" or not change.dimensions:
            continue
        node = nodes_by_id.get(change.id)
        if node is None or node.type != SERVICE_NODE:
            continue
        width = change.dimensions.get("width")
        height = change.dimensions.get("height")
        if width is not None and height is not None:
            updates.append((change.id, width, height))
    return updates


def adjust_selection_changes(
    changes: List[NodeChange],
    nodes_by_id: Dict[str, CanvasNode],
    selected_service_id: Optional[str],
    selected_entity_id: Optional[str],
    selected_entity_ids: Iterable[str],
) -> List[NodeChange]:
    """Turn renderer deselects into selects for nodes the designer still has selected."""
    multi = set(selected_entity_ids)
    adjusted = []
    for change in changes:
        if change.type == "select" and change.selected is False:
            node = nodes_by_id.get(change.id)
            if node is not None:
                if node.type == SERVICE_NODE:
                    claimed = change.id == selected_service_id
                else:
                    claimed = change.id == selected_entity_id or change.id in multi
                if claimed:
                    change = NodeChange(type="select", id=change.id, selected=True)
        adjusted.append(change)
    return adjusted


def find_service_at_position(
    position: Position, services: Iterable[ServiceRecord]
) -> Optional[ServiceRecord]:
    """Service whose bounds contain the centre of an entity box placed at ``position``."""
    cx = position["x"] + ENTITY_NODE_WIDTH / 2
    cy = position["y"] + ENTITY_NODE_MIN_HEIGHT / 2
    for service in services:
        x, y = service["position"]["x"], service["position"]["y"]
        if x <= cx <= x + service["width"] and y <= cy <= y + service["height"]:
            return service
    return None


def apply_node_changes(changes: Iterable[NodeChange], nodes: List[CanvasNode]) -> List[CanvasNode]:
    """Apply renderer changes to the node list, returning a new list."""
    by_id: Dict[str, List[NodeChange]] = {}
    for change in changes:
        by_id.setdefault(change.id, []).append(change)
    if not by_id:
        return nodes

    updated = []
    for node in nodes:
        for change in by_id.get(node.id, []):
            if change.type == "position":
                node = node.with_changes(
                    position=dict(change.position) if change.position else node.position,
                    dragging=bool(change.dragging),
                )
            elif change.type == "dimensions" and change.dimensions:
                node = node.with_changes(
                    width=change.dimensions.get("width", node.width),
                    height=change.dimensions.get("height", node.height),
                )
            elif change.type == "select" and change.selected is not None:
                node = node.with_changes(selected=change.selected)
        updated.append(node)
    return updated


def is_entity_node(node: Optional[CanvasNode]) -> bool:
    return node is not None and node.type == ENTITY_NODE
