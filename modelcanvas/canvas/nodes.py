"""Renderer-facing projections of entities and services.

Nodes and edges are derived and never authoritative. Fingerprints deliberately
leave out position, dimensions, selection and service membership so cosmetic
changes never force a rebuild.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from modelcanvas.domain.entities import (
    EntityRecord,
    Position,
    RelationRecord,
    ServiceConnectionRecord,
    ServiceRecord,
)
from modelcanvas.domain.strategies import ENTITY_NODE_WIDTH

ENTITY_NODE = "entity"
SERVICE_NODE = "service"
RELATION_EDGE = "relation"
SERVICE_CONNECTION_EDGE = "service-connection"

ENTITY_Z_INDEX = 10
SERVICE_Z_INDEX = 1


@dataclass
class CanvasNode:
    id: str
    type: str
    position: Position
    data: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    z_index: int = 0
    selected: bool = False
    dragging: bool = False

    def with_changes(self, **changes: Any) -> CanvasNode:
        return replace(self, **changes)


@dataclass
class CanvasEdge:
    id: str
    source: str
    target: str
    type: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


def relative_position(position: Position, container: Position) -> Position:
    return {"x": position["x"] - container["x"], "y": position["y"] - container["y"]}


def entity_node(
    entity: EntityRecord,
    *,
    selected: bool = False,
    expanded: bool = False,
    container: Optional[ServiceRecord] = None,
) -> CanvasNode:
    """Entity box; nested inside ``container`` with a container-relative position when given."""
    position: Position = dict(entity["position"])  # type: ignore[assignment]
    parent_id = None
    if container is not None:
        parent_id = container["id"]
        position = relative_position(entity["position"], container["position"])
    return CanvasNode(
        id=entity["id"],
        type=ENTITY_NODE,
        position=position,
        parent_id=parent_id,
        width=ENTITY_NODE_WIDTH,
        z_index=ENTITY_Z_INDEX,
        selected=selected,
        data={
            "entity": entity,
            "is_selected": selected,
            "is_expanded": expanded,
            "service_color": container["color"] if container is not None else None,
        },
    )


def service_data(service: ServiceRecord, entities_by_id: Dict[str, EntityRecord]) -> Dict[str, Any]:
    names = [entities_by_id[eid]["name"] for eid in service["entity_ids"] if eid in entities_by_id]
    return {"entity_count": len(service["entity_ids"]), "entity_names": names}


def service_node(
    service: ServiceRecord,
    entities_by_id: Dict[str, EntityRecord],
    *,
    selected: bool = False,
    is_drop_target: bool = False,
) -> CanvasNode:
    return CanvasNode(
        id=service["id"],
        type=SERVICE_NODE,
        position=dict(service["position"]),  # type: ignore[arg-type]
        width=service["width"],
        height=service["height"],
        z_index=SERVICE_Z_INDEX,
        selected=selected,
        data={
            "service": service,
            "is_selected": selected,
            "is_drop_target": is_drop_target,
            **service_data(service, entities_by_id),
        },
    )


def build_nodes(
    view: str,
    entities: List[EntityRecord],
    services: List[ServiceRecord],
    all_entities: List[EntityRecord],
    *,
    is_entity_selected,
    selected_service_id: Optional[str],
    expanded_ids: Iterable[str],
    drop_target_service_id: Optional[str] = None,
) -> List[CanvasNode]:
    """Full node list for a view; services come first so containers render beneath."""
    expanded = set(expanded_ids)
    entities_by_id = {e["id"]: e for e in all_entities}
    nodes: List[CanvasNode] = []

    if view in ("services", "both"):
        nodes.extend(
            service_node(
                service,
                entities_by_id,
                selected=service["id"] == selected_service_id,
                is_drop_target=service["id"] == drop_target_service_id,
            )
            for service in services
        )

    if view in ("entities", "both"):
        owners = {eid: s for s in services for eid in s["entity_ids"]} if view == "both" else {}
        nodes.extend(
            entity_node(
                entity,
                selected=is_entity_selected(entity["id"]),
                expanded=entity["id"] in expanded,
                container=owners.get(entity["id"]),
            )
            for entity in entities
        )
    return nodes


def build_edges(
    view: str,
    relations: List[RelationRecord],
    connections: List[ServiceConnectionRecord],
    visible_ids: Iterable[str],
) -> List[CanvasEdge]:
    visible = set(visible_ids)
    edges: List[CanvasEdge] = []
    if view in ("entities", "both"):
        for relation in relations:
            if relation["source_entity_id"] in visible and relation["target_entity_id"] in visible:
                edges.append(CanvasEdge(
                    id=relation["id"],
                    source=relation["source_entity_id"],
                    target=relation["target_entity_id"],
                    type=RELATION_EDGE,
                    data={"relation": relation},
                ))
    if view in ("services", "both"):
        for connection in connections:
            if connection["source_service_id"] in visible and connection["target_service_id"] in visible:
                edges.append(CanvasEdge(
                    id=connection["id"],
                    source=connection["source_service_id"],
                    target=connection["target_service_id"],
                    type=SERVICE_CONNECTION_EDGE,
                    source_handle="source-right",
                    target_handle="target-left",
                    data={"connection": connection},
                ))
    return edges


def structural_fingerprint(
    view: str,
    entity_filter: str,
    entities: Iterable[EntityRecord],
    services: Iterable[ServiceRecord],
    expanded_ids: Iterable[str],
) -> Tuple[Any, ...]:
    return (
        view,
        entity_filter,
        tuple(f"{e['id']}:{e['name']}:{len(e['fields'])}" for e in entities),
        tuple(f"{s['id']}:{s['name']}" for s in services),
        tuple(sorted(expanded_ids)),
    )


def membership_key(services: Iterable[ServiceRecord]) -> Tuple[Any, ...]:
    return tuple((s["id"], tuple(s["entity_ids"])) for s in services)
