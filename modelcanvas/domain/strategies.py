"""Strategy pattern for canvas auto-layout."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Protocol, Tuple

import networkx as nx

from modelcanvas.domain.entities import Position

logger = logging.getLogger(__name__)

# Node geometry shared with the canvas layer
ENTITY_NODE_WIDTH = 220
ENTITY_NODE_MIN_HEIGHT = 100
ENTITY_FIELD_HEIGHT = 28
SERVICE_NODE_DEFAULT_WIDTH = 300
SERVICE_NODE_DEFAULT_HEIGHT = 200

LAYOUT_NODE_HEIGHT = 200
GRID_GAP = 60
GRAPH_MARGIN = 50


class LayoutStrategy(Protocol):
    """Protocol for auto-layout strategies."""

    def calculate(
        self, nodes: List[Dict[str, Any]], edges: List[Tuple[str, str]]
    ) -> Dict[str, Position]:
        """Return a position for every node id."""
        ...

    def get_preset_name(self) -> str:
        """Return the layout preset name."""
        ...


def entity_layout_nodes(entities: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Size entity boxes by field count, as the renderer draws them."""
    return [
        {
            "id": entity["id"],
            "width": ENTITY_NODE_WIDTH,
            "height": max(
                LAYOUT_NODE_HEIGHT,
                ENTITY_NODE_MIN_HEIGHT + len(entity["fields"]) * ENTITY_FIELD_HEIGHT,
            ),
        }
        for entity in entities
    ]


def service_layout_nodes(services: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "id": service["id"],
            "width": service.get("width") or SERVICE_NODE_DEFAULT_WIDTH,
            "height": service.get("height") or SERVICE_NODE_DEFAULT_HEIGHT,
        }
        for service in services
    ]


class GridLayoutStrategy:
    """Square-ish grid, used when there are no edges to rank by."""

    def __init__(self, preset: str = "grid") -> None:
        self._preset = preset

    def calculate(
        self, nodes: List[Dict[str, Any]], edges: List[Tuple[str, str]]
    ) -> Dict[str, Position]:
        positions: Dict[str, Position] = {}
        if not nodes:
            return positions
        cols = math.ceil(math.sqrt(len(nodes)))
        spacing_x = max(node["width"] for node in nodes) + GRID_GAP
        spacing_y = max(node["height"] for node in nodes) + GRID_GAP
        for index, node in enumerate(nodes):
            positions[node["id"]] = {
                "x": GRAPH_MARGIN + (index % cols) * spacing_x,
                "y": GRAPH_MARGIN + (index // cols) * spacing_y,
            }
        return positions

    def get_preset_name(self) -> str:
        return self._preset


class LayeredLayoutStrategy:
    """Layered (Sugiyama-style) placement along the edge direction.

    Cycles are collapsed with a condensation so mutually dependent nodes share
    a layer; nodes without edges fall into the first layer.
    """

    def __init__(self, preset: str, direction: str, node_spacing: float, rank_spacing: float) -> None:
        self._preset = preset
        self.direction = direction
        self.node_spacing = node_spacing
        self.rank_spacing = rank_spacing

    def _layers(self, nodes: List[Dict[str, Any]], edges: List[Tuple[str, str]]) -> List[List[str]]:
        graph = nx.DiGraph()
        graph.add_nodes_from(node["id"] for node in nodes)
        graph.add_edges_from((s, t) for s, t in edges if s in graph and t in graph and s != t)
        condensed = nx.condensation(graph)
        order = {node["id"]: index for index, node in enumerate(nodes)}
        layers = []
        for generation in nx.topological_generations(condensed):
            members = [m for component in generation for m in condensed.nodes[component]["members"]]
            layers.append(sorted(members, key=order.__getitem__))
        return layers

    def calculate(
        self, nodes: List[Dict[str, Any]], edges: List[Tuple[str, str]]
    ) -> Dict[str, Position]:
        positions: Dict[str, Position] = {}
        if not nodes:
            return positions
        sizes = {node["id"]: (node["width"], node["height"]) for node in nodes}
        layers = self._layers(nodes, edges)
        if self.direction in ("RL", "BT"):
            layers.reverse()
        horizontal = self.direction in ("LR", "RL")

        rank_offset = GRAPH_MARGIN
        for layer in layers:
            cross_offset = GRAPH_MARGIN
            thickness = 0.0
            for node_id in layer:
                width, height = sizes[node_id]
                if horizontal:
                    positions[node_id] = {"x": rank_offset, "y": cross_offset}
                    cross_offset += height + self.node_spacing
                    thickness = max(thickness, width)
                else:
                    positions[node_id] = {"x": cross_offset, "y": rank_offset}
                    cross_offset += width + self.node_spacing
                    thickness = max(thickness, height)
            rank_offset += thickness + self.rank_spacing
        return positions

    def get_preset_name(self) -> str:
        return self._preset


class LayoutStrategyFactory:
    """Factory to select a layout strategy from a layout preference."""

    _presets = {
        "horizontal": {"direction": "LR", "node_spacing": 80, "rank_spacing": 200},
        "vertical": {"direction": "TB", "node_spacing": 100, "rank_spacing": 150},
        "compact": {"direction": "LR", "node_spacing": 40, "rank_spacing": 120},
        "spacious": {"direction": "LR", "node_spacing": 120, "rank_spacing": 250},
    }

    @classmethod
    def get_strategy(cls, preset: str, has_edges: bool = True) -> LayoutStrategy:
        """Get the layout strategy for a preset; edgeless graphs always use a grid."""
        if not has_edges:
            return GridLayoutStrategy(preset)
        options = cls._presets.get(preset.lower())
        if options is None:
            # Default to compact for unknown presets
            logger.warning(f"Unknown layout preset '{preset}', falling back to compact")
            preset, options = "compact", cls._presets["compact"]
        return LayeredLayoutStrategy(preset, **options)

    @classmethod
    def presets(cls) -> List[str]:
        return list(cls._presets)

    @classmethod
    def register_preset(cls, preset: str, direction: str, node_spacing: float, rank_spacing: float) -> None:
        """Register a new layout preset."""
        cls._presets[preset.lower()] = {
            "direction": direction,
            "node_spacing": node_spacing,
            "rank_spacing": rank_spacing,
        }


def calculate_auto_layout(
    entities: List[Dict[str, Any]], relations: List[Dict[str, Any]], preset: str = "compact"
) -> Dict[str, Position]:
    """Positions for every entity, ranked along live relations."""
    ids = {entity["id"] for entity in entities}
    edges = [
        (relation["source_entity_id"], relation["target_entity_id"])
        for relation in relations
        if relation["source_entity_id"] in ids and relation["target_entity_id"] in ids
    ]
    strategy = LayoutStrategyFactory.get_strategy(preset, has_edges=bool(edges))
    return strategy.calculate(entity_layout_nodes(entities), edges)


def calculate_service_layout(
    services: List[Dict[str, Any]], connections: List[Dict[str, Any]], preset: str = "compact"
) -> Dict[str, Position]:
    """Positions for every service container, ranked along live connections."""
    ids = {service["id"] for service in services}
    edges = [
        (connection["source_service_id"], connection["target_service_id"])
        for connection in connections
        if connection["source_service_id"] in ids and connection["target_service_id"] in ids
    ]
    strategy = LayoutStrategyFactory.get_strategy(preset, has_edges=bool(edges))
    return strategy.calculate(service_layout_nodes(services), edges)
