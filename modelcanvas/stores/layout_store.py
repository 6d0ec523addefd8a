"""Transient canvas UI state: view mode, filter, expansion and layout preference.

Positions and dimensions are not kept here. The update calls forward to the
entity and service stores so each position has exactly one writer.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Set

from modelcanvas.domain.entities import Position, ServiceRecord
from modelcanvas.domain.specifications import FILTER_ALL, FILTER_UNASSIGNED
from modelcanvas.domain.strategies import (
    LayoutStrategyFactory,
    calculate_auto_layout,
    calculate_service_layout,
)
from modelcanvas.stores.entity_store import EntityStore
from modelcanvas.stores.service_store import ServiceStore

logger = logging.getLogger(__name__)

CanvasView = Literal["entities", "services", "both"]
CANVAS_VIEWS = ("entities", "services", "both")


class LayoutStore:
    def __init__(
        self,
        entity_store: EntityStore,
        service_store: ServiceStore,
        canvas_view: CanvasView = "entities",
        layout_preference: str = "compact",
    ) -> None:
        self._entity_store = entity_store
        self._service_store = service_store
        self._default_view = canvas_view
        self._default_preference = layout_preference

        self.canvas_view: CanvasView = canvas_view
        self.entity_filter: str = FILTER_ALL
        self.expanded_entity_ids: Set[str] = set()
        self.layout_preference: str = layout_preference
        self.needs_auto_layout: bool = False

    # View and filter
    def set_canvas_view(self, view: CanvasView) -> None:
        if view not in CANVAS_VIEWS:
            raise ValueError(f"Unknown canvas view: {view}")
        self.canvas_view = view

    def set_entity_filter(self, entity_filter: str) -> None:
        self.entity_filter = entity_filter

    def effective_filter(self, services: Iterable[ServiceRecord]) -> str:
        """The active filter, or "all" when it names a service that is gone."""
        if self.entity_filter in (FILTER_ALL, FILTER_UNASSIGNED):
            return self.entity_filter
        if any(service["id"] == self.entity_filter for service in services):
            return self.entity_filter
        return FILTER_ALL

    # Expansion
    def toggle_entity_expanded(self, entity_id: str) -> None:
        if entity_id in self.expanded_entity_ids:
            self.expanded_entity_ids = self.expanded_entity_ids - {entity_id}
        else:
            self.expanded_entity_ids = self.expanded_entity_ids | {entity_id}

    def set_entity_expanded(self, entity_id: str, expanded: bool) -> None:
        if expanded:
            self.expanded_entity_ids = self.expanded_entity_ids | {entity_id}
        else:
            self.expanded_entity_ids = self.expanded_entity_ids - {entity_id}

    def is_entity_expanded(self, entity_id: str) -> bool:
        return entity_id in self.expanded_entity_ids

    def clear_expanded_entities(self) -> None:
        self.expanded_entity_ids = set()

    def cleanup_deleted_entities(self, existing_ids: Iterable[str]) -> None:
        stale = self.expanded_entity_ids - set(existing_ids)
        if stale:
            logger.debug(f"Dropping expanded state of {len(stale)} deleted entities")
            self.expanded_entity_ids = self.expanded_entity_ids - stale

    def notify_removed(self, removed_id: str) -> None:
        self.set_entity_expanded(removed_id, False)

    # Auto-layout
    def set_layout_preference(self, preference: str) -> None:
        if preference.lower() not in LayoutStrategyFactory.presets():
            raise ValueError(f"Unknown layout preference: {preference}")
        self.layout_preference = preference.lower()

    def set_needs_auto_layout(self, needed: bool) -> None:
        self.needs_auto_layout = needed

    def request_auto_layout(self) -> None:
        self.set_needs_auto_layout(True)

    def apply_auto_layout(self, relations: List[Dict[str, Any]], force: bool = False) -> Dict[str, Position]:
        """Lay out entities along their relations if a layout was requested."""
        if not (self.needs_auto_layout or force):
            return {}
        positions = calculate_auto_layout(self._entity_store.entities, relations, self.layout_preference)
        self._entity_store.update_entity_positions(positions)
        self.set_needs_auto_layout(False)
        logger.info(f"Auto-layout ({self.layout_preference}) placed {len(positions)} entities")
        return positions

    def apply_service_layout(self, connections: List[Dict[str, Any]]) -> Dict[str, Position]:
        """Lay out service containers along their connections."""
        positions = calculate_service_layout(self._service_store.services, connections, self.layout_preference)
        self.update_service_positions(positions)
        logger.info(f"Auto-layout ({self.layout_preference}) placed {len(positions)} services")
        return positions

    # Delegated writes
    def update_entity_positions(self, positions: Mapping[str, Position]) -> None:
        self._entity_store.update_entity_positions(positions)

    def update_service_positions(self, positions: Mapping[str, Position]) -> None:
        self._service_store.update_service_positions(positions)

    def update_service_dimensions(self, service_id: str, width: float, height: float) -> None:
        self._service_store.update_service_dimensions(service_id, width, height)

    def reset(self, canvas_view: Optional[CanvasView] = None) -> None:
        self.canvas_view = canvas_view or self._default_view
        self.entity_filter = FILTER_ALL
        self.expanded_entity_ids = set()
        self.layout_preference = self._default_preference
        self.needs_auto_layout = False
