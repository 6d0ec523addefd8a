"""Service store: service containers and the entity -> service assignment."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from modelcanvas.domain.entities import (
    DEFAULT_SERVICE_CONFIG,
    Position,
    ServiceRecord,
    next_service_color,
)
from modelcanvas.domain.naming import new_id
from modelcanvas.domain.ports import RemovalListener

logger = logging.getLogger(__name__)

SERVICE_SPACING_X = 450
SERVICE_ORIGIN = 50
SERVICE_WIDTH = 400
SERVICE_HEIGHT = 300
BASE_PORT = 8080


def _with_assignment(service: ServiceRecord, entity_ids: List[str], target_service_id: str) -> ServiceRecord:
    """Strip ``entity_ids`` from a service, re-adding them if it is the target."""
    if service["id"] == target_service_id:
        # Already-owned ids keep their slot; new ones go to the end
        already = set(service["entity_ids"])
        kept = service["entity_ids"] + [eid for eid in dict.fromkeys(entity_ids) if eid not in already]
    else:
        moving = set(entity_ids)
        kept = [eid for eid in service["entity_ids"] if eid not in moving]
    if kept == service["entity_ids"]:
        return service
    return {**service, "entity_ids": kept}


class ServiceStore:
    """Sole writer of the service list.

    Invariant: an entity id appears in at most one service's ``entity_ids``.
    Every assignment is a single pass over the services that strips and adds in
    the same step, so no intermediate state has the entity in zero or two
    services.
    """

    def __init__(self) -> None:
        self._services: List[ServiceRecord] = []
        self.selected_service_id: Optional[str] = None
        self._on_removed: Optional[RemovalListener] = None

    def set_removal_listener(self, listener: Optional[RemovalListener]) -> None:
        self._on_removed = listener

    @property
    def services(self) -> List[ServiceRecord]:
        return self._services

    def add_service(self, name: str) -> ServiceRecord:
        count = len(self._services)
        service: ServiceRecord = {
            "id": new_id(),
            "name": name,
            "description": "",
            "color": next_service_color([s["color"] for s in self._services]),
            "position": {"x": count * SERVICE_SPACING_X + SERVICE_ORIGIN, "y": SERVICE_ORIGIN},
            "width": SERVICE_WIDTH,
            "height": SERVICE_HEIGHT,
            "entity_ids": [],
            "config": {**DEFAULT_SERVICE_CONFIG, "port": BASE_PORT + count},
        }
        self._services = [*self._services, service]
        self.selected_service_id = service["id"]
        return service

    def get_service(self, service_id: str) -> Optional[ServiceRecord]:
        for service in self._services:
            if service["id"] == service_id:
                return service
        return None

    def service_for_entity(self, entity_id: str) -> Optional[ServiceRecord]:
        for service in self._services:
            if entity_id in service["entity_ids"]:
                return service
        return None

    def update_service(self, service_id: str, updates: Mapping[str, Any]) -> Optional[ServiceRecord]:
        self._services = [
            {**s, **updates, "id": s["id"]} if s["id"] == service_id else s  # type: ignore[misc]
            for s in self._services
        ]
        return self.get_service(service_id)

    def remove_service(self, service_id: str) -> bool:
        if self.get_service(service_id) is None:
            return False
        self._services = [s for s in self._services if s["id"] != service_id]
        if self.selected_service_id == service_id:
            self.selected_service_id = None
        if self._on_removed is not None:
            self._on_removed.notify_removed(service_id)
        logger.debug(f"Service removed: {service_id}")
        return True

    def clear_services(self) -> None:
        removed = [s["id"] for s in self._services]
        self._services = []
        self.selected_service_id = None
        if self._on_removed is not None:
            for service_id in removed:
                self._on_removed.notify_removed(service_id)

    def set_services(self, services: List[ServiceRecord]) -> None:
        self._services = list(services)
        self.selected_service_id = None

    def select_service(self, service_id: Optional[str]) -> None:
        self.selected_service_id = service_id

    # Assignment
    def assign_entity_to_service(self, entity_id: str, service_id: str) -> None:
        self.assign_entities_to_service([entity_id], service_id)

    def assign_entities_to_service(self, entity_ids: Iterable[str], service_id: str) -> None:
        ids = list(entity_ids)
        self._services = [_with_assignment(s, ids, service_id) for s in self._services]

    def remove_entity_from_service(self, entity_id: str, service_id: str) -> None:
        self._services = [
            {**s, "entity_ids": [eid for eid in s["entity_ids"] if eid != entity_id]}
            if s["id"] == service_id else s
            for s in self._services
        ]

    def notify_removed(self, removed_id: str) -> None:
        """Forget a removed entity in whatever service lists it."""
        if self.service_for_entity(removed_id) is None:
            return
        self._services = [
            {**s, "entity_ids": [eid for eid in s["entity_ids"] if eid != removed_id]}
            if removed_id in s["entity_ids"] else s
            for s in self._services
        ]

    # Configuration and layout
    def set_service_target_config(self, service_id: str, target_config: Optional[Mapping[str, Any]]) -> None:
        self._services = [
            {**s, "config": {**s["config"], "target_config": dict(target_config) if target_config else None}}
            if s["id"] == service_id else s
            for s in self._services
        ]

    def update_service_positions(self, positions: Mapping[str, Position]) -> None:
        if not any(service["id"] in positions for service in self._services):
            return
        self._services = [
            {**s, "position": dict(positions[s["id"]])} if s["id"] in positions else s  # type: ignore[misc]
            for s in self._services
        ]

    def update_service_dimensions(self, service_id: str, width: float, height: float) -> None:
        self._services = [
            {**s, "width": width, "height": height} if s["id"] == service_id else s
            for s in self._services
        ]

    def reset(self) -> None:
        self._services = []
        self.selected_service_id = None
