"""Specification pattern for reusable entity filtering logic."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

FILTER_ALL = "all"
FILTER_UNASSIGNED = "unassigned"


class Specification(ABC):
    """Abstract base for specifications (query filters)."""

    @abstractmethod
    def is_satisfied_by(self, candidate: Dict[str, Any]) -> bool:
        """Check if candidate satisfies this specification."""
        pass


class AnyEntity(Specification):
    """Matches every entity (the "all" canvas filter)."""

    def is_satisfied_by(self, entity: Dict[str, Any]) -> bool:
        return True


# Entity Specifications

class EntityInService(Specification):
    """Entities listed by a specific service."""

    def __init__(self, service: Dict[str, Any]):
        self.entity_ids = set(service.get("entity_ids", []))

    def is_satisfied_by(self, entity: Dict[str, Any]) -> bool:
        return entity["id"] in self.entity_ids


class UnassignedEntity(Specification):
    """Entities that no service lists."""

    def __init__(self, services: Iterable[Dict[str, Any]]):
        self.assigned_ids = {entity_id for service in services for entity_id in service["entity_ids"]}

    def is_satisfied_by(self, entity: Dict[str, Any]) -> bool:
        return entity["id"] not in self.assigned_ids


def specification_for_filter(entity_filter: str, services: List[Dict[str, Any]]) -> Specification:
    """Translate a canvas filter value ("all", "unassigned" or a service id)."""
    if entity_filter == FILTER_UNASSIGNED:
        return UnassignedEntity(services)
    for service in services:
        if service["id"] == entity_filter:
            return EntityInService(service)
    return AnyEntity()


# Helper function to filter collections

def filter_by_specification(items: List[Dict[str, Any]], spec: Specification) -> List[Dict[str, Any]]:
    """Filter a collection using a specification."""
    return [item for item in items if spec.is_satisfied_by(item)]
