"""Relation store: directed, typed associations between entities."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from modelcanvas.domain.entities import RelationRecord, default_relation
from modelcanvas.domain.naming import new_id

logger = logging.getLogger(__name__)


class RelationStore:
    """Sole writer of the relation list.

    Depends on entities only through their ids; the entity store's removal
    notification reaches :meth:`notify_removed` before the removal returns.
    """

    def __init__(self) -> None:
        self._relations: List[RelationRecord] = []

    @property
    def relations(self) -> List[RelationRecord]:
        return self._relations

    def add_relation(self, relation: Mapping[str, Any]) -> RelationRecord:
        defaults = default_relation(relation["source_entity_id"], relation["target_entity_id"])
        foreign_key = {**defaults["foreign_key"], **relation.get("foreign_key", {})}
        record: RelationRecord = {
            **defaults,
            **relation,
            "foreign_key": foreign_key,
            "cascade": list(relation.get("cascade", [])),
            "id": new_id(),
        }  # type: ignore[assignment]
        self._relations = [*self._relations, record]
        return record

    def get_relation(self, relation_id: str) -> Optional[RelationRecord]:
        for relation in self._relations:
            if relation["id"] == relation_id:
                return relation
        return None

    def update_relation(self, relation_id: str, updates: Mapping[str, Any]) -> Optional[RelationRecord]:
        self._relations = [
            {**r, **updates, "id": r["id"]} if r["id"] == relation_id else r  # type: ignore[misc]
            for r in self._relations
        ]
        return self.get_relation(relation_id)

    def remove_relation(self, relation_id: str) -> bool:
        remaining = [r for r in self._relations if r["id"] != relation_id]
        removed = len(remaining) != len(self._relations)
        self._relations = remaining
        return removed

    def set_relations(self, relations: List[RelationRecord]) -> None:
        self._relations = list(relations)

    def relations_for_entity(self, entity_id: str) -> List[RelationRecord]:
        return [
            r for r in self._relations
            if r["source_entity_id"] == entity_id or r["target_entity_id"] == entity_id
        ]

    def notify_removed(self, removed_id: str) -> None:
        """Drop every relation touching a removed entity."""
        remaining = [
            r for r in self._relations
            if r["source_entity_id"] != removed_id and r["target_entity_id"] != removed_id
        ]
        if len(remaining) != len(self._relations):
            logger.debug(
                f"Removed {len(self._relations) - len(remaining)} relation(s) of entity {removed_id}"
            )
            self._relations = remaining

    def reset(self) -> None:
        self._relations = []
