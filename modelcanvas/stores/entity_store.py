"""Entity store: entities, their fields and the entity selection."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from modelcanvas.domain.entities import (
    DEFAULT_ENTITY_CONFIG,
    EntityRecord,
    FieldRecord,
    Position,
)
from modelcanvas.domain.errors import ConflictError
from modelcanvas.domain.naming import default_table_name, derived_field_name, new_id, to_snake_case
from modelcanvas.domain.ports import RemovalListener, ReplacementListener

logger = logging.getLogger(__name__)


def _build_field(field: Mapping[str, Any]) -> FieldRecord:
    name = field["name"]
    return {
        "id": new_id(),
        "name": name,
        "column_name": field.get("column_name") or to_snake_case(name),
        "type": field.get("type", "String"),
        "nullable": field.get("nullable", True),
        "unique": field.get("unique", False),
        "validations": list(field.get("validations", [])),
        "default_value": field.get("default_value"),
        "description": field.get("description"),
    }


def _check_field_name_free(entity: EntityRecord, name: str, exclude_id: str | None = None) -> None:
    derived = derived_field_name(name)
    for existing in entity["fields"]:
        if existing["id"] != exclude_id and derived_field_name(existing["name"]) == derived:
            raise ConflictError(
                f"Field '{name}' clashes with existing field '{existing['name']}' on entity '{entity['name']}'"
            )


def _updated_field(field: FieldRecord, updates: Mapping[str, Any]) -> FieldRecord:
    merged = {**field, **updates, "id": field["id"]}
    # Follow renames unless the column name was overridden by hand
    if (
        "name" in updates
        and "column_name" not in updates
        and field["column_name"] == to_snake_case(field["name"])
    ):
        merged["column_name"] = to_snake_case(merged["name"])
    return merged  # type: ignore[return-value]


class EntityStore:
    """Sole writer of the entity collection.

    Unknown ids are ignored (or yield ``None``) so UI code racing a delete
    never crashes. The store knows nothing about relations or services: it
    tells one removal listener and one replacement listener, wired at assembly.
    """

    def __init__(
        self,
        grid_columns: int = 4,
        spacing_x: int = 280,
        spacing_y: int = 200,
        padding: int = 50,
    ) -> None:
        self.grid_columns = grid_columns
        self.spacing_x = spacing_x
        self.spacing_y = spacing_y
        self.padding = padding

        self._entities: List[EntityRecord] = []
        self.selected_entity_id: Optional[str] = None
        self.selected_entity_ids: List[str] = []

        self._on_removed: Optional[RemovalListener] = None
        self._on_replaced: Optional[ReplacementListener] = None

    # Wiring
    def set_removal_listener(self, listener: Optional[RemovalListener]) -> None:
        self._on_removed = listener

    def set_replacement_listener(self, listener: Optional[ReplacementListener]) -> None:
        self._on_replaced = listener

    @property
    def entities(self) -> List[EntityRecord]:
        """Current entity list; replaced on every change, treat as read-only."""
        return self._entities

    def _next_grid_position(self) -> Position:
        count = len(self._entities)
        return {
            "x": (count % self.grid_columns) * self.spacing_x + self.padding,
            "y": (count // self.grid_columns) * self.spacing_y + self.padding,
        }

    def _replace(self, entity_id: str, transform) -> bool:
        changed = False
        entities = []
        for entity in self._entities:
            if entity["id"] == entity_id:
                entity = transform(entity)
                changed = True
            entities.append(entity)
        if changed:
            self._entities = entities
        return changed

    # Entity operations
    def add_entity(self, name: str) -> EntityRecord:
        entity: EntityRecord = {
            "id": new_id(),
            "name": name,
            "table_name": default_table_name(name),
            "description": None,
            "position": self._next_grid_position(),
            "fields": [],
            "config": dict(DEFAULT_ENTITY_CONFIG),  # type: ignore[typeddict-item]
        }
        self._entities = [*self._entities, entity]
        self.selected_entity_id = entity["id"]
        logger.debug(f"Entity added: {entity['id']} - {name}")
        return entity

    def get_entity(self, entity_id: str) -> Optional[EntityRecord]:
        for entity in self._entities:
            if entity["id"] == entity_id:
                return entity
        return None

    def update_entity(self, entity_id: str, updates: Mapping[str, Any]) -> Optional[EntityRecord]:
        self._replace(entity_id, lambda e: {**e, **updates, "id": e["id"]})
        return self.get_entity(entity_id)

    def remove_entity(self, entity_id: str) -> bool:
        if self.get_entity(entity_id) is None:
            return False
        self._entities = [e for e in self._entities if e["id"] != entity_id]
        if self.selected_entity_id == entity_id:
            self.selected_entity_id = None
        self.selected_entity_ids = [eid for eid in self.selected_entity_ids if eid != entity_id]
        # Dependents are cleaned up before this call returns
        if self._on_removed is not None:
            self._on_removed.notify_removed(entity_id)
        logger.debug(f"Entity removed: {entity_id}")
        return True

    def set_entities(self, entities: List[EntityRecord]) -> None:
        """Bulk replace (import); positions may be stale so auto-layout is requested."""
        self.restore_entities(entities)
        if self._on_replaced is not None:
            self._on_replaced.request_auto_layout()

    def restore_entities(self, entities: List[EntityRecord]) -> None:
        """Bulk replace without asking for a new layout (undo/redo)."""
        self._entities = list(entities)
        self.selected_entity_id = None
        self.selected_entity_ids = []

    def update_entity_positions(self, positions: Mapping[str, Position]) -> None:
        if not any(entity["id"] in positions for entity in self._entities):
            return
        self._entities = [
            {**e, "position": dict(positions[e["id"]])} if e["id"] in positions else e  # type: ignore[misc]
            for e in self._entities
        ]

    # Selection
    def select_entity(self, entity_id: Optional[str]) -> None:
        self.selected_entity_id = entity_id
        self.selected_entity_ids = []

    def toggle_entity_selection(self, entity_id: str) -> None:
        if entity_id in self.selected_entity_ids:
            self.selected_entity_ids = [eid for eid in self.selected_entity_ids if eid != entity_id]
            if self.selected_entity_id == entity_id:
                self.selected_entity_id = None
        else:
            self.selected_entity_ids = [*self.selected_entity_ids, entity_id]
            # Last toggled entity drives the detail panel
            self.selected_entity_id = entity_id

    def clear_entity_selection(self) -> None:
        self.selected_entity_id = None
        self.selected_entity_ids = []

    def is_selected(self, entity_id: str) -> bool:
        return self.selected_entity_id == entity_id or entity_id in self.selected_entity_ids

    # Field operations
    def add_field(self, entity_id: str, field: Mapping[str, Any]) -> Optional[FieldRecord]:
        entity = self.get_entity(entity_id)
        if entity is None:
            return None
        _check_field_name_free(entity, field["name"])
        new_field = _build_field(field)
        self._replace(entity_id, lambda e: {**e, "fields": [*e["fields"], new_field]})
        return new_field

    def update_field(
        self, entity_id: str, field_id: str, updates: Mapping[str, Any]
    ) -> Optional[FieldRecord]:
        entity = self.get_entity(entity_id)
        if entity is None:
            return None
        if "name" in updates:
            _check_field_name_free(entity, updates["name"], exclude_id=field_id)
        self._replace(
            entity_id,
            lambda e: {
                **e,
                "fields": [_updated_field(f, updates) if f["id"] == field_id else f for f in e["fields"]],
            },
        )
        return self.get_field(entity_id, field_id)

    def remove_field(self, entity_id: str, field_id: str) -> None:
        self._replace(
            entity_id,
            lambda e: {**e, "fields": [f for f in e["fields"] if f["id"] != field_id]},
        )

    def get_field(self, entity_id: str, field_id: str) -> Optional[FieldRecord]:
        entity = self.get_entity(entity_id)
        if entity is None:
            return None
        for field in entity["fields"]:
            if field["id"] == field_id:
                return field
        return None

    def reset(self) -> None:
        self._entities = []
        self.selected_entity_id = None
        self.selected_entity_ids = []
