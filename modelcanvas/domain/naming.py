"""Identifier helpers shared by the stores and the import validator."""
from __future__ import annotations

import re
import uuid

_UPPER = re.compile(r"([A-Z])")


def to_snake_case(value: str) -> str:
    """OrderItem -> order_item."""
    return _UPPER.sub(r"_\1", value).lower().lstrip("_")


def derived_field_name(name: str) -> str:
    """Name a field is generated under; must be unique within its entity."""
    return to_snake_case(name.strip())


def default_table_name(entity_name: str) -> str:
    return f"{to_snake_case(entity_name)}s"


def new_id() -> str:
    return str(uuid.uuid4())
