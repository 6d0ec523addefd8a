"""Ports the stores use to talk to each other without holding concrete references."""
from __future__ import annotations

from typing import Protocol


class RemovalListener(Protocol):
    """Told synchronously, inside the owner's removal call, that an id is gone."""

    def notify_removed(self, removed_id: str) -> None:
        ...


class ReplacementListener(Protocol):
    """Told when an owner's collection was replaced wholesale (e.g. by import)."""

    def request_auto_layout(self) -> None:
        ...
