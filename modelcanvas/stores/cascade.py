"""Fan-out of an entity removal to its dependents, in a fixed order."""
from __future__ import annotations

from typing import List

from modelcanvas.domain.ports import RemovalListener


class EntityRemovalCascade:
    """The entity store's single removal listener.

    Relations go first, then service membership, then per-entity UI state,
    all before ``EntityStore.remove_entity`` returns.
    """

    def __init__(self, *listeners: RemovalListener) -> None:
        self._listeners: List[RemovalListener] = list(listeners)

    def notify_removed(self, removed_id: str) -> None:
        for listener in self._listeners:
            listener.notify_removed(removed_id)
