"""Whole-graph undo/redo over (entities, relations) snapshots."""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from modelcanvas.domain.entities import HistorySnapshot

logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 50


class HistoryPhase(str, Enum):
    RECORDING = "recording"
    UNDOING = "undoing"
    REDOING = "redoing"


def snapshots_equal(left: Optional[HistorySnapshot], right: Optional[HistorySnapshot]) -> bool:
    """Structural comparison; records are immutable so identity is a fast path."""
    if left is right:
        return True
    if left is None or right is None:
        return False
    if len(left["entities"]) != len(right["entities"]) or len(left["relations"]) != len(right["relations"]):
        return False
    return left == right


class HistoryStore:
    """Bounded past/current/future stacks.

    ``undo`` and ``redo`` leave the store in a restoring phase in which
    ``save_snapshot`` is ignored, so re-rendering the restored graph does not
    record itself. The caller ends the phase with :meth:`finish_restore` once
    it has applied the snapshot.
    """

    def __init__(self, max_size: int = MAX_HISTORY_SIZE) -> None:
        self.max_size = max_size
        self.past: List[HistorySnapshot] = []
        self.current: Optional[HistorySnapshot] = None
        self.future: List[HistorySnapshot] = []
        self.phase = HistoryPhase.RECORDING

    @property
    def is_time_travel(self) -> bool:
        return self.phase is not HistoryPhase.RECORDING

    @property
    def can_undo(self) -> bool:
        return bool(self.past) and self.current is not None

    @property
    def can_redo(self) -> bool:
        return bool(self.future) and self.current is not None

    def save_snapshot(self, state: HistorySnapshot) -> bool:
        """Record a settled state; returns False when it was swallowed."""
        if self.is_time_travel:
            return False
        if snapshots_equal(state, self.current):
            return False
        if self.current is not None:
            self.past = [*self.past, self.current][-self.max_size:]
        self.current = state
        self.future = []
        return True

    def undo(self) -> Optional[HistorySnapshot]:
        if not self.can_undo:
            return None
        previous = self.past[-1]
        self.past = self.past[:-1]
        self.future = [self.current, *self.future]  # type: ignore[list-item]
        self.current = previous
        self.phase = HistoryPhase.UNDOING
        logger.debug(f"Undo: {len(self.past)} past, {len(self.future)} future")
        return previous

    def redo(self) -> Optional[HistorySnapshot]:
        if not self.can_redo:
            return None
        following = self.future[0]
        self.future = self.future[1:]
        self.past = [*self.past, self.current][-self.max_size:]  # type: ignore[list-item]
        self.current = following
        self.phase = HistoryPhase.REDOING
        logger.debug(f"Redo: {len(self.past)} past, {len(self.future)} future")
        return following

    def finish_restore(self) -> None:
        self.phase = HistoryPhase.RECORDING

    def clear_history(self) -> None:
        self.past = []
        self.current = None
        self.future = []
        self.phase = HistoryPhase.RECORDING
