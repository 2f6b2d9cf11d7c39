"""
ReplayDraw History Manager

Bounded undo/redo over full snapshots of the scene's action list.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional, Tuple

from ..config import MAX_HISTORY_STEPS
from .actions import Action, clone_actions

logger = logging.getLogger(__name__)

Snapshot = Tuple[Action, ...]


@dataclass
class PushRecord:
    """Entries a push displaced: the oldest undo entry of a full stack, and the cleared redo stack."""
    evicted: Optional[Snapshot] = None
    redo: List[Snapshot] = field(default_factory=list)


class HistoryManager:
    """
    Manages the undo/redo stacks.

    Each entry is an independent deep copy of the action list, so live
    scene objects are never aliased by history. Both stacks are bounded;
    when full, the oldest entry is dropped.
    """

    def __init__(self, max_depth: int = MAX_HISTORY_STEPS):
        if max_depth < 1:
            raise ValueError("History depth must be at least 1")
        self.max_depth = max_depth
        self._undo: Deque[Snapshot] = deque(maxlen=max_depth)
        self._redo: Deque[Snapshot] = deque(maxlen=max_depth)

    @staticmethod
    def _snapshot(actions: Iterable[Action]) -> Snapshot:
        return tuple(clone_actions(actions))

    @staticmethod
    def _materialize(snapshot: Snapshot) -> List[Action]:
        # Hand out copies so the stored snapshot stays immutable
        return clone_actions(snapshot)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def push(self, actions: Iterable[Action]) -> PushRecord:
        """
        Record the pre-mutation state.

        Call before changing the scene; any pending redo history becomes
        unreachable and is cleared.

        Returns:
            A PushRecord that rollback() uses to take the push back
        """
        record = PushRecord(redo=list(self._redo))
        if len(self._undo) == self._undo.maxlen:
            record.evicted = self._undo[0]
        self._undo.append(self._snapshot(actions))
        self._redo.clear()
        return record

    def rollback(self, record: PushRecord) -> None:
        """
        Take back the most recent push, restoring both stacks to how they
        were before it.

        Usage:
            record = history.push(scene.actions)
            ...  # the change is abandoned
            history.rollback(record)
        """
        if self._undo:
            self._undo.pop()
        if record.evicted is not None:
            self._undo.appendleft(record.evicted)
        self._redo.clear()
        self._redo.extend(record.redo)

    def undo(self, current: Iterable[Action]) -> Optional[List[Action]]:
        """
        Step back one entry.

        Args:
            current: the live action list, saved for redo

        Returns:
            The action list to restore, or None when there is nothing to undo
        """
        if not self._undo:
            return None
        self._redo.append(self._snapshot(current))
        restored = self._materialize(self._undo.pop())
        logger.debug(f"Undo: {len(self._undo)} left, {len(self._redo)} redoable")
        return restored

    def redo(self, current: Iterable[Action]) -> Optional[List[Action]]:
        """Mirror of undo()."""
        if not self._redo:
            return None
        self._undo.append(self._snapshot(current))
        restored = self._materialize(self._redo.pop())
        logger.debug(f"Redo: {len(self._redo)} left, {len(self._undo)} undoable")
        return restored

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
