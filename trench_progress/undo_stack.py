"""
Bounded undo/redo history of whole feature-set snapshots.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Remember the feature set as it was before each mutating
gesture so the user can step back (and forward again).

Key Features:
- Deep-copied snapshots, fully independent of the live set
- Capacity-bounded (default 50), oldest snapshot evicted first
- At most one snapshot per gesture, however many pointer events it has
- Forward (redo) history, cleared whenever a new snapshot is pushed

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import copy
import logging
from collections import deque
from typing import Deque, List, Optional, Sequence

from trench_progress.models import Feature

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50

FeatureSet = List[Feature]


class UndoStack:
    """
    Snapshot stack with gesture de-duplication.

    ``undo``/``redo`` take the live set so it can be moved to the opposite
    stack; ``push_snapshot``/``pop_snapshot`` are the raw stack operations.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.capacity = capacity
        self._undo: Deque[FeatureSet] = deque(maxlen=capacity)
        self._redo: Deque[FeatureSet] = deque(maxlen=capacity)
        self._gesture_pushed = False

    # ═══════════════════════════════════════════════════════════════════════
    # 📥 RAW STACK OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════

    def push_snapshot(self, features: Sequence[Feature]) -> None:
        """Push a deep copy of the set; evicts the oldest beyond capacity."""
        if len(self._undo) == self.capacity:
            logger.debug("Undo history full, evicting oldest snapshot")
        self._undo.append(copy.deepcopy(list(features)))
        self._redo.clear()

    def pop_snapshot(self) -> Optional[FeatureSet]:
        """Pop the most recent snapshot, or None when there is nothing to undo."""
        if not self._undo:
            return None
        return self._undo.pop()

    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ GESTURE BRACKETING
    # ═══════════════════════════════════════════════════════════════════════

    def begin_gesture(self, features: Sequence[Feature]) -> bool:
        """
        Snapshot the set before the first mutation of a gesture.

        Returns:
            True if a snapshot was pushed by this call
        """
        if self._gesture_pushed or not features:
            return False
        self.push_snapshot(features)
        self._gesture_pushed = True
        return True

    def end_gesture(self) -> None:
        """Allow the next gesture to push its own snapshot."""
        self._gesture_pushed = False

    @property
    def in_gesture(self) -> bool:
        return self._gesture_pushed

    # ═══════════════════════════════════════════════════════════════════════
    # ↩️ UNDO / REDO
    # ═══════════════════════════════════════════════════════════════════════

    def undo(self, current: Sequence[Feature]) -> Optional[FeatureSet]:
        """
        Restore the most recent snapshot.

        Args:
            current: Live set, kept as forward history

        Returns:
            Restored set, or None when there is nothing to undo
        """
        restored = self.pop_snapshot()
        if restored is None:
            logger.debug("Nothing to undo")
            return None
        self._redo.append(copy.deepcopy(list(current)))
        logger.debug(f"Undo: {len(self._undo)} left, {len(self._redo)} redo")
        return restored

    def redo(self, current: Sequence[Feature]) -> Optional[FeatureSet]:
        """Re-apply the most recently undone set, or None when there is none."""
        if not self._redo:
            logger.debug("Nothing to redo")
            return None
        self._undo.append(copy.deepcopy(list(current)))
        return self._redo.pop()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self._gesture_pushed = False

    def __len__(self) -> int:
        return len(self._undo)
