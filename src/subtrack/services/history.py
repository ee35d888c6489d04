from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from subtrack.domain.track import Track
from subtrack.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 1000


class History:
    """
    Bounded undo stack of track snapshots.

    Tracks are immutable values, so storing the track object is already an
    independent snapshot. When the stack is full the oldest snapshot is
    dropped to make room. There is no redo.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_LIMIT) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self._stack: Deque[Track] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._stack.maxlen or 0

    @property
    def can_undo(self) -> bool:
        return bool(self._stack)

    def __len__(self) -> int:
        return len(self._stack)

    def snapshot(self, track: Track) -> None:
        if len(self._stack) == self.capacity:
            log.debug("history full (%d); dropping oldest snapshot", self.capacity)
        self._stack.append(track)

    def undo(self) -> Optional[Track]:
        if not self._stack:
            return None
        return self._stack.pop()

    def clear(self) -> None:
        self._stack.clear()
