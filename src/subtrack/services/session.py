"""
Editing session for SubTrack.

An EditorSession owns the live track for one editing session and couples
every edit to the undo history and the persistence write:

1) Run the pure Track operation
2) Drop the result if it is structurally equal to the current track
3) Persist the new track under the session key
4) Snapshot the previous track (when the edit is undoable)
5) Make the new track current

Responsibilities:
- Keep history and persisted state in step with accepted edits
- Report what happened (EditResult) and optionally notify a sink

Does NOT:
- Decide cue content acceptability (callers set `Cue.check`)
- Render anything or drive playback
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from subtrack.config.settings import Settings
from subtrack.domain.cue import Cue
from subtrack.domain.track import CueLike, Track
from subtrack.services import validation
from subtrack.services.history import DEFAULT_HISTORY_LIMIT, History
from subtrack.services.persistence import (
    TrackLoader,
    dump_track,
    load_initial_track,
    load_sample_track,
)
from subtrack.services.store import KeyValueStore, MemoryStore
from subtrack.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_SESSION_KEY = "subtitle"


@dataclass(frozen=True)
class Notice:
    message: str
    level: str = "info"


@dataclass(frozen=True)
class EditResult:
    old: Track
    new: Track
    changed: bool

    @property
    def track(self) -> Track:
        return self.new


Notifier = Callable[[Notice], None]


class EditorSession:
    def __init__(
        self,
        track: Track | None = None,
        *,
        store: KeyValueStore | None = None,
        key: str = DEFAULT_SESSION_KEY,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        notify: Optional[Notifier] = None,
    ) -> None:
        self._track = track if track is not None else Track()
        self.store = store if store is not None else MemoryStore()
        self.key = key
        self.history = History(history_limit)
        self._notify = notify

    @classmethod
    def open(
        cls,
        store: KeyValueStore,
        settings: Settings | None = None,
        *,
        fallback: TrackLoader | None = None,
        notify: Optional[Notifier] = None,
    ) -> "EditorSession":
        """Start a session from the last persisted track or the fallback source."""
        settings = settings or Settings()
        if fallback is None:
            sample_path = settings.sample_path

            def fallback() -> Track:
                return load_sample_track(sample_path)

        track = load_initial_track(store, settings.session_key, fallback)
        log.debug("Session opened with %d cue(s)", len(track))
        return cls(
            track,
            store=store,
            key=settings.session_key,
            history_limit=settings.history_limit,
            notify=notify,
        )

    @property
    def track(self) -> Track:
        return self._track

    def _emit(self, message: str, level: str) -> None:
        if self._notify is not None:
            self._notify(Notice(message=message, level=level))

    def commit(self, new_track: Track, *, save_to_history: bool = True) -> EditResult:
        old = self._track
        if new_track == old:
            return EditResult(old=old, new=old, changed=False)

        # A failed write raises before any state changes.
        self.store.set(self.key, dump_track(new_track))
        if save_to_history:
            self.history.snapshot(old)
        self._track = new_track
        log.debug("Committed track: %d -> %d cue(s)", len(old), len(new_track))
        return EditResult(old=old, new=new_track, changed=True)

    def _apply(self, action: str, new_track: Track) -> EditResult:
        result = self.commit(new_track)
        if not result.changed:
            self._emit(f"{action.capitalize()} had no effect", "warning")
        return result

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def add(self, index: int, cue: CueLike) -> EditResult:
        return self._apply("add", self._track.insert(index, cue))

    def remove(self, cue: Cue) -> EditResult:
        return self._apply("remove", self._track.remove(cue))

    def update(self, cue: Cue, **fields: Any) -> EditResult:
        return self._apply("update", self._track.update(cue, **fields))

    def merge(self, cue: Cue) -> EditResult:
        return self._apply("merge", self._track.merge(cue))

    def split(self, cue: Cue, offset: int | None) -> EditResult:
        return self._apply("split", self._track.split(cue, offset))

    def undo(self) -> EditResult:
        previous = self.history.undo()
        if previous is None:
            self._emit("Nothing to undo", "info")
            return EditResult(old=self._track, new=self._track, changed=False)
        return self.commit(previous, save_to_history=False)

    def clear(self) -> EditResult:
        result = self.commit(self._track.clear())
        self.history.clear()
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def active_index(self, playback_seconds: float) -> int:
        return self._track.active_index(playback_seconds)

    def is_acceptable(self, index: int) -> bool:
        return validation.is_acceptable(self._track, index)

    def unacceptable(self) -> list[int]:
        return validation.unacceptable_indices(self._track)
