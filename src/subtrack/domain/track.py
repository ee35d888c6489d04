"""
Track model for SubTrack.

A Track is an immutable, ordered sequence of Cues. Every mutation returns
a new Track, or the very same Track object when the request is a no-op
(unknown cue, rejected edit, degenerate split/merge). Callers can therefore
detect "nothing happened" with an identity check and never observe a
partially applied edit.

Responsibilities:
- Resolve cues by value and apply insert/remove/update/merge/split
- Answer the playback query (which cue is active at a position)

Does NOT:
- Keep undo history (History does)
- Persist anything (the session and stores do)
- Re-sort cues; positional order is the caller's responsibility
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Union

from subtrack.domain.cue import Cue
from subtrack.exceptions import InvalidTimeRangeError
from subtrack.utils.logging import get_logger
from subtrack.utils.timecode import millis_to_timestamp

log = get_logger(__name__)

MIN_CUE_MS = 200

CueLike = Union[Cue, Mapping[str, Any]]


def _as_cue(value: CueLike) -> Cue:
    if isinstance(value, Cue):
        return value
    return Cue.from_record(value)


@dataclass(frozen=True)
class Track:
    cues: tuple[Cue, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "cues", tuple(self.cues))

    @classmethod
    def from_records(cls, records: Iterable[CueLike]) -> "Track":
        return cls(tuple(_as_cue(item) for item in records))

    def to_records(self) -> list[dict[str, str]]:
        return [cue.to_record() for cue in self.cues]

    def __len__(self) -> int:
        return len(self.cues)

    def __iter__(self) -> Iterator[Cue]:
        return iter(self.cues)

    def __getitem__(self, index: int) -> Cue:
        return self.cues[index]

    def _replace_span(self, index: int, count: int, new: Iterable[Cue]) -> "Track":
        cues = list(self.cues)
        cues[index : index + count] = list(new)
        return Track(tuple(cues))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def index_of(self, cue: Cue) -> int:
        for index, item in enumerate(self.cues):
            if item == cue:
                return index
        return -1

    def active_index(self, playback_seconds: float) -> int:
        """Index of the first cue with start <= t < end, or -1."""
        for index, cue in enumerate(self.cues):
            if cue.start_time <= playback_seconds < cue.end_time:
                return index
        return -1

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def insert(self, index: int, cue: CueLike) -> "Track":
        cues = list(self.cues)
        cues.insert(index, _as_cue(cue))
        return Track(tuple(cues))

    def remove(self, cue: Cue) -> "Track":
        index = self.index_of(cue)
        if index < 0:
            log.debug("remove ignored: cue not in track")
            return self
        return self._replace_span(index, 1, ())

    def update(self, cue: Cue, **fields: Any) -> "Track":
        index = self.index_of(cue)
        if index < 0:
            log.debug("update ignored: cue not in track")
            return self
        try:
            replacement = cue.with_fields(**fields)
        except InvalidTimeRangeError as exc:
            log.debug("update rejected: %s", exc)
            return self
        if not replacement.check:
            log.debug("update rejected: replacement failed the content check")
            return self
        if replacement == cue:
            return self
        return self._replace_span(index, 1, (replacement,))

    def merge(self, cue: Cue) -> "Track":
        index = self.index_of(cue)
        if index < 0 or index + 1 >= len(self.cues):
            log.debug("merge ignored: no cue or no successor")
            return self
        following = self.cues[index + 1]
        try:
            merged = Cue(
                start=cue.start,
                end=following.end,
                text=f"{cue.text.strip()}\n{following.text.strip()}",
            )
        except InvalidTimeRangeError as exc:
            log.debug("merge rejected: %s", exc)
            return self
        return self._replace_span(index, 2, (merged,))

    def split(self, cue: Cue, offset: int | None) -> "Track":
        index = self.index_of(cue)
        text = cue.text
        if index < 0 or not text or not offset or offset < 0 or offset >= len(text):
            log.debug("split ignored: cue missing, empty or offset out of range")
            return self

        head = text[:offset].strip()
        tail = text[offset:].strip()
        if not head or not tail:
            log.debug("split ignored: one side would be empty")
            return self

        # Proportional to the character offset, rounded half-up to the ms.
        split_ms = int(math.floor(cue.duration_ms * offset / len(text) + 0.5))
        if split_ms < MIN_CUE_MS or cue.duration_ms - split_ms < MIN_CUE_MS:
            log.debug("split ignored: a half would be shorter than %sms", MIN_CUE_MS)
            return self

        middle = millis_to_timestamp(cue.start_ms + split_ms)
        first = Cue(start=cue.start, end=middle, text=head)
        second = Cue(start=middle, end=cue.end, text=tail)
        return self._replace_span(index, 1, (first, second))

    def clear(self) -> "Track":
        return Track()
