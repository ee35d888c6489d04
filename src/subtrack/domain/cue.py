from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from subtrack.exceptions import InputError, InvalidTimeRangeError
from subtrack.utils.timecode import (
    MS_PER_SECOND,
    millis_to_timestamp,
    seconds_to_timestamp,
    timestamp_to_millis,
)

EDITABLE_FIELDS = frozenset({"start", "end", "text", "check", "start_time", "end_time"})


@dataclass(frozen=True)
class Cue:
    """
    One timed subtitle entry.

    `start` / `end` are the canonical `HH:MM:SS.mmm` strings; the seconds
    values are derived from them on construction. `check` is a
    shape-acceptability flag supplied by the caller's content rule; the
    engine stores and forwards it without computing it.
    """

    start: str
    end: str
    text: str = ""
    check: bool = True
    start_ms: int = field(init=False, repr=False, compare=False)
    end_ms: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise InputError(f"Cue text must be a string, got {type(self.text).__name__}")
        start_ms = timestamp_to_millis(self.start)
        end_ms = timestamp_to_millis(self.end)
        if end_ms <= start_ms:
            raise InvalidTimeRangeError(
                f"Cue must end after it starts ({self.start} -> {self.end})"
            )
        object.__setattr__(self, "start", millis_to_timestamp(start_ms))
        object.__setattr__(self, "end", millis_to_timestamp(end_ms))
        object.__setattr__(self, "check", bool(self.check))
        object.__setattr__(self, "start_ms", start_ms)
        object.__setattr__(self, "end_ms", end_ms)

    @classmethod
    def create(cls, start: str, end: str, text: str = "", *, check: bool = True) -> "Cue":
        return cls(start=start, end=end, text=text, check=check)

    @classmethod
    def from_seconds(
        cls,
        start_time: float,
        end_time: float,
        text: str = "",
        *,
        check: bool = True,
    ) -> "Cue":
        return cls(
            start=seconds_to_timestamp(start_time),
            end=seconds_to_timestamp(end_time),
            text=text,
            check=check,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Cue":
        try:
            start, end = record["start"], record["end"]
        except KeyError as exc:
            raise InputError(f"Cue record is missing {exc.args[0]!r}") from exc
        return cls(start=start, end=end, text=record.get("text", ""))

    def to_record(self) -> dict[str, str]:
        return {"start": self.start, "end": self.end, "text": self.text}

    @property
    def start_time(self) -> float:
        return self.start_ms / MS_PER_SECOND

    @property
    def end_time(self) -> float:
        return self.end_ms / MS_PER_SECOND

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    @property
    def duration(self) -> float:
        return self.duration_ms / MS_PER_SECOND

    def clone(self) -> "Cue":
        return replace(self)

    def with_fields(self, **fields: Any) -> "Cue":
        """
        Return a new Cue with the given fields replaced.

        Times may be given either as timestamps (`start`, `end`) or as
        seconds (`start_time`, `end_time`), but not both for the same bound.
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Unknown cue field(s): {', '.join(sorted(unknown))}")

        changes = dict(fields)
        for seconds_key, text_key in (("start_time", "start"), ("end_time", "end")):
            if seconds_key not in changes:
                continue
            if text_key in changes:
                raise TypeError(f"Pass either {text_key!r} or {seconds_key!r}, not both")
            changes[text_key] = seconds_to_timestamp(changes.pop(seconds_key))
        return replace(self, **changes)
