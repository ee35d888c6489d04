"""
Time codec for subtitle timestamps.

Converts between a seconds offset and the canonical `HH:MM:SS.mmm` string.
All arithmetic is done on integer milliseconds so that repeated
format/parse cycles never drift.
"""

from __future__ import annotations

import math
import re

from subtrack.exceptions import MalformedTimestampError

_TIMESTAMP_RE = re.compile(r"^(\d{2,}):([0-5]\d):([0-5]\d)[.,](\d{3})$")

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE


def seconds_to_millis(seconds: float) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise MalformedTimestampError(f"Expected seconds as a number, got {seconds!r}")
    if not math.isfinite(seconds) or seconds < 0:
        raise MalformedTimestampError(f"Cannot format offset {seconds!r} as a timestamp")
    # Half-up, matching how editors display rounded offsets.
    return int(math.floor(seconds * MS_PER_SECOND + 0.5))


def millis_to_timestamp(millis: int, *, separator: str = ".") -> str:
    if millis < 0:
        raise MalformedTimestampError(f"Cannot format offset {millis}ms as a timestamp")
    hh, rem = divmod(millis, MS_PER_HOUR)
    mm, rem = divmod(rem, MS_PER_MINUTE)
    ss, ms = divmod(rem, MS_PER_SECOND)
    return f"{hh:02d}:{mm:02d}:{ss:02d}{separator}{ms:03d}"


def timestamp_to_millis(text: str) -> int:
    if not isinstance(text, str):
        raise MalformedTimestampError(f"Expected a timestamp string, got {text!r}")
    match = _TIMESTAMP_RE.match(text.strip())
    if match is None:
        raise MalformedTimestampError(f"Malformed timestamp {text!r}; expected HH:MM:SS.mmm")
    hh, mm, ss, ms = (int(part) for part in match.groups())
    return hh * MS_PER_HOUR + mm * MS_PER_MINUTE + ss * MS_PER_SECOND + ms


def seconds_to_timestamp(seconds: float) -> str:
    """Format a seconds offset as `HH:MM:SS.mmm`."""
    return millis_to_timestamp(seconds_to_millis(seconds))


def timestamp_to_seconds(text: str) -> float:
    """Parse `HH:MM:SS.mmm` (or the SRT `HH:MM:SS,mmm` form) into seconds."""
    return timestamp_to_millis(text) / MS_PER_SECOND


def canonical_timestamp(text: str) -> str:
    return millis_to_timestamp(timestamp_to_millis(text))


def format_srt_time(seconds: float) -> str:
    # seconds -> "HH:MM:SS,mmm"
    return millis_to_timestamp(seconds_to_millis(seconds), separator=",")
