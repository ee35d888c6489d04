from __future__ import annotations

from subtrack.domain.track import MIN_CUE_MS, Track

MIN_CUE_SECONDS = MIN_CUE_MS / 1000

OVERLAP = "overlap"
REJECTED = "rejected"
TOO_SHORT = "too_short"


def violations(track: Track, index: int) -> list[str]:
    """
    Return the rules the cue at `index` breaks, in a stable order.

    Only the immediate predecessor is considered for overlap; the cue's
    own `check` flag and its duration cover the rest.
    """
    if index < 0 or index >= len(track):
        raise IndexError(f"cue index {index} out of range for track of {len(track)}")
    cue = track[index]
    found: list[str] = []
    if index > 0 and cue.start_ms < track[index - 1].end_ms:
        found.append(OVERLAP)
    if not cue.check:
        found.append(REJECTED)
    if cue.duration_ms < MIN_CUE_MS:
        found.append(TOO_SHORT)
    return found


def is_acceptable(track: Track, index: int) -> bool:
    return not violations(track, index)


def unacceptable_indices(track: Track) -> list[int]:
    return [index for index in range(len(track)) if violations(track, index)]
