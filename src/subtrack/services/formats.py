"""SRT and WebVTT import/export for tracks."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

from subtrack.domain.cue import Cue
from subtrack.domain.track import Track
from subtrack.exceptions import InputError, SubtitleFormatError
from subtrack.utils.timecode import millis_to_timestamp

FORMATS = ("json", "srt", "vtt")

_VTT_SHORT_TIME_RE = re.compile(r"^\d{2}:\d{2}[.,]\d{3}$")
_VTT_SKIP_BLOCKS = ("NOTE", "STYLE", "REGION")


def detect_format(path: str | Path) -> str:
    suffix = Path(path).suffix.lower().lstrip(".")
    if suffix not in FORMATS:
        raise SubtitleFormatError(
            f"Unsupported subtitle format {suffix or '(none)'!r}; use one of {', '.join(FORMATS)}"
        )
    return suffix


def _body(text: str) -> str:
    # A blank line ends a cue block in both formats.
    return "\n".join(line for line in text.splitlines() if line.strip())


def to_srt(track: Track) -> str:
    blocks = []
    for number, cue in enumerate(track, start=1):
        start = millis_to_timestamp(cue.start_ms, separator=",")
        end = millis_to_timestamp(cue.end_ms, separator=",")
        blocks.append(f"{number}\n{start} --> {end}\n{_body(cue.text)}")
    return "\n\n".join(blocks) + ("\n" if blocks else "")


def to_vtt(track: Track) -> str:
    blocks = ["WEBVTT"]
    for cue in track:
        blocks.append(f"{cue.start} --> {cue.end}\n{_body(cue.text)}")
    return "\n\n".join(blocks) + "\n"


def _blocks(text: str) -> Iterator[list[str]]:
    chunk: list[str] = []
    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if line.strip() == "":
            if chunk:
                yield chunk
                chunk = []
            continue
        chunk.append(line.rstrip())
    if chunk:
        yield chunk


def _parse_timing(line: str, *, vtt: bool) -> tuple[str, str]:
    left, _, right = line.partition("-->")
    start = left.strip()
    # WebVTT may append cue settings after the end time.
    end = right.split()[0] if right.strip() else ""
    if vtt:
        start, end = (f"00:{t}" if _VTT_SHORT_TIME_RE.match(t) else t for t in (start, end))
    return start, end


def _parse_blocks(text: str, *, vtt: bool) -> Track:
    cues: list[Cue] = []
    for number, block in enumerate(_blocks(text), start=1):
        if vtt and number == 1 and block[0].startswith("WEBVTT"):
            continue
        if vtt and block[0].split()[0] in _VTT_SKIP_BLOCKS:
            continue
        timing_at = next((i for i, line in enumerate(block[:2]) if "-->" in line), None)
        if timing_at is None:
            raise SubtitleFormatError(f"Block {number} has no timing line")
        start, end = _parse_timing(block[timing_at], vtt=vtt)
        body = "\n".join(block[timing_at + 1 :])
        try:
            cues.append(Cue(start=start, end=end, text=body))
        except InputError as exc:
            raise SubtitleFormatError(f"Block {number}: {exc.message}") from exc
    return Track(tuple(cues))


def from_srt(text: str) -> Track:
    return _parse_blocks(text, vtt=False)


def from_vtt(text: str) -> Track:
    stripped = text.lstrip("\ufeff")
    if not stripped.startswith("WEBVTT"):
        raise SubtitleFormatError("WebVTT document must start with 'WEBVTT'")
    return _parse_blocks(stripped, vtt=True)
