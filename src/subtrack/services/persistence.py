from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from subtrack.domain.track import Track
from subtrack.exceptions import ConfigurationError, InputError, StorageError
from subtrack.services.store import KeyValueStore
from subtrack.utils.logging import get_logger

log = get_logger(__name__)

TrackLoader = Callable[[], Track]


class CueRecord(BaseModel):
    """Plain persisted form of a cue: formatted timestamps, not seconds."""

    model_config = ConfigDict(extra="ignore")

    start: str
    end: str
    text: str = ""


_RECORDS = TypeAdapter(list[CueRecord])


def dump_track(track: Track) -> str:
    return json.dumps(track.to_records(), ensure_ascii=False)


def parse_track(payload: str | bytes) -> Track:
    """
    Parse a JSON list of `{start, end, text}` records.

    Raises InputError (or one of its timestamp subclasses) when the payload
    is not valid JSON, has the wrong shape, or holds an impossible cue.
    """
    try:
        records = _RECORDS.validate_json(payload)
    except ValidationError as exc:
        raise InputError(f"Not a list of cue records: {exc.error_count()} problem(s)") from exc
    return Track.from_records(record.model_dump() for record in records)


def load_sample_track(path: str | Path | None = None) -> Track:
    if path is None:
        source = resources.files("subtrack") / "data" / "sample.json"
        return parse_track(source.read_text(encoding="utf-8"))
    try:
        payload = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read sample track {path}: {exc}") from exc
    return parse_track(payload)


def load_initial_track(store: KeyValueStore, key: str, fallback: TrackLoader) -> Track:
    """
    Load the last persisted track, or the fallback when there is none.

    Missing, empty, or unreadable persisted state never raises; it is logged
    and replaced by `fallback()`.
    """
    try:
        payload = store.get(key)
    except StorageError as exc:
        log.warning("Persisted track unavailable (%s); using fallback", exc)
        return fallback()

    if payload is None:
        log.info("No persisted track under %r; using fallback", key)
        return fallback()

    try:
        track = parse_track(payload)
    except InputError as exc:
        log.warning("Persisted track under %r is malformed (%s); using fallback", key, exc)
        return fallback()

    if not track:
        log.info("Persisted track under %r is empty; using fallback", key)
        return fallback()
    return track
