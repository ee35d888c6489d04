from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from subtrack.exceptions import StorageError
from subtrack.utils.logging import get_logger

log = get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store; handy for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """
    Persist string values in a single JSON object file.

    Writes go to a temporary file next to the target and are moved into
    place, so a crash mid-write leaves the previous contents intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot read store {self.path}: {exc}") from exc
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as exc:
            raise StorageError(f"Store {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Store {self.path} must hold a JSON object")
        return data

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        if value is None or isinstance(value, str):
            return value
        # Tolerate hand-edited files that inline the JSON value.
        return json.dumps(value)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except StorageError as exc:
            log.warning("Overwriting unreadable store: %s", exc)
            data = {}
        data[key] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write store {self.path}: {exc}") from exc
