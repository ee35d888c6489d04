from __future__ import annotations

import inspect
import json
import os
from pathlib import Path

import pytest
import typer.testing

from subtrack.domain.cue import Cue
from subtrack.domain.track import Track
from subtrack.services.store import JsonFileStore


def _patch_clirunner() -> None:
    if "mix_stderr" in inspect.signature(typer.testing.CliRunner).parameters:
        return

    class PatchedCliRunner(typer.testing.CliRunner):
        def __init__(self, *args, **kwargs):  # noqa: ANN002, ANN003
            kwargs.pop("mix_stderr", None)
            super().__init__(*args, **kwargs)

    typer.testing.CliRunner = PatchedCliRunner


_patch_clirunner()


@pytest.fixture
def hello_cue() -> Cue:
    return Cue.create("00:00:00.000", "00:00:02.000", "Hello")


@pytest.fixture
def hello_track(hello_cue: Cue) -> Track:
    return Track((hello_cue,))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("SUBTRACK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def store_file(tmp_path: Path):
    """Return a writer that seeds a store file with cue records."""

    def _write(records: list[dict], key: str = "subtitle") -> Path:
        path = tmp_path / "store.json"
        JsonFileStore(path).set(key, json.dumps(records))
        return path

    return _write
