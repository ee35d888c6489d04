from __future__ import annotations

import json

import pytest

from subtrack.config.settings import Settings
from subtrack.domain.cue import Cue
from subtrack.domain.track import Track
from subtrack.exceptions import StorageError
from subtrack.services.persistence import dump_track
from subtrack.services.session import EditorSession, Notice
from subtrack.services.store import MemoryStore


class FailingStore(MemoryStore):
    def set(self, key: str, value: str) -> None:
        raise StorageError("quota exceeded")


def _session(track: Track, **kwargs) -> tuple[EditorSession, MemoryStore]:  # noqa: ANN003
    store = MemoryStore()
    return EditorSession(track, store=store, **kwargs), store


def test_edit_persists_and_snapshots(hello_track: Track, hello_cue: Cue) -> None:
    session, store = _session(hello_track)
    result = session.split(hello_cue, 2)

    assert result.changed
    assert result.old is hello_track
    assert result.new is session.track
    assert len(session.track) == 2
    assert len(session.history) == 1
    assert json.loads(store.get("subtitle")) == session.track.to_records()


def test_undo_restores_previous_track(hello_track: Track, hello_cue: Cue) -> None:
    session, store = _session(hello_track)
    session.split(hello_cue, 2)
    session.merge(session.track[0])
    assert [cue.text for cue in session.track] == ["He\nllo"]

    session.undo()
    assert [cue.text for cue in session.track] == ["He", "llo"]
    session.undo()
    assert session.track == hello_track
    assert json.loads(store.get("subtitle")) == hello_track.to_records()
    assert not session.history.can_undo


def test_noop_edits_do_not_touch_history_or_store(hello_track: Track, hello_cue: Cue) -> None:
    notices: list[Notice] = []
    session, store = _session(hello_track, notify=notices.append)
    stale = hello_cue.with_fields(text="stale")

    for result in (
        session.remove(stale),
        session.update(stale, text="x"),
        session.merge(stale),
        session.split(stale, 2),
        session.update(hello_cue, text="Hello"),
    ):
        assert not result.changed
        assert result.new is hello_track

    assert session.track is hello_track
    assert len(session.history) == 0
    assert store.get("subtitle") is None
    assert [n.level for n in notices] == ["warning"] * 5


def test_rejected_update_leaves_track(hello_track: Track, hello_cue: Cue) -> None:
    session, _ = _session(hello_track)
    assert not session.update(hello_cue, text="too long", check=False).changed
    assert session.track is hello_track


def test_commit_equal_track_is_free(hello_track: Track, hello_cue: Cue) -> None:
    session, store = _session(hello_track)
    result = session.commit(Track((hello_cue.clone(),)))
    assert not result.changed
    assert store.get("subtitle") is None
    assert len(session.history) == 0


def test_history_is_bounded(hello_track: Track) -> None:
    session, _ = _session(hello_track)
    for n in range(1005):
        session.add(len(session.track), Cue.from_seconds(2 + n, 3 + n, f"cue {n}"))

    restored = 0
    while session.undo().changed:
        restored += 1
    assert restored == 1000
    assert len(session.track) == 6


def test_small_history_limit(hello_track: Track, hello_cue: Cue) -> None:
    session, _ = _session(hello_track, history_limit=1)
    session.update(hello_cue, text="one")
    session.update(session.track[0], text="two")
    assert session.undo().changed
    assert session.track[0].text == "one"
    assert not session.undo().changed


def test_clear_resets_history(hello_track: Track, hello_cue: Cue) -> None:
    notices: list[Notice] = []
    session, store = _session(hello_track, notify=notices.append)
    session.split(hello_cue, 2)

    result = session.clear()
    assert result.changed
    assert len(session.track) == 0
    assert store.get("subtitle") == "[]"
    assert not session.undo().changed
    assert notices == [Notice(message="Nothing to undo", level="info")]


def test_store_failure_surfaces_and_keeps_state(hello_track: Track, hello_cue: Cue) -> None:
    session = EditorSession(hello_track, store=FailingStore())
    with pytest.raises(StorageError):
        session.split(hello_cue, 2)
    assert session.track is hello_track
    assert len(session.history) == 0


def test_queries(hello_track: Track, hello_cue: Cue) -> None:
    session, _ = _session(hello_track)
    session.add(1, Cue.create("00:00:01.500", "00:00:03.000", "overlap"))
    assert session.active_index(0.5) == 0
    assert session.active_index(1.9) == 0
    assert session.active_index(2.5) == 1
    assert session.is_acceptable(0)
    assert not session.is_acceptable(1)
    assert session.unacceptable() == [1]


def test_open_uses_persisted_track(hello_track: Track) -> None:
    store = MemoryStore({"subtitle": dump_track(hello_track)})
    session = EditorSession.open(store, Settings(history_limit=5))
    assert session.track == hello_track
    assert session.history.capacity == 5


def test_open_falls_back_to_bundled_sample() -> None:
    session = EditorSession.open(MemoryStore({"subtitle": "garbage"}), Settings())
    assert len(session.track) > 0
    assert session.key == "subtitle"


def test_open_with_custom_key_and_fallback(hello_track: Track) -> None:
    store = MemoryStore()
    session = EditorSession.open(store, Settings(session_key="draft"), fallback=lambda: hello_track)
    assert session.track is hello_track
    session.update(session.track[0], text="Hi")
    assert json.loads(store.get("draft"))[0]["text"] == "Hi"
