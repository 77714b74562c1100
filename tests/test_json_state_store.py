from __future__ import annotations

import json
import os

from adapters.json_state_store import JsonStateStore
from core.models import NotificationState


def test_missing_file_loads_empty_state(tmp_path) -> None:
    store = JsonStateStore(str(tmp_path / "state.json"))
    assert store.load() == NotificationState()


def test_save_then_load(tmp_path) -> None:
    path = tmp_path / "nested" / "state.json"
    store = JsonStateStore(str(path))
    state = NotificationState(
        notified={"https://s.kz/e/1|abc": 1_700_000_000_000},
        last_fingerprint={"https://s.kz/e/1": "abc"},
    )

    store.save(state)

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "notified": {"https://s.kz/e/1|abc": 1_700_000_000_000},
        "lastFingerprint": {"https://s.kz/e/1": "abc"},
    }
    assert store.load() == state
    # Only the target file remains; the temp file was renamed over it.
    assert os.listdir(path.parent) == ["state.json"]


def test_save_replaces_previous_content(tmp_path) -> None:
    store = JsonStateStore(str(tmp_path / "state.json"))
    store.save(NotificationState(notified={"a": 1}))
    store.save(NotificationState(notified={"b": 2}))
    assert store.load().notified == {"b": 2}


def test_corrupt_file_loads_empty_state(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonStateStore(str(path)).load() == NotificationState()


def test_invalid_schema_loads_empty_state(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"notified": {"a": "soon"}}), encoding="utf-8")
    assert JsonStateStore(str(path)).load() == NotificationState()


def test_reads_state_written_by_first_version(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text(
        json.dumps({"notified": {"https://s.kz/e/1|-42": 1}, "lastHash": {"https://s.kz/e/1": "-42"}}),
        encoding="utf-8",
    )
    state = JsonStateStore(str(path)).load()
    assert state.last_fingerprint == {"https://s.kz/e/1": "-42"}
