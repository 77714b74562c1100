from __future__ import annotations

import pytest

from core.errors import StateValidationError
from core.models import NotificationState
from core.state import (
    prune,
    record_fingerprint,
    record_notified,
    restore_fingerprint,
    should_notify,
    state_from_dict,
    state_to_dict,
)

HOUR_MS = 3600 * 1000
TTL_MS = 48 * HOUR_MS


def test_ttl_pruning_allows_renotification() -> None:
    state = NotificationState()
    t = 1_700_000_000_000
    record_notified(state, "k", t)

    assert "k" in prune(state, TTL_MS, t + 1).notified
    pruned = prune(state, TTL_MS, t + TTL_MS + 1)
    assert "k" not in pruned.notified
    assert should_notify(pruned, "k")


def test_entry_exactly_at_cutoff_is_kept() -> None:
    state = NotificationState(notified={"k": 1000})
    assert "k" in prune(state, ttl_ms=500, now_ms=1500).notified


def test_prune_keeps_fingerprints() -> None:
    state = NotificationState(notified={"k|f": 0}, last_fingerprint={"k": "f"})
    pruned = prune(state, TTL_MS, 10 * TTL_MS)
    assert pruned.notified == {}
    assert pruned.last_fingerprint == {"k": "f"}
    # The input state is left untouched.
    assert state.notified == {"k|f": 0}


def test_at_most_one_notification_per_key_within_ttl() -> None:
    state = NotificationState()
    assert should_notify(state, "k")
    record_notified(state, "k", 1)
    assert not should_notify(state, "k")


def test_force_flag_bypasses_history() -> None:
    state = NotificationState(notified={"k": 1})
    assert should_notify(state, "k", force=True)


def test_record_fingerprint_reports_change_only_against_prior_value() -> None:
    state = NotificationState()
    assert record_fingerprint(state, "k", "f1") is False
    assert record_fingerprint(state, "k", "f1") is False
    assert record_fingerprint(state, "k", "f2") is True
    assert state.last_fingerprint["k"] == "f2"


def test_restore_fingerprint() -> None:
    state = NotificationState(last_fingerprint={"k": "f2", "j": "x"})
    restore_fingerprint(state, "k", "f1")
    restore_fingerprint(state, "j", None)
    assert state.last_fingerprint == {"k": "f1"}


def test_state_dict_shape() -> None:
    state = NotificationState(notified={"a|f": 5}, last_fingerprint={"a": "f"})
    raw = state_to_dict(state)
    assert raw == {"notified": {"a|f": 5}, "lastFingerprint": {"a": "f"}}
    assert state_from_dict(raw) == state


def test_state_from_dict_accepts_legacy_hash_key_and_missing_maps() -> None:
    state = state_from_dict({"notified": {"a": 1.0}, "lastHash": {"a": "-12345"}})
    assert state.notified == {"a": 1}
    assert state.last_fingerprint == {"a": "-12345"}
    assert state_from_dict({}) == NotificationState()


@pytest.mark.parametrize(
    "raw",
    [
        [],
        "state",
        {"notified": []},
        {"notified": {"a": "yesterday"}},
        {"notified": {"a": True}},
        {"lastFingerprint": {"a": 1}},
        {"lastFingerprint": "f"},
    ],
)
def test_state_from_dict_rejects_bad_schema(raw) -> None:
    with pytest.raises(StateValidationError):
        state_from_dict(raw)
