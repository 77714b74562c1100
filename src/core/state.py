"""Notification state operations (core domain).

The state is an explicit value: loaded by a StatePort at the start of a
cycle, mutated through these helpers, and handed back to the port to save.
Nothing here touches the filesystem.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from core.errors import StateValidationError
from core.models import NotificationState

NOTIFIED_KEY = "notified"
FINGERPRINT_KEY = "lastFingerprint"
# Older state files written by the first version of the watcher.
LEGACY_FINGERPRINT_KEY = "lastHash"


def _validate_mapping(raw: Any, name: str) -> Dict[Any, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise StateValidationError(f"'{name}' must be an object, got {type(raw).__name__}")
    return raw


def state_from_dict(raw: Any) -> NotificationState:
    """Validate a decoded JSON document and build a NotificationState.

    Any schema violation raises StateValidationError; callers decide whether
    that means "start empty".
    """

    if not isinstance(raw, dict):
        raise StateValidationError(f"State must be an object, got {type(raw).__name__}")

    notified_raw = _validate_mapping(raw.get(NOTIFIED_KEY), NOTIFIED_KEY)
    fingerprints_raw = raw.get(FINGERPRINT_KEY)
    if fingerprints_raw is None:
        fingerprints_raw = raw.get(LEGACY_FINGERPRINT_KEY)
    fingerprints_raw = _validate_mapping(fingerprints_raw, FINGERPRINT_KEY)

    notified: Dict[str, int] = {}
    for key, ts in notified_raw.items():
        # bool is an int subclass; a flag is not a timestamp.
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            raise StateValidationError(f"Timestamp for {key!r} is not a number")
        notified[key] = int(ts)

    last_fingerprint: Dict[str, str] = {}
    for key, fp in fingerprints_raw.items():
        if not isinstance(fp, str):
            raise StateValidationError(f"Fingerprint for {key!r} is not a string")
        last_fingerprint[key] = fp

    return NotificationState(notified=notified, last_fingerprint=last_fingerprint)


def state_to_dict(state: NotificationState) -> Dict[str, Dict[str, Any]]:
    return {
        NOTIFIED_KEY: dict(state.notified),
        FINGERPRINT_KEY: dict(state.last_fingerprint),
    }


def prune(state: NotificationState, ttl_ms: int, now_ms: int) -> NotificationState:
    """Drop notifications older than the TTL; fingerprints are kept."""

    cutoff = now_ms - ttl_ms
    return NotificationState(
        notified={key: ts for key, ts in state.notified.items() if ts >= cutoff},
        last_fingerprint=dict(state.last_fingerprint),
    )


def should_notify(state: NotificationState, key: str, force: bool = False) -> bool:
    return force or key not in state.notified


def record_notified(state: NotificationState, key: str, now_ms: int) -> None:
    state.notified[key] = now_ms


def record_fingerprint(state: NotificationState, normalized_href: str, fingerprint: str) -> bool:
    """Store the latest fingerprint; True when it replaces a different one."""

    previous = state.last_fingerprint.get(normalized_href)
    state.last_fingerprint[normalized_href] = fingerprint
    return previous is not None and previous != fingerprint


def restore_fingerprint(
    state: NotificationState, normalized_href: str, previous: Optional[str]
) -> None:
    """Undo record_fingerprint, e.g. when the alert for it was never delivered."""

    if previous is None:
        state.last_fingerprint.pop(normalized_href, None)
    else:
        state.last_fingerprint[normalized_href] = previous
