"""JSON file storage adapter.

Implements the core StatePort with a single JSON document:

    {
      "notified": {"<dedup key>": <epoch ms>},
      "lastFingerprint": {"<normalized href>": "<fingerprint>"}
    }
"""

from __future__ import annotations

import json
import logging
import os
import tempfile

from core.errors import StateValidationError
from core.models import NotificationState
from core.state import state_from_dict, state_to_dict

LOGGER = logging.getLogger(__name__)


class JsonStateStore:
    """Thin JSON file wrapper that satisfies the StatePort contract."""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> NotificationState:
        """Read the state; a missing or broken file means "no prior state"."""

        if not os.path.exists(self._path):
            LOGGER.info("No state file at %s, starting fresh", self._path)
            return NotificationState()

        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
            return state_from_dict(raw)
        except (OSError, ValueError, StateValidationError) as exc:
            # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors.
            LOGGER.warning("Ignoring unreadable state file %s: %s", self._path, exc)
            return NotificationState()

    def save(self, state: NotificationState) -> None:
        """Write the state atomically: temp file in the same directory, then rename."""

        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(state_to_dict(state), handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self._path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
