"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so alerts can be routed to any chat the bot is
a member of.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request

from adapters.notification_formatting import format_notification
from core.errors import NotificationError
from core.models import Alert


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def _post(self, payload: dict) -> None:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise NotificationError(f"Bot API error {e.code}: {body}") from e
        except (urllib.error.URLError, OSError) as e:
            raise NotificationError(f"Bot API unreachable: {e}") from e

        try:
            reply = json.loads(body)
        except ValueError:
            reply = None
        if not isinstance(reply, dict) or not reply.get("ok", False):
            raise NotificationError(f"Bot API rejected message: {body}")

    async def send(self, alert: Alert) -> None:
        """Send the formatted alert via the Bot API."""

        payload = {
            "chat_id": self._chat_id,
            "text": format_notification(alert, mode="html"),
            "parse_mode": "HTML",
            "disable_web_page_preview": False,
        }
        # urllib blocks; keep it off the event loop.
        await asyncio.to_thread(self._post, payload)
