"""Telegram notification adapter for Saved Messages.

Sends the HTML notification body through the user's own Telethon session,
by default to Saved Messages.
"""

from __future__ import annotations

import asyncio

from telethon import errors

from adapters.notification_formatting import format_notification
from core.errors import NotificationError
from core.models import Alert


class TelegramSavedMessagesNotifier:
    """Notifier adapter that sends messages from the user's account."""

    def __init__(self, client, target: str = "me") -> None:
        self._client = client
        self._target = target

    async def send(self, alert: Alert) -> None:
        """Send the formatted alert to the configured chat."""

        message = format_notification(alert, mode="html")
        try:
            await self._client.send_message(self._target, message, parse_mode="html", link_preview=True)
        except (errors.RPCError, OSError, asyncio.TimeoutError, ValueError) as exc:
            raise NotificationError(f"Telegram send to {self._target} failed: {exc}") from exc
