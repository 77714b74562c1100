"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for state, notification and rendering
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import AsyncContextManager, Protocol

from core.models import Alert, NotificationState, PageFields, PageSnapshot


class StatePort(Protocol):
    """Persistence of the notification state."""

    def load(self) -> NotificationState:
        ...

    def save(self, state: NotificationState) -> None:
        ...


class NotifierPort(Protocol):
    """Notification delivery. Raises NotificationError when delivery fails."""

    async def send(self, alert: Alert) -> None:
        ...


class PageSessionPort(Protocol):
    """A rendering context that lives for one scan cycle."""

    async def load_page(self, url: str) -> PageSnapshot:
        ...

    async def fetch_fields(self, url: str) -> PageFields:
        ...


class RendererPort(Protocol):
    """Page renderer; opens one session per scan cycle."""

    def session(self) -> AsyncContextManager[PageSessionPort]:
        ...
