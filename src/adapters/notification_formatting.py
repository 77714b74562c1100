"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from typing import Callable, List, Optional

from core.models import Alert

HEADER = "👟 Keyword match found!"
CHANGED_NOTE = "♻️ Changes detected on a known page."


def _build_lines(alert: Alert, escape: Callable[[str], str], link: Callable[[str], str]) -> str:
    # Fixed structure: header, link, optional text, optional change note,
    # blank separator, source. Missing optional lines are omitted entirely.
    lines: List[Optional[str]] = [
        HEADER,
        f"🔗 {link(alert.href)}",
        f"🧾 {escape(alert.text)}" if alert.text else None,
        CHANGED_NOTE if alert.changed else None,
        "",
        f"Source: {link(alert.source_url)}",
    ]
    return "\n".join(line for line in lines if line is not None)


def _format_plain(alert: Alert) -> str:
    return _build_lines(alert, escape=lambda value: value, link=lambda url: url)


def _format_html(alert: Alert) -> str:
    """Create the HTML notification body used by both Telegram adapters."""

    def link(url: str) -> str:
        safe = html.escape(url)
        return f"<a href=\"{safe}\">{safe}</a>"

    return _build_lines(alert, escape=html.escape, link=link)


def format_notification(alert: Alert, mode: str = "plain") -> str:
    """Return the notification formatted for the requested mode."""

    if mode == "plain":
        return _format_plain(alert)
    if mode == "html":
        return _format_html(alert)
    raise ValueError(f"Unsupported notification format: {mode}")
