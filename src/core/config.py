"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_DETAIL_URL_PATTERN = r"ticketon\.kz/.+/event/"
DEFAULT_WAITING_ROOM_PATTERN = r"Комната ожидания|ожидания|очередь"


@dataclass(frozen=True)
class ScanConfig:
    """Settings that drive one scan cycle."""

    detail_url_pattern: re.Pattern
    deep_check: bool = True
    force_notify: bool = False
    ttl_hours: float = 48
    notify_delay_seconds: float = 0.9
    waiting_room_pattern: Optional[re.Pattern] = None

    @property
    def ttl_ms(self) -> int:
        return int(self.ttl_hours * 3600 * 1000)


@dataclass(frozen=True)
class BrowserConfig:
    """Renderer settings consumed by the Playwright adapter."""

    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
    )
    locale: str = "ru-RU"
    nav_attempts: int = 2
    nav_timeout_ms: int = 60_000
    default_timeout_ms: int = 20_000
    target_settle_ms: int = 15_000
    detail_settle_ms: int = 10_000
    post_load_pause_seconds: float = 1.0


def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern:
    """Compile a configured regex, reporting the offending value on failure."""

    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise ValueError(f"Invalid pattern {pattern!r}: {exc}") from exc
