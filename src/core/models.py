"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any browser- or messenger-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class Anchor:
    """A link as rendered on a page: resolved absolute href and visible text."""

    href: str
    text: str


@dataclass(frozen=True)
class Candidate:
    """A keyword-matching detail link found during one scan."""

    href: str
    text: str


@dataclass(frozen=True)
class PageSnapshot:
    """What the renderer exposes about a loaded target page."""

    url: str
    anchors: List[Anchor]
    body_text: str = ""


@dataclass(frozen=True)
class PageFields:
    """Salient text of a detail page, each field already collapsed to one string."""

    title: str = ""
    dates: str = ""
    buttons: str = ""
    prices: str = ""
    body: str = ""


@dataclass(frozen=True)
class Alert:
    """One notification to deliver."""

    href: str
    text: str
    changed: bool
    source_url: str


@dataclass
class NotificationState:
    """Cross-run memory of sent notifications and last seen fingerprints.

    - notified: dedup key -> epoch millis of the last notification
    - last_fingerprint: normalized href -> most recent fingerprint
    """

    notified: Dict[str, int] = field(default_factory=dict)
    last_fingerprint: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CycleReport:
    """Counters for one scan cycle, used for the summary log line."""

    targets: int
    failed_targets: int
    candidates: int
    notified: int
    delivery_failures: int
