"""Content fingerprinting and dedup key helpers (core domain)."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from core.models import PageFields

MATCH_SEPARATOR = " | "
SECTION_SEPARATOR = " || "
KEY_SEPARATOR = "|"
BODY_EXCERPT_CHARS = 5000
DIGEST_CHARS = 16


@dataclass(frozen=True)
class Fingerprint:
    """Digest of a detail page.

    ``degraded`` marks a fallback computed from the href alone because the
    page could not be rendered; such a fingerprint only tells pages apart,
    not content versions.
    """

    value: str
    degraded: bool = False


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def join_matches(texts: Iterable[Optional[str]]) -> str:
    """Collapse several element texts into one field value."""

    collapsed = (_collapse_whitespace(text or "") for text in texts)
    return MATCH_SEPARATOR.join(text for text in collapsed if text)


def excerpt_body(text: Optional[str]) -> str:
    """Whitespace-normalized body text, bounded in length."""

    return _collapse_whitespace(text or "")[:BODY_EXCERPT_CHARS]


def build_fingerprint_payload(fields: PageFields) -> str:
    """Concatenate the structured fields, then the body excerpt."""

    structured = [fields.title, fields.dates, fields.buttons, fields.prices]
    head = SECTION_SEPARATOR.join(part for part in structured if part)
    return f"{head}{SECTION_SEPARATOR}{fields.body}"


def digest(payload: str) -> str:
    """Deterministic short digest; collisions are unlikely but harmless."""

    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:DIGEST_CHARS]


def fingerprint_fields(fields: PageFields) -> Fingerprint:
    return Fingerprint(value=digest(build_fingerprint_payload(fields)))


def fallback_fingerprint(href: str) -> Fingerprint:
    return Fingerprint(value=digest(href or ""), degraded=True)


def build_dedup_key(normalized_href: str, fingerprint: Optional[Fingerprint] = None) -> str:
    """Detail items are keyed by href and content, listing items by href only."""

    if fingerprint is None:
        return normalized_href
    return f"{normalized_href}{KEY_SEPARATOR}{fingerprint.value}"
