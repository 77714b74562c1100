"""Href normalization helpers."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}


def normalize_href(href: Optional[str]) -> str:
    """Reduce an absolute URL to ``origin + path``.

    Query string and fragment are discarded so tracking parameters do not
    create new identities. Anything that does not parse as an absolute URL is
    returned unchanged; this function never raises.
    """

    if not href:
        return ""

    try:
        parts = urlsplit(href)
        port = parts.port
    except ValueError:
        return href

    if not parts.scheme or not parts.hostname:
        return href

    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"
    origin = f"{scheme}://{host}"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        origin = f"{origin}:{port}"

    return origin + (parts.path or "/")


def is_detail_href(href: Optional[str], pattern: re.Pattern) -> bool:
    """True when the href has the site-specific shape of a detail page."""

    return bool(href) and pattern.search(href) is not None
