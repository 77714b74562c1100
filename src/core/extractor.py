"""Candidate extraction from rendered anchors (core domain)."""

from __future__ import annotations

import re
from typing import Iterable, List, Set, Tuple

from core.models import Anchor, Candidate
from core.rules_engine import Rule, matches
from core.urls import is_detail_href, normalize_href


def extract_candidates(
    anchors: Iterable[Anchor],
    rules: List[Rule],
    detail_pattern: re.Pattern,
) -> List[Candidate]:
    """Keep detail links whose text or href satisfies the keyword rules.

    Pure filter: anchor order is preserved and nothing is fetched.
    """

    candidates: List[Candidate] = []
    for anchor in anchors:
        href = anchor.href or ""
        if not href:
            continue
        if not is_detail_href(href, detail_pattern):
            continue
        text = (anchor.text or "").strip()
        if matches(text, rules) or matches(href, rules):
            candidates.append(Candidate(href=href, text=text))
    return candidates


def dedupe_candidates(candidates: Iterable[Candidate]) -> List[Tuple[str, Candidate]]:
    """Collapse links to the same page within one page load.

    The first occurrence wins, including its display text.
    """

    seen: Set[str] = set()
    unique: List[Tuple[str, Candidate]] = []
    for candidate in candidates:
        normalized = normalize_href(candidate.href)
        if normalized in seen:
            continue
        seen.add(normalized)
        unique.append((normalized, candidate))
    return unique
