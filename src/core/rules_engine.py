"""Keyword rule parsing and matching logic (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

RULE_SEPARATOR = ","
TOKEN_SEPARATOR = "&"


@dataclass(frozen=True)
class Rule:
    """An AND-rule: every token must appear in the text."""

    tokens: Tuple[str, ...]

    @property
    def label(self) -> str:
        return TOKEN_SEPARATOR.join(self.tokens)


def build_rules(raw: Union[str, Iterable[str]]) -> List[Rule]:
    """Parse rule strings into immutable rules.

    ``raw`` is either the configuration string (``"a&b, c"``: rules separated
    by commas, tokens by ampersands) or an iterable of rule strings. Tokens are
    trimmed and lowercased; empty tokens are dropped and rules left without
    tokens are discarded, so no rule is ever vacuously satisfied.
    """

    rule_strings = raw.split(RULE_SEPARATOR) if isinstance(raw, str) else list(raw)

    compiled: List[Rule] = []
    for rule_string in rule_strings:
        tokens = tuple(
            token.strip()
            for token in rule_string.lower().split(TOKEN_SEPARATOR)
            if token.strip()
        )
        if tokens:
            compiled.append(Rule(tokens=tokens))
    return compiled


def match_rule(text: Optional[str], rules: Iterable[Rule]) -> Optional[Rule]:
    """Return the first rule whose tokens are all substrings of ``text``.

    Matching is case-insensitive: the text is lowercased and rule tokens are
    already lowercase.
    """

    lowered = (text or "").lower()
    if not lowered:
        return None
    for rule in rules:
        if all(token in lowered for token in rule.tokens):
            return rule
    return None


def matches(text: Optional[str], rules: Iterable[Rule]) -> bool:
    """True iff any rule is satisfied by ``text`` (OR of ANDs)."""

    return match_rule(text, rules) is not None
