"""Rule-driven marker colouring."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import CUSTOM_RULE_TEXT_COLOR
from ..models.types import ColorRule, Marker, RuleOperator

# Descriptions generated when a marker is placed ("Marker at 120, 45") carry
# no user information and count as empty for the emptiness operators.
DEFAULT_DESCRIPTION_PATTERN = re.compile(r"^Marker at \d+, \d+$")


@dataclass(frozen=True)
class MarkerStyle:
    border_color: str
    fill_color: str
    text_color: str


# Keyed by ``(editable, has_photos)``.
DEFAULT_PALETTE: dict[tuple[bool, bool], MarkerStyle] = {
    (True, True): MarkerStyle("#dc2626", "#ef4444", "#ffffff"),
    (True, False): MarkerStyle("#f59e0b", "#fbbf24", "#1f2937"),
    (False, True): MarkerStyle("#4b5563", "#6b7280", "#ffffff"),
    (False, False): MarkerStyle("#9ca3af", "#d1d5db", "#374151"),
}


def is_default_description(description: str) -> bool:
    return bool(DEFAULT_DESCRIPTION_PATTERN.match(description.strip()))


def rule_matches(rule: ColorRule, description: str) -> bool:
    """Evaluate a single rule predicate against a marker description."""

    if rule.operator is RuleOperator.CONTAINS:
        return (rule.value or "").lower() in description.lower()
    normalised = "" if is_default_description(description) else description
    is_empty = normalised.strip() == ""
    if rule.operator is RuleOperator.IS_EMPTY:
        return is_empty
    return not is_empty


class MarkerStyleEngine:
    """Pick border, fill and text colours for markers.

    Rules are evaluated in declaration order and the *last* matching rule
    wins.  The whole list is scanned forwards, remembering the most recent
    match; this is the authoritative precedence and is equivalent to walking
    the list backwards and stopping at the first hit.
    """

    def __init__(self, rules: Iterable[Optional[ColorRule]] = ()) -> None:
        self._rules: tuple[ColorRule, ...] = ()
        self.set_rules(rules)

    @property
    def rules(self) -> tuple[ColorRule, ...]:
        return self._rules

    def set_rules(self, rules: Iterable[Optional[ColorRule]]) -> None:
        """Replace the rule list wholesale; empty slots are dropped."""

        self._rules = tuple(rule for rule in rules or () if rule is not None)

    def match_rule(self, description: str) -> Optional[ColorRule]:
        matched: Optional[ColorRule] = None
        for rule in self._rules:
            if rule_matches(rule, description):
                matched = rule
        return matched

    def style_for(self, marker: Marker, *, editable: bool) -> MarkerStyle:
        rule = self.match_rule(marker.description or "")
        if rule is not None:
            return MarkerStyle(rule.color, rule.color, CUSTOM_RULE_TEXT_COLOR)
        return DEFAULT_PALETTE[(bool(editable), bool(marker.has_photos))]


__all__ = [
    "DEFAULT_DESCRIPTION_PATTERN",
    "DEFAULT_PALETTE",
    "MarkerStyle",
    "MarkerStyleEngine",
    "is_default_description",
    "rule_matches",
]
