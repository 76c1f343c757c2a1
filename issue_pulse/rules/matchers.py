"""
Rule matchers and the rule-kind registry.

Each matcher takes a rule, an issue and the evaluation time and returns a
human-readable reason when the rule matches, or None when it does not.
"""

import re
from datetime import datetime
from typing import Callable

from issue_pulse.issue import Issue
from issue_pulse.rules.base import ClassificationRule

Matcher = Callable[[ClassificationRule, Issue, datetime], str | None]


def _field_texts(rule: ClassificationRule, issue: Issue) -> list[tuple[str, str]]:
    texts = {"title": issue.title, "body": issue.body}
    return [(field, texts[field]) for field in rule.fields if field in texts]


def match_keyword(rule: ClassificationRule, issue: Issue, now: datetime) -> str | None:
    """Case-insensitive substring match of any keyword in the selected fields."""
    texts = [(field, text.lower()) for field, text in _field_texts(rule, issue)]

    for excluded in rule.exclude_keywords:
        if any(excluded.lower() in text for _, text in texts):
            return None

    for field, text in texts:
        for keyword in rule.keywords:
            if keyword.lower() in text:
                return f'{field.capitalize()} contains keyword "{keyword}"'
    return None


def match_label(rule: ClassificationRule, issue: Issue, now: datetime) -> str | None:
    """Exact (case-folded) membership of a rule label in the issue's labels."""
    issue_labels = {label.casefold() for label in issue.labels}
    for label in rule.labels:
        if label.casefold() in issue_labels:
            return f'Has label "{label}"'
    return None


def match_pattern(rule: ClassificationRule, issue: Issue, now: datetime) -> str | None:
    """Case-insensitive regular expression search in the selected fields."""
    if not rule.pattern:
        return None

    for field, text in _field_texts(rule, issue):
        if re.search(rule.pattern, text, re.IGNORECASE):
            return f"{field.capitalize()} matches pattern /{rule.pattern}/"
    return None


def match_staleness(
    rule: ClassificationRule, issue: Issue, now: datetime
) -> str | None:
    """Matches when the issue has not been updated for at least ``rule.days``."""
    if rule.days is None:
        return None
    if rule.state and issue.state != rule.state:
        return None

    age_days = (now - issue.updated_at).total_seconds() / 86400
    if age_days >= rule.days:
        return f"No activity for {int(age_days)} days (threshold {rule.days})"
    return None


# Registry of rule kinds
_MATCHERS: dict[str, Matcher] = {
    "keyword": match_keyword,
    "label": match_label,
    "pattern": match_pattern,
    "staleness": match_staleness,
}


def register_rule_kind(kind: str, matcher: Matcher) -> None:
    """
    Register a custom rule kind.

    Rules declaring this kind are dispatched to ``matcher`` by the scorer.

    Args:
        kind: Rule kind identifier (e.g. 'milestone').
        matcher: Callable returning a match reason or None.

    Raises:
        TypeError: If matcher is not callable.

    Example:
        >>> def match_assigned(rule, issue, now):
        ...     return None
        >>> register_rule_kind("assigned", match_assigned)
    """
    if not callable(matcher):
        raise TypeError(f"Matcher for rule kind '{kind}' must be callable.")
    _MATCHERS[kind.lower()] = matcher


def supported_kinds() -> list[str]:
    """Sorted list of registered rule kinds."""
    return sorted(_MATCHERS.keys())


def match_rule(rule: ClassificationRule, issue: Issue, now: datetime) -> str | None:
    """
    Evaluate one rule against one issue.

    Raises:
        KeyError: If the rule's kind has no registered matcher.
    """
    return _MATCHERS[rule.kind](rule, issue, now)
