"""
Rule-based issue scorer.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, NamedTuple, Sequence

from issue_pulse.issue import Issue, normalize_issue
from issue_pulse.rules import Category, ClassificationRule, Priority, match_rule

MIN_SCORE = 0
MAX_SCORE = 100


class ClassificationResult(NamedTuple):
    """Classification of a single issue."""

    issue_id: int | None
    issue_number: int | None
    category: Category
    priority: Priority
    score: int  # 0-100
    matched_rules: tuple[str, ...]
    reasons: tuple[str, ...]
    classified_at: str  # ISO-8601, UTC

    def to_dict(self) -> dict[str, Any]:
        """Flat, JSON-serializable representation."""
        return {
            "issue_id": self.issue_id,
            "issue_number": self.issue_number,
            "category": self.category.value,
            "priority": self.priority.value,
            "score": self.score,
            "matched_rules": list(self.matched_rules),
            "reasons": list(self.reasons),
            "classified_at": self.classified_at,
        }


def default_result(
    issue_id: int | None = None,
    issue_number: int | None = None,
    now: datetime | None = None,
) -> ClassificationResult:
    """The result used when no rule matches or an issue cannot be scored."""
    now = now or datetime.now(timezone.utc)
    return ClassificationResult(
        issue_id=issue_id,
        issue_number=issue_number,
        category=Category.UNCATEGORIZED,
        priority=Priority.LOW,
        score=MIN_SCORE,
        matched_rules=(),
        reasons=(),
        classified_at=now.isoformat(),
    )


def classify(
    issue: Issue | Mapping[str, Any],
    rules: Sequence[ClassificationRule],
    now: datetime | None = None,
) -> ClassificationResult:
    """
    Score one issue against a rule set.

    Every enabled rule is tested in declaration order. Scores of matching
    rules are summed and clamped to 0-100. Category and priority come from the
    highest-priority matching rule; the first declared rule wins on ties.

    Args:
        issue: Normalized issue or raw GitHub issue mapping.
        rules: Ordered rule set.
        now: Evaluation time for staleness rules (default: current UTC time).

    Returns:
        ClassificationResult for the issue.

    Raises:
        InvalidInputError: If the issue has no id or no updated timestamp.
    """
    issue = normalize_issue(issue)
    now = now or datetime.now(timezone.utc)

    total = 0
    matched_rules: list[str] = []
    reasons: list[str] = []
    top_rule: ClassificationRule | None = None

    for rule in rules:
        if not rule.enabled:
            continue

        reason = match_rule(rule, issue, now)
        if reason is None:
            continue

        total += rule.score
        matched_rules.append(rule.id)
        reasons.append(reason)
        if top_rule is None or rule.priority.rank > top_rule.priority.rank:
            top_rule = rule

    if top_rule is None:
        return default_result(issue.id, issue.number, now)

    return ClassificationResult(
        issue_id=issue.id,
        issue_number=issue.number,
        category=top_rule.category,
        priority=top_rule.priority,
        score=max(MIN_SCORE, min(MAX_SCORE, total)),
        matched_rules=tuple(matched_rules),
        reasons=tuple(reasons),
        classified_at=now.isoformat(),
    )
