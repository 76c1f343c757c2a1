"""
Tests for the rule-based scorer.
"""

from datetime import timedelta

import pytest

from issue_pulse.errors import InvalidInputError
from issue_pulse.issue import Issue
from issue_pulse.rules import DEFAULT_RULES, Category, ClassificationRule, Priority
from issue_pulse.scorer import MAX_SCORE, classify, default_result


def _label_rule(rule_id, label, category, priority, score, **overrides):
    return ClassificationRule(
        id=rule_id,
        kind="label",
        category=category,
        priority=priority,
        score=score,
        labels=(label,),
        **overrides,
    )


class TestClassify:
    """Test scoring against rule sets."""

    def test_bug_label_and_crash_keyword(self, make_issue, now):
        issue = make_issue(
            42, title="App crashes on start", labels=[{"name": "bug"}]
        )
        result = classify(issue, DEFAULT_RULES, now)

        assert result.issue_id == 42
        assert result.issue_number == 42
        assert result.category is Category.BUG
        assert result.priority is Priority.HIGH
        assert result.score == 70
        assert result.matched_rules == ("bug-label", "crash-keywords")
        assert result.reasons == (
            'Has label "bug"',
            'Title contains keyword "crash"',
        )
        assert result.classified_at == now.isoformat()

    def test_no_match_returns_default(self, make_issue, now):
        result = classify(make_issue(5, title="Hello"), DEFAULT_RULES, now)
        assert result == default_result(5, 5, now)
        assert result.category is Category.UNCATEGORIZED
        assert result.priority is Priority.LOW
        assert result.score == 0

    def test_score_is_clamped_to_maximum(self, make_issue, now):
        issue = make_issue(
            title="Security crash in parser",
            labels=[{"name": "security"}, {"name": "bug"}],
        )
        result = classify(issue, DEFAULT_RULES, now)
        assert result.score == MAX_SCORE
        assert result.category is Category.SECURITY
        assert result.priority is Priority.CRITICAL

    def test_negative_total_is_clamped_to_zero(self, make_issue, now):
        rules = [_label_rule("noise", "wontfix", Category.WONTFIX, Priority.LOW, -30)]
        result = classify(make_issue(labels=["wontfix"]), rules, now)
        assert result.score == 0
        assert result.category is Category.WONTFIX

    def test_highest_priority_rule_sets_category(self, make_issue, now):
        rules = [
            _label_rule("docs", "docs", Category.DOCUMENTATION, Priority.LOW, 30),
            _label_rule("perf", "slow", Category.PERFORMANCE, Priority.HIGH, 10),
        ]
        result = classify(make_issue(labels=["docs", "slow"]), rules, now)
        assert result.category is Category.PERFORMANCE
        assert result.priority is Priority.HIGH
        assert result.score == 40

    def test_first_declared_rule_wins_ties(self, make_issue, now):
        rules = [
            _label_rule("first", "a", Category.TEST, Priority.MEDIUM, 5),
            _label_rule("second", "b", Category.MAINTENANCE, Priority.MEDIUM, 50),
        ]
        result = classify(make_issue(labels=["a", "b"]), rules, now)
        assert result.category is Category.TEST
        assert result.matched_rules == ("first", "second")

    def test_disabled_rules_are_skipped(self, make_issue, now):
        rules = [
            _label_rule("off", "bug", Category.BUG, Priority.HIGH, 40, enabled=False)
        ]
        result = classify(make_issue(labels=["bug"]), rules, now)
        assert result.category is Category.UNCATEGORIZED
        assert result.matched_rules == ()

    def test_empty_rule_set(self, make_issue, now):
        result = classify(make_issue(labels=["bug"]), [], now)
        assert result.category is Category.UNCATEGORIZED

    def test_staleness_uses_evaluation_time(self, make_issue, now):
        issue = make_issue(
            updated_at=(now - timedelta(days=100)).isoformat(), title="Hello"
        )
        result = classify(issue, DEFAULT_RULES, now)
        assert result.category is Category.STALE
        assert result.priority is Priority.BACKLOG
        assert result.matched_rules == ("stale-90-days",)

        fresh = classify(issue, DEFAULT_RULES, now - timedelta(days=20))
        assert fresh.category is Category.UNCATEGORIZED

    def test_deterministic(self, make_issue, now):
        issue = make_issue(title="Regression: slow startup", labels=["question"])
        assert classify(issue, DEFAULT_RULES, now) == classify(
            issue, DEFAULT_RULES, now
        )

    def test_invalid_issue_raises(self, make_issue, now):
        with pytest.raises(InvalidInputError):
            classify(make_issue(updated_at="not a date"), DEFAULT_RULES, now)

    def test_issue_instance_without_id_raises(self, now):
        issue = Issue(id=None, updated_at=now, number=1, labels=("bug",))
        with pytest.raises(InvalidInputError):
            classify(issue, DEFAULT_RULES, now)


def test_result_to_dict(make_issue, now):
    result = classify(make_issue(labels=["bug"]), DEFAULT_RULES, now)
    data = result.to_dict()
    assert data["category"] == "bug"
    assert data["priority"] == "high"
    assert data["matched_rules"] == ["bug-label"]
    assert data["classified_at"] == now.isoformat()
