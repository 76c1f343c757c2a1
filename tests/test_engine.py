"""
Tests for the batch classification engine.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from issue_pulse.cache import ClassificationCache
from issue_pulse.config import set_cache_max_size, set_rules_path
from issue_pulse.engine import ClassificationEngine, create_engine
from issue_pulse.errors import ConfigurationError, InvalidInputError
from issue_pulse.issue import Issue, RepositoryContext
from issue_pulse.rules import DEFAULT_RULES, Category, ClassificationRule, matchers
from issue_pulse.scorer import classify


@pytest.fixture
def engine(fixed_clock):
    return ClassificationEngine(rules=DEFAULT_RULES, clock=fixed_clock)


@pytest.fixture
def issues(make_issue):
    return [
        make_issue(1, title="App crashes on start", labels=[{"name": "bug"}]),
        make_issue(2, title="Hello"),
        make_issue(3, title="Update guide", labels=[{"name": "documentation"}]),
    ]


class TestClassifyIssuesBatch:
    """Test classify_issues_batch."""

    def test_empty_batch(self, engine):
        batch = engine.classify_issues_batch([])
        assert batch.tasks == []
        assert batch.total_analyzed == 0
        assert batch.average_score == 0.0
        assert batch.cache_hit_rate == 0.0
        assert batch.failed == 0

    def test_results_align_with_input(self, engine, issues):
        batch = engine.classify_issues_batch(issues)

        assert [task.issue_id for task in batch.tasks] == [1, 2, 3]
        assert [task.category for task in batch.tasks] == [
            Category.BUG,
            Category.UNCATEGORIZED,
            Category.DOCUMENTATION,
        ]
        assert batch.total_analyzed == 3
        assert batch.average_score == 33.3
        assert batch.cache_hit_rate == 0.0
        assert batch.quality.category_distribution == {
            "bug": 1,
            "uncategorized": 1,
            "documentation": 1,
        }
        assert batch.quality.priority_distribution == {"high": 1, "low": 2}

    def test_accepts_generators(self, engine, issues):
        batch = engine.classify_issues_batch(issue for issue in issues)
        assert batch.total_analyzed == 3

    def test_second_run_is_served_from_cache(self, engine, issues):
        first = engine.classify_issues_batch(issues)
        second = engine.classify_issues_batch(issues)

        assert second.tasks == first.tasks
        assert second.cache_hits == 3
        assert second.cache_hit_rate == 1.0

    def test_changed_issue_is_rescored(self, engine, issues, now):
        engine.classify_issues_batch(issues)
        issues[1] = dict(
            issues[1],
            title="Crash when saving",
            updated_at=now.isoformat(),
        )

        with patch("issue_pulse.engine.classify", wraps=classify) as mock_classify:
            batch = engine.classify_issues_batch(issues)

        assert mock_classify.call_count == 1
        assert batch.cache_hits == 2
        assert batch.tasks[1].category is Category.BUG

    def test_malformed_issue_gets_default_result(self, engine, issues):
        del issues[1]["updated_at"]

        with patch("issue_pulse.engine.console") as mock_console:
            batch = engine.classify_issues_batch(
                issues, context=RepositoryContext("octo", "repo")
            )

        assert batch.total_analyzed == 3
        assert batch.failed == 1
        failed = batch.tasks[1]
        assert failed.issue_id == 2
        assert failed.category is Category.UNCATEGORIZED
        assert failed.score == 0
        assert batch.tasks[0].category is Category.BUG

        message = mock_console.print.call_args[0][0]
        assert "Invalid issue #2 in octo/repo" in message

    def test_issue_missing_id_gets_default_result(self, engine, issues):
        del issues[1]["id"]

        with patch("issue_pulse.engine.console") as mock_console:
            batch = engine.classify_issues_batch(issues)

        assert batch.total_analyzed == 3
        assert batch.failed == 1
        assert batch.tasks[1].issue_id is None
        assert batch.tasks[1].issue_number == 2
        assert batch.tasks[1].category is Category.UNCATEGORIZED
        assert batch.tasks[1].score == 0
        assert batch.tasks[0].category is Category.BUG
        assert batch.tasks[0].score == 70
        assert batch.tasks[2].category is Category.DOCUMENTATION
        assert "Invalid issue #2" in mock_console.print.call_args[0][0]

    def test_issue_instances_without_id_are_not_cached(self, engine, now):
        issues = [
            Issue(id=None, updated_at=now, number=1, title="crash", labels=("bug",)),
            Issue(id=None, updated_at=now, number=2, title="hello"),
        ]

        with patch("issue_pulse.engine.console"):
            batch = engine.classify_issues_batch(issues)

        assert batch.failed == 2
        assert batch.cache_hits == 0
        assert [task.score for task in batch.tasks] == [0, 0]
        assert [task.category for task in batch.tasks] == [
            Category.UNCATEGORIZED,
            Category.UNCATEGORIZED,
        ]
        assert len(engine.cache) == 0

    def test_non_mapping_item_is_reported_by_index(self, engine, issues):
        with patch("issue_pulse.engine.console") as mock_console:
            batch = engine.classify_issues_batch([issues[0], "garbage"])

        assert batch.failed == 1
        assert batch.tasks[1].issue_id is None
        assert "at index 1" in mock_console.print.call_args[0][0]

    def test_matcher_errors_are_isolated(self, fixed_clock, make_issue, monkeypatch):
        def explode(rule, issue, now):
            if issue.id == 2:
                raise RuntimeError("boom")
            return None

        monkeypatch.setitem(matchers._MATCHERS, "explode", explode)
        rules = [ClassificationRule(id="explode", kind="explode", category=Category.BUG)]
        engine = ClassificationEngine(rules=rules, clock=fixed_clock)

        with patch("issue_pulse.engine.console") as mock_console:
            batch = engine.classify_issues_batch([make_issue(1), make_issue(2)])

        assert batch.failed == 1
        assert batch.tasks[1].category is Category.UNCATEGORIZED
        assert "Error #2" in mock_console.print.call_args[0][0]

    @pytest.mark.parametrize("value", [None, 5])
    def test_non_iterable_input_raises(self, engine, value):
        with pytest.raises(TypeError):
            engine.classify_issues_batch(value)

    def test_progress_callback(self, engine, issues):
        calls = []
        engine.classify_issues_batch(
            issues, on_progress=lambda done, total: calls.append((done, total))
        )
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_staleness_follows_engine_clock(self, make_issue, now):
        clock_value = [now]
        engine = ClassificationEngine(
            rules=DEFAULT_RULES,
            cache=ClassificationCache(max_size=0),
            clock=lambda: clock_value[0],
        )
        issue = make_issue(title="Hello")

        assert engine.classify_issues_batch([issue]).tasks[0].category is (
            Category.UNCATEGORIZED
        )
        clock_value[0] = now + timedelta(days=120)
        assert engine.classify_issues_batch([issue]).tasks[0].category is (
            Category.STALE
        )

    def test_batch_to_dict(self, engine, issues):
        data = engine.classify_issues_batch(issues).to_dict()
        assert data["total_analyzed"] == 3
        assert data["tasks"][0]["category"] == "bug"
        assert data["quality"]["category_distribution"]["bug"] == 1


class TestClassifyIssue:
    """Test single-issue classification."""

    def test_uses_cache(self, engine, issues):
        first = engine.classify_issue(issues[0])
        assert engine.classify_issue(issues[0]) is first

        metrics = engine.get_performance_metrics()
        assert metrics.total_processed == 2
        assert metrics.total_cache_hits == 1
        assert metrics.batches == 0

    def test_invalid_issue_raises(self, engine, make_issue):
        with pytest.raises(InvalidInputError):
            engine.classify_issue(make_issue(id=None))


class TestTopTasks:
    """Test get_top_tasks."""

    def test_open_issues_sorted_by_score(self, engine, make_issue):
        issues = [
            make_issue(1, title="Typo in readme"),
            make_issue(2, title="Crash", labels=["bug"], state="closed"),
            make_issue(3, title="Panic in worker", labels=["bug"]),
            make_issue(4, title="Hello"),
            make_issue(5, title="Slow queries"),
        ]
        top = engine.get_top_tasks(issues)

        assert [task.issue_id for task in top.tasks] == [3, 5, 1]
        assert top.total_analyzed == 4

    def test_limit(self, engine, issues):
        assert len(engine.get_top_tasks(issues, limit=1).tasks) == 1


class TestMetrics:
    """Test lifetime counters and cache clearing."""

    def test_metrics_accumulate(self, engine, issues):
        engine.classify_issues_batch(issues[:2])
        engine.classify_issues_batch(issues[:2])

        metrics = engine.get_performance_metrics()
        assert metrics.total_processed == 4
        assert metrics.total_cache_hits == 2
        assert metrics.cache_hit_rate == 0.5
        assert metrics.batches == 2
        assert metrics.average_processing_time_ms >= 0

    def test_clear_cache(self, engine, issues):
        engine.classify_issues_batch(issues)
        assert engine.clear_cache() == 3

        metrics = engine.get_performance_metrics()
        assert metrics.total_processed == 0
        assert metrics.batches == 0
        assert engine.classify_issues_batch(issues).cache_hits == 0


class TestConstruction:
    """Test engine construction from rules and configuration."""

    def test_duplicate_rule_ids_rejected(self):
        rule = DEFAULT_RULES[0]
        with pytest.raises(ConfigurationError, match="Duplicate"):
            ClassificationEngine(rules=[rule, rule])

    def test_loads_configured_rules_file(self, tmp_path):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text(
            '[{"id": "q", "kind": "label", "category": "question", "labels": ["q"]}]'
        )
        set_rules_path(rules_file)

        engine = ClassificationEngine()
        assert [rule.id for rule in engine.rules] == ["q"]

    def test_defaults_to_built_in_rules(self):
        assert ClassificationEngine().rules == DEFAULT_RULES

    def test_cache_sized_from_config(self):
        set_cache_max_size(5)
        assert ClassificationEngine().cache.max_size == 5

    def test_create_engine_with_rules_path(self, tmp_path, fixed_clock):
        rules_file = tmp_path / "rules.json"
        rules_file.write_text("[]")
        engine = create_engine(rules_file, clock=fixed_clock)
        assert engine.rules == ()

    @pytest.mark.parametrize(
        "name, value",
        [
            ("ISSUE_PULSE_CACHE_SIZE", "-1"),
            ("ISSUE_PULSE_CACHE_TTL", "-5"),
        ],
    )
    def test_negative_cache_settings_are_configuration_errors(
        self, project_root, monkeypatch, name, value
    ):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError, match="cache"):
            ClassificationEngine(rules=DEFAULT_RULES)

    def test_non_numeric_cache_size_in_config_file(self, project_root):
        (project_root / ".issue-pulse.toml").write_text(
            '[tool.issue-pulse.cache]\nmax_size = "large"\n'
        )
        with pytest.raises(ConfigurationError, match="cache"):
            ClassificationEngine(rules=DEFAULT_RULES)

    def test_malformed_config_file(self, project_root):
        (project_root / ".issue-pulse.toml").write_text("[tool.issue-pulse\n")
        with pytest.raises(ConfigurationError, match="Failed to load config"):
            ClassificationEngine()
        with pytest.raises(ConfigurationError):
            create_engine()

    def test_create_engine_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            create_engine(tmp_path / "missing.toml")
