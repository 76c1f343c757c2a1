"""
Issue classification engine.

Classifies batches of issues against a rule set, reusing cached results for
issues whose fingerprint (id + updated_at) has not changed, and reports
batch statistics.
"""

import threading
import time
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, NamedTuple, Sequence

from rich.console import Console

from issue_pulse.cache import ClassificationCache
from issue_pulse.config import get_cache_max_size, get_cache_ttl, get_rules_path
from issue_pulse.errors import ConfigurationError, InvalidInputError
from issue_pulse.issue import Issue, RepositoryContext, normalize_issue
from issue_pulse.rules import ClassificationRule, load_rule_set, validate_rules
from issue_pulse.scorer import ClassificationResult, classify, default_result

console = Console()

ProgressCallback = Callable[[int, int], None]


class QualityMetrics(NamedTuple):
    """Distribution of results across categories and priorities."""

    category_distribution: dict[str, int]
    priority_distribution: dict[str, int]


class BatchResult(NamedTuple):
    """The result of classifying one batch of issues."""

    tasks: list[ClassificationResult]  # aligned with the input order
    total_analyzed: int
    average_score: float
    processing_time_ms: float
    cache_hit_rate: float  # 0.0-1.0
    cache_hits: int
    failed: int  # items replaced by the default result
    throughput: float  # issues per second
    quality: QualityMetrics

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation."""
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "total_analyzed": self.total_analyzed,
            "average_score": self.average_score,
            "processing_time_ms": self.processing_time_ms,
            "cache_hit_rate": self.cache_hit_rate,
            "cache_hits": self.cache_hits,
            "failed": self.failed,
            "throughput": self.throughput,
            "quality": self.quality._asdict(),
        }


class PerformanceMetrics(NamedTuple):
    """Counters accumulated over the lifetime of an engine."""

    total_processed: int
    total_cache_hits: int
    cache_hit_rate: float
    average_processing_time_ms: float
    batches: int


def _raw_field(raw: Any, name: str) -> Any:
    if isinstance(raw, Issue):
        return getattr(raw, name)
    if isinstance(raw, Mapping):
        return raw.get(name)
    return None


def _int_or_none(value: Any) -> int | None:
    return value if type(value) is int else None


def _quality_metrics(tasks: Sequence[ClassificationResult]) -> QualityMetrics:
    categories = Counter(task.category.value for task in tasks)
    priorities = Counter(task.priority.value for task in tasks)
    return QualityMetrics(dict(categories), dict(priorities))


def configured_rules_path() -> Path | None:
    """
    Get the configured rules file.

    Raises:
        ConfigurationError: If the config file cannot be read.
    """
    try:
        return get_rules_path()
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def _configured_cache() -> ClassificationCache:
    try:
        return ClassificationCache(
            max_size=get_cache_max_size(), ttl_seconds=get_cache_ttl()
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid cache configuration: {e}") from e


class ClassificationEngine:
    """
    Batch issue classifier with a fingerprint cache.

    The engine holds no per-batch state. The cache and the lifetime
    performance counters are shared between calls.
    """

    def __init__(
        self,
        rules: Iterable[ClassificationRule] | None = None,
        cache: ClassificationCache | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the engine.

        Args:
            rules: Ordered rule set. None loads the configured rules file, or
                the built-in table when none is configured.
            cache: Result cache. None creates one sized from configuration.
            clock: Returns the evaluation time for staleness rules.

        Raises:
            ConfigurationError: If the rule set cannot be loaded or is invalid.
        """
        if rules is None:
            rules = load_rule_set(configured_rules_path())
        self.rules = validate_rules(rules)

        if cache is None:
            cache = _configured_cache()
        self.cache = cache
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._metrics_lock = threading.Lock()
        self._total_processed = 0
        self._total_cache_hits = 0
        self._total_time_ms = 0.0
        self._batches = 0

    def _lookup_or_score(
        self, issue: Issue, now: datetime
    ) -> tuple[ClassificationResult, bool]:
        cached = self.cache.get(issue.id, issue.updated_at)
        if cached is not None:
            return cached, True

        result = classify(issue, self.rules, now)
        self.cache.put(issue.id, issue.updated_at, result)
        return result, False

    def _classify_item(
        self,
        raw: Any,
        index: int,
        now: datetime,
        context: RepositoryContext | None,
    ) -> tuple[ClassificationResult, bool, bool]:
        """Classify one batch item. Returns (result, cache_hit, failed)."""
        try:
            issue = normalize_issue(raw)
            result, hit = self._lookup_or_score(issue, now)
            return result, hit, False
        except Exception as e:
            number = _int_or_none(_raw_field(raw, "number"))
            label = f"#{number}" if number is not None else f"at index {index}"
            where = f" in {context}" if context else ""
            kind = "Invalid issue" if isinstance(e, InvalidInputError) else "Error"
            console.print(
                f"  [yellow]⚠️  {kind} {label}{where}, using default classification: {e}[/yellow]"
            )
            fallback = default_result(
                _int_or_none(_raw_field(raw, "id")), number, now
            )
            return fallback, False, True

    def _record(
        self, processed: int, hits: int, elapsed_ms: float, batch: bool = True
    ) -> None:
        with self._metrics_lock:
            self._total_processed += processed
            self._total_cache_hits += hits
            self._total_time_ms += elapsed_ms
            self._batches += int(batch)

    def classify_issues_batch(
        self,
        issues: Iterable[Issue | Mapping[str, Any]],
        context: RepositoryContext | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """
        Classify a batch of issues in input order.

        A malformed issue does not abort the batch: it is reported and gets
        the default "uncategorized" result with score 0.

        Args:
            issues: Issues or raw GitHub issue mappings.
            context: Repository the issues belong to (log messages only).
            on_progress: Called with (done, total) after each issue.

        Returns:
            BatchResult whose tasks align index-for-index with ``issues``.

        Raises:
            TypeError: If ``issues`` is not iterable.
        """
        items = list(issues)
        total = len(items)
        start = time.perf_counter()
        now = self._clock()

        tasks: list[ClassificationResult] = []
        hits = 0
        failed = 0

        for index, raw in enumerate(items):
            result, hit, item_failed = self._classify_item(raw, index, now, context)
            tasks.append(result)
            hits += hit
            failed += item_failed
            if on_progress is not None:
                on_progress(index + 1, total)

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._record(total, hits, elapsed_ms)

        if total:
            average_score = round(sum(task.score for task in tasks) / total, 1)
            cache_hit_rate = hits / total
        else:
            average_score = 0.0
            cache_hit_rate = 0.0

        return BatchResult(
            tasks=tasks,
            total_analyzed=total,
            average_score=average_score,
            processing_time_ms=elapsed_ms,
            cache_hit_rate=cache_hit_rate,
            cache_hits=hits,
            failed=failed,
            throughput=total / (elapsed_ms / 1000) if elapsed_ms > 0 else 0.0,
            quality=_quality_metrics(tasks),
        )

    def classify_issue(
        self, issue: Issue | Mapping[str, Any]
    ) -> ClassificationResult:
        """
        Classify a single issue, using the cache.

        Raises:
            InvalidInputError: If the issue is structurally invalid.
        """
        start = time.perf_counter()
        result, hit = self._lookup_or_score(normalize_issue(issue), self._clock())
        self._record(
            1, int(hit), (time.perf_counter() - start) * 1000, batch=False
        )
        return result

    def get_top_tasks(
        self,
        issues: Iterable[Issue | Mapping[str, Any]],
        limit: int = 3,
        context: RepositoryContext | None = None,
    ) -> BatchResult:
        """
        Classify open issues and keep the highest-scoring ones.

        Returns:
            BatchResult over the open issues, with tasks sorted by score
            (highest first) and truncated to ``limit``.
        """
        open_issues = [
            raw
            for raw in issues
            if str(_raw_field(raw, "state") or "open").lower() == "open"
        ]
        batch = self.classify_issues_batch(open_issues, context=context)
        ranked = sorted(batch.tasks, key=lambda task: task.score, reverse=True)
        return batch._replace(tasks=ranked[:limit])

    def get_performance_metrics(self) -> PerformanceMetrics:
        """Get lifetime counters for this engine."""
        with self._metrics_lock:
            processed = self._total_processed
            return PerformanceMetrics(
                total_processed=processed,
                total_cache_hits=self._total_cache_hits,
                cache_hit_rate=self._total_cache_hits / processed if processed else 0.0,
                average_processing_time_ms=(
                    self._total_time_ms / processed if processed else 0.0
                ),
                batches=self._batches,
            )

    def clear_cache(self) -> int:
        """
        Empty the result cache and reset the performance counters.

        Returns:
            Number of cache entries removed.
        """
        with self._metrics_lock:
            self._total_processed = 0
            self._total_cache_hits = 0
            self._total_time_ms = 0.0
            self._batches = 0
        return self.cache.clear()


def create_engine(
    rules_path: Path | str | None = None,
    clock: Callable[[], datetime] | None = None,
) -> ClassificationEngine:
    """
    Create an engine from configuration.

    Args:
        rules_path: Rules file overriding the configured one.
        clock: Evaluation clock for staleness rules.

    Raises:
        ConfigurationError: If the rule set cannot be loaded.
    """
    if rules_path is None:
        rules_path = configured_rules_path()
    rules = load_rule_set(rules_path)
    return ClassificationEngine(rules=rules, clock=clock)
