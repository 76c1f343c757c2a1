"""
Static data export for the dashboard.

Writes ``issues.json`` (every issue with a ``classification`` field), one
``issues/<number>.json`` file per issue and a ``classification-summary.json``
with the batch statistics.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from rich.console import Console

from issue_pulse.engine import BatchResult, ClassificationEngine, create_engine
from issue_pulse.errors import ConfigurationError
from issue_pulse.issue import Issue, RepositoryContext

console = Console()

ISSUES_FILENAME = "issues.json"
ISSUES_DIRNAME = "issues"
SUMMARY_FILENAME = "classification-summary.json"


def load_issues_file(path: Path | str) -> list[Any]:
    """
    Load raw issues from a JSON file.

    Accepts a list of issues or an object with an ``issues`` list.

    Raises:
        ValueError: If the file is not valid JSON or has no issue list.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("issues")
    if not isinstance(data, list):
        raise ValueError(f"{path} should contain a list of issues.")
    return data


def _issue_record(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, Issue):
        record = raw._asdict()
        record["labels"] = [{"name": label} for label in raw.labels]
        record["html_url"] = record.pop("url")
        for key in ("created_at", "updated_at"):
            if isinstance(record[key], datetime):
                record[key] = record[key].isoformat()
        return record
    if isinstance(raw, Mapping):
        return dict(raw)
    return None


def attach_classifications(
    raw_issues: Iterable[Any], batch: BatchResult
) -> list[dict[str, Any]]:
    """
    Merge batch results back onto the issues they were computed for.

    Results are matched by position. Items that are not issue records are
    dropped.
    """
    records = []
    for raw, task in zip(raw_issues, batch.tasks, strict=True):
        record = _issue_record(raw)
        if record is None:
            continue
        record["classification"] = task.to_dict()
        records.append(record)
    return records


def _write_json(path: Path, data: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def try_create_engine(
    rules_path: Path | str | None = None,
) -> ClassificationEngine | None:
    """
    Create an engine from configuration, warning instead of failing.

    Returns:
        The engine, or None if the rule set could not be loaded.
    """
    try:
        return create_engine(rules_path)
    except ConfigurationError as e:
        console.print(
            f"[yellow]⚠️  Classification unavailable ({e}). "
            "Saving unclassified issue data.[/yellow]"
        )
        return None


def save_issue_data(
    issues: Iterable[Any],
    data_dir: Path | str,
    engine: ClassificationEngine | None = None,
    context: RepositoryContext | None = None,
) -> BatchResult | None:
    """
    Classify issues and write the dashboard data files.

    Args:
        issues: Raw issue records.
        data_dir: Output directory.
        engine: Engine to classify with. None saves the issues unclassified.
        context: Repository the issues belong to.

    Returns:
        The BatchResult, or None if the issues were saved unclassified.
    """
    issues = list(issues)
    data_dir = Path(data_dir)

    batch = None
    if engine is not None:
        batch = engine.classify_issues_batch(issues, context=context)
        records = attach_classifications(issues, batch)
    else:
        records = [
            record for record in map(_issue_record, issues) if record is not None
        ]

    issues_dir = data_dir / ISSUES_DIRNAME
    issues_dir.mkdir(parents=True, exist_ok=True)

    _write_json(data_dir / ISSUES_FILENAME, records)
    for record in records:
        number = record.get("number")
        if type(number) is int:
            _write_json(issues_dir / f"{number}.json", record)

    if batch is not None:
        summary = batch.to_dict()
        del summary["tasks"]
        _write_json(data_dir / SUMMARY_FILENAME, summary)

    return batch
