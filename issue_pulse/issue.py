"""
Issue records handed to the classification engine.

Raw GitHub payloads are loosely typed JSON. They are normalized here into an
immutable ``Issue`` before they reach the scorer.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, NamedTuple

from issue_pulse.errors import InvalidInputError


class Issue(NamedTuple):
    """A normalized GitHub issue."""

    id: int
    updated_at: datetime
    number: int
    title: str = ""
    body: str = ""
    labels: tuple[str, ...] = ()
    state: str = "open"  # "open" or "closed"
    created_at: datetime | None = None
    url: str = ""


class RepositoryContext(NamedTuple):
    """Repository an issue batch belongs to. Only used for log messages."""

    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a GitHub timestamp into a timezone-aware datetime.

    Accepts ``datetime`` objects and ISO-8601 strings (including the trailing
    ``Z`` GitHub uses). Naive values are assumed to be UTC.

    Returns:
        The parsed datetime, or None if the value is empty or unparseable.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _label_names(raw_labels: Any) -> tuple[str, ...]:
    if not raw_labels:
        return ()

    names = []
    for label in raw_labels:
        if isinstance(label, str):
            name = label
        elif isinstance(label, Mapping):
            name = label.get("name") or ""
        else:
            continue
        if name:
            names.append(name)
    return tuple(names)


def _check_issue(issue: Issue) -> Issue:
    if type(issue.id) is not int:
        raise InvalidInputError(f"Issue record has no valid id: {issue.id!r}.")
    if not isinstance(issue.updated_at, datetime):
        raise InvalidInputError(
            f"Issue {issue.id} has no valid updated_at: {issue.updated_at!r}."
        )

    # Naive timestamps are UTC, as for raw records
    if issue.updated_at.tzinfo is None:
        issue = issue._replace(updated_at=parse_timestamp(issue.updated_at))
    if type(issue.number) is not int:
        issue = issue._replace(number=issue.id)
    return issue


def normalize_issue(raw: Issue | Mapping[str, Any]) -> Issue:
    """
    Validate and normalize an issue record.

    Args:
        raw: An ``Issue`` (checked the same way, returned unchanged when
            already valid) or a GitHub REST-shaped mapping with at least
            ``id`` and ``updated_at``.

    Returns:
        A normalized Issue.

    Raises:
        InvalidInputError: If the record is not a mapping, has no integer id,
            or has no parseable updated timestamp.
    """
    if isinstance(raw, Issue):
        return _check_issue(raw)

    if not isinstance(raw, Mapping):
        raise InvalidInputError(
            f"Issue record must be a mapping, got {type(raw).__name__}."
        )

    issue_id = raw.get("id")
    if type(issue_id) is not int:
        raise InvalidInputError(f"Issue record has no valid id: {issue_id!r}.")

    updated_at = parse_timestamp(raw.get("updated_at"))
    if updated_at is None:
        raise InvalidInputError(
            f"Issue {issue_id} has no valid updated_at: {raw.get('updated_at')!r}."
        )

    number = raw.get("number")
    if type(number) is not int:
        number = issue_id

    state = str(raw.get("state") or "open").lower()

    return Issue(
        id=issue_id,
        updated_at=updated_at,
        number=number,
        title=raw.get("title") or "",
        body=raw.get("body") or "",
        labels=_label_names(raw.get("labels")),
        state=state,
        created_at=parse_timestamp(raw.get("created_at")),
        url=raw.get("html_url") or raw.get("url") or "",
    )
