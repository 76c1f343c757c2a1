"""
Loading and validation of classification rule sets.

Rule files may be TOML (a top-level ``rules`` array or
``[[tool.issue-pulse.rules]]``) or JSON (a list, or ``{"rules": [...]}``).
"""

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Iterable, Mapping

from issue_pulse.errors import ConfigurationError
from issue_pulse.rules.base import (
    TEXT_FIELDS,
    Category,
    ClassificationRule,
    Priority,
)
from issue_pulse.rules.defaults import DEFAULT_RULE_DEFINITIONS
from issue_pulse.rules.matchers import supported_kinds

_TUPLE_FIELDS = ("keywords", "exclude_keywords", "fields", "labels")


def _as_str_tuple(rule_id: str, key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"Rule '{rule_id}': '{key}' should be a list.")
    if not all(isinstance(item, str) and item for item in value):
        raise ConfigurationError(
            f"Rule '{rule_id}': '{key}' should contain non-empty strings only."
        )
    return tuple(value)


def _check_kind_fields(rule: ClassificationRule) -> None:
    if rule.kind in ("keyword", "pattern"):
        unknown_fields = set(rule.fields) - set(TEXT_FIELDS)
        if unknown_fields or not rule.fields:
            raise ConfigurationError(
                f"Rule '{rule.id}': fields must be a non-empty subset of "
                f"{', '.join(TEXT_FIELDS)}."
            )

    if rule.kind == "keyword" and not rule.keywords:
        raise ConfigurationError(f"Rule '{rule.id}' needs at least one keyword.")
    if rule.kind == "label" and not rule.labels:
        raise ConfigurationError(f"Rule '{rule.id}' needs at least one label.")
    if rule.kind == "pattern":
        if not rule.pattern:
            raise ConfigurationError(f"Rule '{rule.id}' needs a pattern.")
        try:
            re.compile(rule.pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Rule '{rule.id}' has an invalid pattern /{rule.pattern}/: {e}"
            ) from e
    if rule.kind == "staleness":
        if type(rule.days) is not int or rule.days < 0:
            raise ConfigurationError(
                f"Rule '{rule.id}': days should be a non-negative integer."
            )
        if rule.state not in (None, "open", "closed"):
            raise ConfigurationError(
                f"Rule '{rule.id}': state should be 'open' or 'closed'."
            )


def rule_from_dict(data: Mapping[str, Any]) -> ClassificationRule:
    """
    Build and validate a single rule from its configuration mapping.

    Raises:
        ConfigurationError: If any field is missing, unknown or invalid.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Rule definitions should be tables, got {type(data).__name__}."
        )

    rule_id = data.get("id")
    if not isinstance(rule_id, str) or not rule_id:
        raise ConfigurationError(f"Rule is missing a string id: {dict(data)!r}")

    unknown_keys = set(data.keys()) - set(ClassificationRule._fields)
    if unknown_keys:
        raise ConfigurationError(
            f"Rule '{rule_id}' includes unknown keys: {', '.join(sorted(unknown_keys))}."
        )

    kind = str(data.get("kind", "")).lower()
    if kind not in supported_kinds():
        raise ConfigurationError(
            f"Rule '{rule_id}' has unknown kind '{data.get('kind')}'. "
            f"Available: {', '.join(supported_kinds())}"
        )

    try:
        category = Category(data.get("category"))
    except ValueError as e:
        raise ConfigurationError(
            f"Rule '{rule_id}' has unknown category '{data.get('category')}'."
        ) from e

    try:
        priority = Priority(data.get("priority", Priority.MEDIUM.value))
    except ValueError as e:
        raise ConfigurationError(
            f"Rule '{rule_id}' has unknown priority '{data.get('priority')}'."
        ) from e

    score = data.get("score", 0)
    if type(score) is not int:
        raise ConfigurationError(
            f"Rule '{rule_id}': score should be an integer, got {score!r}."
        )

    enabled = data.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigurationError(f"Rule '{rule_id}': enabled should be a boolean.")

    options: dict[str, Any] = {}
    for key in _TUPLE_FIELDS:
        if key in data:
            options[key] = _as_str_tuple(rule_id, key, data[key])
    for key in ("pattern", "state", "description"):
        if key in data:
            if not isinstance(data[key], str):
                raise ConfigurationError(
                    f"Rule '{rule_id}': '{key}' should be a string, got {data[key]!r}."
                )
            options[key] = data[key]
    if "days" in data:
        options["days"] = data["days"]

    rule = ClassificationRule(
        id=rule_id,
        kind=kind,
        category=category,
        priority=priority,
        score=score,
        enabled=enabled,
        **options,
    )
    _check_kind_fields(rule)
    return rule


def validate_rules(rules: Iterable[ClassificationRule]) -> tuple[ClassificationRule, ...]:
    """
    Check a rule sequence for duplicate ids and unregistered kinds.

    Returns:
        The rules as an immutable tuple, in declaration order.
    """
    validated = tuple(rules)
    seen: set[str] = set()
    for rule in validated:
        if not isinstance(rule, ClassificationRule):
            raise ConfigurationError(
                f"Expected ClassificationRule, got {type(rule).__name__}."
            )
        if rule.id in seen:
            raise ConfigurationError(f"Duplicate rule id '{rule.id}'.")
        if rule.kind not in supported_kinds():
            raise ConfigurationError(
                f"Rule '{rule.id}' has unknown kind '{rule.kind}'."
            )
        seen.add(rule.id)
    return validated


DEFAULT_RULES: tuple[ClassificationRule, ...] = validate_rules(
    rule_from_dict(definition) for definition in DEFAULT_RULE_DEFINITIONS
)


def _read_rule_definitions(path: Path) -> Any:
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
            if "rules" in data:
                return data["rules"]
            return data.get("tool", {}).get("issue-pulse", {}).get("rules")
        if suffix == ".json":
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data.get("rules")
            return data
    except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Failed to load rules from {path}: {e}") from e

    raise ConfigurationError(
        f"Unsupported rules file format '{path.suffix}'. Use .toml or .json."
    )


def load_rule_set(path: Path | str | None = None) -> tuple[ClassificationRule, ...]:
    """
    Load the ordered rule set.

    Args:
        path: Rules file. None selects the built-in table.

    Returns:
        Tuple of validated rules in declaration order.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        return DEFAULT_RULES

    path = Path(path).expanduser()
    if not path.is_file():
        raise ConfigurationError(f"Rules file not found: {path}")

    definitions = _read_rule_definitions(path)
    if definitions is None:
        raise ConfigurationError(f"No rules defined in {path}.")
    if not isinstance(definitions, list):
        raise ConfigurationError(f"Rules in {path} should be a list of tables.")

    return validate_rules(rule_from_dict(definition) for definition in definitions)
