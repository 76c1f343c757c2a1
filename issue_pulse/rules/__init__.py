"""
Classification rule set for issue-pulse.

Rules are tagged variants (keyword, label, pattern, staleness) evaluated by a
single dispatch function. Additional kinds can be registered at runtime.
"""

from issue_pulse.rules.base import (
    PRIORITY_RANKS,
    Category,
    ClassificationRule,
    Priority,
)
from issue_pulse.rules.loader import (
    DEFAULT_RULES,
    load_rule_set,
    rule_from_dict,
    validate_rules,
)
from issue_pulse.rules.matchers import match_rule, register_rule_kind, supported_kinds

__all__ = [
    "Category",
    "ClassificationRule",
    "DEFAULT_RULES",
    "PRIORITY_RANKS",
    "Priority",
    "load_rule_set",
    "match_rule",
    "register_rule_kind",
    "rule_from_dict",
    "supported_kinds",
    "validate_rules",
]
