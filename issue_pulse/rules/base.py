"""
Shared rule types: categories, priorities and the rule record.
"""

from enum import Enum
from typing import NamedTuple


class Category(str, Enum):
    """Closed set of classification categories."""

    BUG = "bug"
    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    DOCUMENTATION = "documentation"
    QUESTION = "question"
    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTENANCE = "maintenance"
    DEPENDENCIES = "dependencies"
    TEST = "test"
    CI_CD = "ci-cd"
    STALE = "stale"
    HELP_WANTED = "help-wanted"
    GOOD_FIRST_ISSUE = "good-first-issue"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    WONTFIX = "wontfix"
    UNCATEGORIZED = "uncategorized"


class Priority(str, Enum):
    """Priority levels, highest first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    BACKLOG = "backlog"

    @property
    def rank(self) -> int:
        return PRIORITY_RANKS[self]


PRIORITY_RANKS = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
    Priority.BACKLOG: 0,
}

# Issue fields that text rules (keyword, pattern) can inspect
TEXT_FIELDS = ("title", "body")


class ClassificationRule(NamedTuple):
    """
    A single pattern -> category/priority/score mapping.

    ``kind`` selects the matcher. Only the fields relevant to that kind are
    used; the rest keep their defaults.
    """

    id: str
    kind: str  # "keyword", "label", "pattern", "staleness" or a registered kind
    category: Category
    priority: Priority = Priority.MEDIUM
    score: int = 0
    enabled: bool = True
    description: str = ""
    # keyword / pattern rules
    keywords: tuple[str, ...] = ()
    exclude_keywords: tuple[str, ...] = ()
    fields: tuple[str, ...] = TEXT_FIELDS
    pattern: str | None = None
    # label rules
    labels: tuple[str, ...] = ()
    # staleness rules
    days: int | None = None
    state: str | None = None
