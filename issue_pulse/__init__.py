"""
issue-pulse: rule-based classification of GitHub issues for project dashboards.
"""

from issue_pulse.engine import (
    BatchResult,
    ClassificationEngine,
    PerformanceMetrics,
    create_engine,
)
from issue_pulse.errors import (
    ConfigurationError,
    GitHubError,
    InvalidInputError,
    IssuePulseError,
)
from issue_pulse.issue import Issue, RepositoryContext, normalize_issue
from issue_pulse.scorer import ClassificationResult, classify

__version__ = "0.1.0"

__all__ = [
    "BatchResult",
    "ClassificationEngine",
    "ClassificationResult",
    "ConfigurationError",
    "GitHubError",
    "InvalidInputError",
    "Issue",
    "IssuePulseError",
    "PerformanceMetrics",
    "RepositoryContext",
    "classify",
    "create_engine",
    "normalize_issue",
]
