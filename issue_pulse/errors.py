"""
Exception types for issue-pulse.
"""


class IssuePulseError(Exception):
    """Base class for all issue-pulse errors."""

    pass


class InvalidInputError(IssuePulseError):
    """Raised when a single issue record is structurally invalid."""

    pass


class ConfigurationError(IssuePulseError):
    """Raised when the classification rule set cannot be loaded or validated."""

    pass


class GitHubError(IssuePulseError):
    """Raised when issues cannot be fetched from GitHub."""

    pass
