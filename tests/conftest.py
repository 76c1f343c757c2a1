"""
Shared fixtures for issue-pulse tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

import issue_pulse.config

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _make_issue(issue_id: int = 1, **overrides) -> dict:
    """Build a raw GitHub REST-shaped issue."""
    issue = {
        "id": issue_id,
        "number": issue_id,
        "title": "Test issue",
        "body": "",
        "labels": [],
        "state": "open",
        "created_at": (NOW - timedelta(days=10)).isoformat().replace("+00:00", "Z"),
        "updated_at": (NOW - timedelta(days=1)).isoformat().replace("+00:00", "Z"),
        "html_url": f"https://github.com/octo/repo/issues/{issue_id}",
    }
    issue.update(overrides)
    return issue


@pytest.fixture
def make_issue():
    """Factory for raw issues."""
    return _make_issue


@pytest.fixture
def now():
    """Constant evaluation time used by the fixed clock."""
    return NOW


@pytest.fixture
def fixed_clock():
    """Clock returning a constant evaluation time."""
    return lambda: NOW


@pytest.fixture(autouse=True)
def reset_config_overrides(monkeypatch):
    """Keep explicit config overrides and env settings from leaking between tests."""
    for name in (
        "ISSUE_PULSE_RULES",
        "ISSUE_PULSE_CACHE_SIZE",
        "ISSUE_PULSE_CACHE_TTL",
        "ISSUE_PULSE_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(issue_pulse.config, "_RULES_PATH", None)
    monkeypatch.setattr(issue_pulse.config, "_CACHE_MAX_SIZE", None)
    monkeypatch.setattr(issue_pulse.config, "_CACHE_TTL", None)
    monkeypatch.setattr(issue_pulse.config, "VERIFY_SSL", True)


@pytest.fixture
def project_root(tmp_path, monkeypatch):
    """Point config file lookups at an empty temporary project."""
    monkeypatch.setattr(issue_pulse.config, "PROJECT_ROOT", tmp_path)
    return tmp_path
