"""
Configuration management for issue-pulse.

Settings are read from:
1. .issue-pulse.toml (local config)
2. pyproject.toml (project-level config, [tool.issue-pulse])

Environment variables override config files, and explicit set_* calls
override both.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load GITHUB_* settings from a .env file if present
load_dotenv()

# Directory searched for config files
PROJECT_ROOT = Path.cwd()

# Global configuration for SSL verification
VERIFY_SSL = True

# Default output directory for issues.json and per-issue files
DEFAULT_DATA_DIR = Path("src") / "data" / "github"
# Default cache capacity (entries)
DEFAULT_CACHE_MAX_SIZE = 1000

# Global overrides (set via set_* functions)
_RULES_PATH: Path | None = None
_CACHE_MAX_SIZE: int | None = None
_CACHE_TTL: int | None = None


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict[str, Any]:
    """
    Get the [tool.issue-pulse] table.

    Priority:
    1. .issue-pulse.toml (local config, highest priority)
    2. pyproject.toml (fallback)

    Returns:
        The tool configuration, or an empty dict.
    """
    for filename in (".issue-pulse.toml", "pyproject.toml"):
        config_path = PROJECT_ROOT / filename
        if config_path.exists():
            tool_config = (
                load_config_file(config_path).get("tool", {}).get("issue-pulse")
            )
            if tool_config:
                return tool_config
    return {}


def _resolve_config_path(value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def get_rules_path() -> Path | None:
    """
    Get the classification rules file.

    Priority:
    1. Explicitly set value via set_rules_path()
    2. ISSUE_PULSE_RULES environment variable
    3. 'rules' key in config (a path; inline rule tables are ignored here)
    4. None (use the built-in rule table)
    """
    if _RULES_PATH is not None:
        return _RULES_PATH

    env_rules = os.getenv("ISSUE_PULSE_RULES")
    if env_rules:
        return Path(env_rules).expanduser()

    rules = get_tool_config().get("rules")
    if isinstance(rules, str):
        return _resolve_config_path(rules)

    return None


def set_rules_path(path: Path | str | None) -> None:
    """Set the rules file explicitly. None restores the default lookup."""
    global _RULES_PATH
    _RULES_PATH = Path(path).expanduser() if path is not None else None


def _cache_config() -> dict[str, Any]:
    cache_config = get_tool_config().get("cache", {})
    # Only a [tool.issue-pulse.cache] table carries cache settings
    if not isinstance(cache_config, dict):
        return {}
    return cache_config


def get_cache_max_size() -> int:
    """
    Get the classification cache capacity.

    Priority:
    1. Explicitly set value via set_cache_max_size()
    2. ISSUE_PULSE_CACHE_SIZE environment variable
    3. cache.max_size in config
    4. Default: 1000
    """
    if _CACHE_MAX_SIZE is not None:
        return _CACHE_MAX_SIZE

    env_size = os.getenv("ISSUE_PULSE_CACHE_SIZE")
    if env_size:
        try:
            return int(env_size)
        except ValueError:
            pass

    cache_config = _cache_config()
    if "max_size" in cache_config:
        return int(cache_config["max_size"])

    return DEFAULT_CACHE_MAX_SIZE


def set_cache_max_size(size: int | None) -> None:
    """Set the cache capacity explicitly."""
    global _CACHE_MAX_SIZE
    _CACHE_MAX_SIZE = size


def get_cache_ttl() -> int | None:
    """
    Get the cache TTL in seconds.

    Priority:
    1. Explicitly set value via set_cache_ttl()
    2. ISSUE_PULSE_CACHE_TTL environment variable
    3. cache.ttl_seconds in config
    4. Default: None (no expiry)
    """
    if _CACHE_TTL is not None:
        return _CACHE_TTL

    env_ttl = os.getenv("ISSUE_PULSE_CACHE_TTL")
    if env_ttl:
        try:
            return int(env_ttl)
        except ValueError:
            pass

    cache_config = _cache_config()
    if "ttl_seconds" in cache_config:
        return int(cache_config["ttl_seconds"])

    return None


def set_cache_ttl(seconds: int | None) -> None:
    """Set the cache TTL explicitly."""
    global _CACHE_TTL
    _CACHE_TTL = seconds


def get_data_dir() -> Path:
    """
    Get the output directory for issue data.

    Priority:
    1. ISSUE_PULSE_DATA_DIR environment variable
    2. data_dir in config
    3. Default: src/data/github
    """
    env_dir = os.getenv("ISSUE_PULSE_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()

    data_dir = get_tool_config().get("data_dir")
    if data_dir:
        return _resolve_config_path(data_dir)

    return PROJECT_ROOT / DEFAULT_DATA_DIR


def get_github_token() -> str | None:
    """GitHub token from the GITHUB_TOKEN environment variable."""
    return os.getenv("GITHUB_TOKEN") or None


def get_repository() -> tuple[str, str] | None:
    """
    Get the target repository from GITHUB_OWNER and GITHUB_REPO.

    Returns:
        (owner, name), or None if either variable is unset.
    """
    owner = os.getenv("GITHUB_OWNER")
    repo = os.getenv("GITHUB_REPO")
    if owner and repo:
        return owner, repo
    return None


def set_verify_ssl(verify: bool) -> None:
    """Set the SSL verification setting globally."""
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """Get the current SSL verification setting."""
    return VERIFY_SSL
