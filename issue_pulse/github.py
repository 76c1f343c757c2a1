"""
GitHub issue source for issue-pulse.

Fetches one page of issues with the GraphQL API when a token is available and
falls back to the REST API otherwise. Records are returned in the REST issue
shape expected by ``normalize_issue``.
"""

from typing import Any

import httpx
from rich.console import Console

from issue_pulse.config import get_github_token, get_verify_ssl
from issue_pulse.errors import GitHubError

console = Console()

GITHUB_API = "https://api.github.com"
GITHUB_GRAPHQL_API = f"{GITHUB_API}/graphql"
# GitHub caps a single page at 100 items for both APIs
MAX_PAGE_SIZE = 100

_GRAPHQL_STATES = {
    "all": None,
    "open": ["OPEN"],
    "closed": ["CLOSED"],
}

_ISSUES_QUERY = """
query($owner: String!, $name: String!, $first: Int!, $states: [IssueState!]) {
  repository(owner: $owner, name: $name) {
    issues(
      first: $first
      states: $states
      orderBy: {field: UPDATED_AT, direction: DESC}
    ) {
      nodes {
        databaseId
        number
        title
        body
        state
        url
        createdAt
        updatedAt
        labels(first: 20) {
          nodes {
            name
          }
        }
      }
    }
  }
}
"""

_http_client: httpx.Client | None = None
_http_client_verify_ssl: bool | None = None


def _get_http_client() -> httpx.Client:
    """Get or create the shared HTTP client.

    Recreates the client if the SSL verification setting has changed.
    """
    global _http_client, _http_client_verify_ssl
    verify_ssl = get_verify_ssl()

    if (
        _http_client is None
        or _http_client.is_closed
        or _http_client_verify_ssl != verify_ssl
    ):
        if _http_client is not None and not _http_client.is_closed:
            _http_client.close()
        _http_client = httpx.Client(verify=verify_ssl, timeout=30)
        _http_client_verify_ssl = verify_ssl
    return _http_client


def close_http_client() -> None:
    """Close the shared HTTP client. Call this when shutting down."""
    global _http_client, _http_client_verify_ssl
    if _http_client is not None and not _http_client.is_closed:
        _http_client.close()
    _http_client = None
    _http_client_verify_ssl = None


def _normalize_graphql_issue(node: dict[str, Any]) -> dict[str, Any]:
    labels = (node.get("labels") or {}).get("nodes") or []
    return {
        "id": node.get("databaseId"),
        "number": node.get("number"),
        "title": node.get("title") or "",
        "body": node.get("body") or "",
        "labels": [{"name": label["name"]} for label in labels if label],
        "state": str(node.get("state") or "open").lower(),
        "created_at": node.get("createdAt"),
        "updated_at": node.get("updatedAt"),
        "html_url": node.get("url") or "",
    }


def _normalize_rest_issue(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": item.get("id"),
        "number": item.get("number"),
        "title": item.get("title") or "",
        "body": item.get("body") or "",
        "labels": [
            {"name": label["name"]}
            for label in item.get("labels") or []
            if isinstance(label, dict) and label.get("name")
        ],
        "state": item.get("state") or "open",
        "created_at": item.get("created_at"),
        "updated_at": item.get("updated_at"),
        "html_url": item.get("html_url") or "",
    }


def _fetch_graphql(
    owner: str, repo: str, token: str, limit: int, state: str
) -> list[dict[str, Any]]:
    headers = {
        "Authorization": f"bearer {token}",
        "Content-Type": "application/json",
    }
    variables = {
        "owner": owner,
        "name": repo,
        "first": limit,
        "states": _GRAPHQL_STATES[state],
    }
    response = _get_http_client().post(
        GITHUB_GRAPHQL_API,
        json={"query": _ISSUES_QUERY, "variables": variables},
        headers=headers,
    )
    response.raise_for_status()
    data = response.json()
    if "errors" in data:
        raise GitHubError(f"GitHub API Errors: {data['errors']}")

    repository = (data.get("data") or {}).get("repository")
    if repository is None:
        raise GitHubError(f"Repository {owner}/{repo} not found or is inaccessible.")

    nodes = repository.get("issues", {}).get("nodes") or []
    return [_normalize_graphql_issue(node) for node in nodes if node]


def _fetch_rest(
    owner: str, repo: str, token: str | None, limit: int, state: str
) -> list[dict[str, Any]]:
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    params = {
        "state": state,
        "per_page": limit,
        "sort": "updated",
        "direction": "desc",
    }
    response = _get_http_client().get(
        f"{GITHUB_API}/repos/{owner}/{repo}/issues", params=params, headers=headers
    )
    response.raise_for_status()

    # The REST issues endpoint also lists pull requests
    return [
        _normalize_rest_issue(item)
        for item in response.json()
        if "pull_request" not in item
    ]


def fetch_issues(
    owner: str,
    repo: str,
    token: str | None = None,
    limit: int = MAX_PAGE_SIZE,
    state: str = "all",
) -> list[dict[str, Any]]:
    """
    Fetch the most recently updated issues of a repository.

    Args:
        owner: Repository owner.
        repo: Repository name.
        token: GitHub token. Defaults to the GITHUB_TOKEN environment variable.
        limit: Number of issues to request (1-100, a single page).
        state: "all", "open" or "closed".

    Returns:
        List of REST-shaped issue dicts, pull requests excluded.

    Raises:
        ValueError: If limit or state is invalid.
        GitHubError: If both the GraphQL and the REST request fail.
    """
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}.")
    if state not in _GRAPHQL_STATES:
        raise ValueError(
            f"Unknown state '{state}'. Available: {', '.join(_GRAPHQL_STATES)}"
        )

    token = token or get_github_token()
    if token:
        try:
            return _fetch_graphql(owner, repo, token, limit, state)
        except (httpx.HTTPError, GitHubError, ValueError) as e:
            console.print(
                f"  [yellow]⚠️  GraphQL query failed ({e}), trying REST API...[/yellow]"
            )
    else:
        console.print(
            "[dim]Note: GITHUB_TOKEN is not set, using the unauthenticated REST API.[/dim]"
        )

    try:
        return _fetch_rest(owner, repo, token, limit, state)
    except (httpx.HTTPError, ValueError) as e:
        raise GitHubError(f"Failed to fetch issues for {owner}/{repo}: {e}") from e
