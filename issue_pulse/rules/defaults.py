"""
Built-in classification rule table.

Rules are evaluated in this order. When several rules match, their scores
are summed and the category comes from the highest-priority match (the first
declared one on ties).
"""

DEFAULT_RULE_DEFINITIONS: list[dict] = [
    {
        "id": "security-label",
        "kind": "label",
        "category": "security",
        "priority": "critical",
        "score": 40,
        "labels": ["security", "vulnerability"],
        "description": "Issue is labeled as a security problem",
    },
    {
        "id": "security-keywords",
        "kind": "keyword",
        "category": "security",
        "priority": "critical",
        "score": 35,
        "keywords": ["security", "vulnerability", "exploit", "cve-", "xss"],
    },
    {
        "id": "bug-label",
        "kind": "label",
        "category": "bug",
        "priority": "high",
        "score": 40,
        "labels": ["bug", "type: bug"],
    },
    {
        "id": "crash-keywords",
        "kind": "keyword",
        "category": "bug",
        "priority": "high",
        "score": 30,
        "keywords": ["crash", "panic", "segfault", "freeze"],
    },
    {
        "id": "regression-pattern",
        "kind": "pattern",
        "category": "bug",
        "priority": "high",
        "score": 25,
        "pattern": r"\bregress(ion|ed)?\b",
        "fields": ["title"],
    },
    {
        "id": "error-keywords",
        "kind": "keyword",
        "category": "bug",
        "priority": "medium",
        "score": 20,
        "keywords": ["error", "exception", "broken", "not working", "stack trace"],
        "exclude_keywords": ["feature request"],
    },
    {
        "id": "performance-keywords",
        "kind": "keyword",
        "category": "performance",
        "priority": "medium",
        "score": 25,
        "keywords": ["slow", "performance", "memory leak", "latency"],
    },
    {
        "id": "feature-label",
        "kind": "label",
        "category": "feature",
        "priority": "medium",
        "score": 30,
        "labels": ["enhancement", "feature", "feature request"],
    },
    {
        "id": "feature-keywords",
        "kind": "keyword",
        "category": "feature",
        "priority": "medium",
        "score": 20,
        "keywords": ["feature", "add support", "proposal", "would be nice"],
        "fields": ["title"],
    },
    {
        "id": "documentation-label",
        "kind": "label",
        "category": "documentation",
        "priority": "low",
        "score": 30,
        "labels": ["documentation", "docs"],
    },
    {
        "id": "documentation-keywords",
        "kind": "keyword",
        "category": "documentation",
        "priority": "low",
        "score": 20,
        "keywords": ["docs", "documentation", "readme", "typo"],
        "fields": ["title"],
    },
    {
        "id": "dependencies-label",
        "kind": "label",
        "category": "dependencies",
        "priority": "low",
        "score": 25,
        "labels": ["dependencies"],
    },
    {
        "id": "maintenance-keywords",
        "kind": "keyword",
        "category": "maintenance",
        "priority": "low",
        "score": 20,
        "keywords": ["refactor", "cleanup", "clean up", "chore", "bump"],
        "fields": ["title"],
    },
    {
        "id": "ci-pattern",
        "kind": "pattern",
        "category": "ci-cd",
        "priority": "low",
        "score": 20,
        "pattern": r"\b(ci|github actions|workflow)\b",
        "fields": ["title"],
    },
    {
        "id": "test-label",
        "kind": "label",
        "category": "test",
        "priority": "low",
        "score": 20,
        "labels": ["test", "tests", "testing"],
    },
    {
        "id": "question-label",
        "kind": "label",
        "category": "question",
        "priority": "low",
        "score": 20,
        "labels": ["question"],
    },
    {
        "id": "question-pattern",
        "kind": "pattern",
        "category": "question",
        "priority": "backlog",
        "score": 15,
        "pattern": r"^(how|what|why|is it possible|can i)\b|\?\s*$",
        "fields": ["title"],
    },
    {
        "id": "good-first-issue-label",
        "kind": "label",
        "category": "good-first-issue",
        "priority": "low",
        "score": 10,
        "labels": ["good first issue"],
    },
    {
        "id": "help-wanted-label",
        "kind": "label",
        "category": "help-wanted",
        "priority": "low",
        "score": 10,
        "labels": ["help wanted"],
    },
    {
        "id": "stale-90-days",
        "kind": "staleness",
        "category": "stale",
        "priority": "backlog",
        "score": 10,
        "days": 90,
        "state": "open",
        "description": "Open issue without updates for 90+ days",
    },
]
