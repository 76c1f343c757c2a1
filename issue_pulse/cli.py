"""
Command-line interface for issue-pulse.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from issue_pulse.config import get_data_dir, get_repository, set_verify_ssl
from issue_pulse.engine import (
    BatchResult,
    ClassificationEngine,
    configured_rules_path,
)
from issue_pulse.errors import ConfigurationError, GitHubError
from issue_pulse.export import load_issues_file, save_issue_data, try_create_engine
from issue_pulse.github import MAX_PAGE_SIZE, close_http_client, fetch_issues
from issue_pulse.issue import RepositoryContext
from issue_pulse.rules import ClassificationRule, load_rule_set

# --- Typer App ---
app = typer.Typer(help="Rule-based classification of GitHub issues.")
console = Console()

# --- Helper Functions ---


def parse_repository(value: str | None) -> RepositoryContext | None:
    """
    Parse 'owner/repo', falling back to GITHUB_OWNER/GITHUB_REPO.

    Raises:
        typer.BadParameter: If value is not in 'owner/repo' form.
    """
    if value:
        owner, _, name = value.partition("/")
        if not owner or not name or "/" in name:
            raise typer.BadParameter(f"Expected 'owner/repo', got '{value}'.")
        return RepositoryContext(owner, name)

    repository = get_repository()
    if repository:
        return RepositoryContext(*repository)
    return None


def display_batch(batch: BatchResult) -> None:
    """Display batch statistics and the category distribution."""
    console.print(
        f"📊 Classified [bold]{batch.total_analyzed}[/bold] issue(s) "
        f"in {batch.processing_time_ms:.1f}ms "
        f"(average score {batch.average_score}, "
        f"cache hit rate {batch.cache_hit_rate:.0%})"
    )
    if batch.failed:
        console.print(
            f"   [yellow]{batch.failed} issue(s) could not be classified.[/yellow]"
        )

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Issues", justify="right", style="magenta")
    distribution = batch.quality.category_distribution
    for category, count in sorted(distribution.items(), key=lambda kv: -kv[1]):
        table.add_row(category, str(count))
    console.print(table)


def display_top_tasks(batch: BatchResult) -> None:
    """Display the highest-scoring open issues."""
    table = Table(title="Top Tasks")
    table.add_column("Issue", justify="left", style="cyan", no_wrap=True)
    table.add_column("Score", justify="center", style="magenta")
    table.add_column("Category", justify="left")
    table.add_column("Priority", justify="left")
    table.add_column("Reasons", justify="left")

    for task in batch.tasks:
        score_color = "green"
        if task.score >= 70:
            score_color = "red"
        elif task.score >= 40:
            score_color = "yellow"

        table.add_row(
            f"#{task.issue_number}",
            f"[{score_color}]{task.score}/100[/{score_color}]",
            task.category.value,
            task.priority.value,
            " • ".join(task.reasons[:2]) or "-",
        )
    console.print(table)


def display_rules(rules: tuple[ClassificationRule, ...]) -> None:
    """Display a rule set as a table."""
    table = Table(title="Classification Rules")
    table.add_column("#", justify="right")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Score", justify="right", style="magenta")
    table.add_column("Matches")

    for index, rule in enumerate(rules, 1):
        if rule.kind == "label":
            matches = ", ".join(rule.labels)
        elif rule.kind == "keyword":
            matches = ", ".join(rule.keywords)
        elif rule.kind == "pattern":
            matches = f"/{rule.pattern}/"
        elif rule.kind == "staleness":
            matches = f">= {rule.days} days"
        else:
            matches = rule.description
        id_text = rule.id if rule.enabled else f"[dim]{rule.id} (disabled)[/dim]"
        table.add_row(
            str(index),
            id_text,
            rule.kind,
            rule.category.value,
            rule.priority.value,
            str(rule.score),
            matches,
        )
    console.print(table)


def _resolve_output_dir(output_dir: Path | None) -> Path:
    if output_dir is not None:
        return output_dir
    try:
        return get_data_dir()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e


def _save_and_report(
    issues: list,
    output_dir: Path,
    engine: ClassificationEngine | None,
    context: RepositoryContext | None,
    top: int,
) -> None:
    batch = save_issue_data(issues, output_dir, engine=engine, context=context)
    console.print(f"💾 Saved {len(issues)} issue(s) to [bold]{output_dir}[/bold]")

    if batch is None:
        return
    display_batch(batch)
    if top > 0 and engine is not None:
        display_top_tasks(engine.get_top_tasks(issues, limit=top, context=context))


# --- Commands ---


@app.command()
def classify(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file with a list of GitHub issues.",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for issues.json and per-issue files (default: src/data/github).",
    ),
    rules: Path | None = typer.Option(
        None,
        "--rules",
        "-r",
        help="Rules file (.toml or .json) replacing the configured rule set.",
    ),
    top: int = typer.Option(
        0,
        "--top",
        "-t",
        min=0,
        help="Also show the N highest-scoring open issues.",
    ),
):
    """Classify issues from a JSON file and write dashboard data."""
    try:
        issues = load_issues_file(input_file)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e

    data_dir = _resolve_output_dir(output_dir)
    engine = try_create_engine(rules)
    _save_and_report(issues, data_dir, engine, None, top)


@app.command()
def fetch(
    repository: str | None = typer.Argument(
        None,
        help="Repository as 'owner/repo' (default: GITHUB_OWNER/GITHUB_REPO).",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for issues.json and per-issue files (default: src/data/github).",
    ),
    limit: int = typer.Option(
        MAX_PAGE_SIZE,
        "--limit",
        "-n",
        min=1,
        max=MAX_PAGE_SIZE,
        help="Number of recently updated issues to fetch.",
    ),
    state: str = typer.Option(
        "all",
        "--state",
        help="Issue state to fetch: all, open or closed.",
    ),
    rules: Path | None = typer.Option(
        None,
        "--rules",
        "-r",
        help="Rules file (.toml or .json) replacing the configured rule set.",
    ),
    top: int = typer.Option(
        3,
        "--top",
        "-t",
        min=0,
        help="Show the N highest-scoring open issues (0 to disable).",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Disable SSL certificate verification for HTTPS requests.",
    ),
):
    """Fetch issues from GitHub, classify them and write dashboard data."""
    context = parse_repository(repository)
    if context is None:
        console.print(
            "[red]Error:[/red] No repository given. "
            "Pass 'owner/repo' or set GITHUB_OWNER and GITHUB_REPO."
        )
        raise typer.Exit(code=1)
    data_dir = _resolve_output_dir(output_dir)

    set_verify_ssl(not insecure)
    console.print(f"📥 Fetching issues for [bold cyan]{context}[/bold cyan]...")
    try:
        issues = fetch_issues(context.owner, context.name, limit=limit, state=state)
    except (GitHubError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
    finally:
        close_http_client()
    console.print(f"✅ Fetched {len(issues)} issue(s)")

    engine = try_create_engine(rules)
    _save_and_report(issues, data_dir, engine, context, top)


@app.command(name="rules")
def show_rules(
    rules: Path | None = typer.Option(
        None,
        "--rules",
        "-r",
        help="Rules file (.toml or .json) to display instead of the configured one.",
    ),
):
    """Show the active classification rules in evaluation order."""
    try:
        rule_set = load_rule_set(rules if rules is not None else configured_rules_path())
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e

    if not rule_set:
        console.print("No rules configured. Every issue will be uncategorized.")
        return
    display_rules(rule_set)


if __name__ == "__main__":
    app()
