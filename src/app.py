"""
Main Application Entry Point.

Command line interface for the organization tools. Each command builds the
settings and clients explicitly, runs one org-wide operation, and renders its
result. Mutating commands print one line per repository with ``OK`` or
``FAILED`` and the reason.
"""

import asyncio
from typing import Any, Coroutine, Dict, Optional

import typer
from github import GithubException
from requests.exceptions import RequestException
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import get_settings, logger, Settings
from clients.github_client import GitHubClient
from clients.models import GroupedResult, SettledResult
from aggregators.index import group_issues_by_milestone
from aggregators.org import OrgAggregator
from errors import OrgsyncError
from workspace.manifest import load_workspace
from workspace.release import ReleaseBrancher

app = typer.Typer(
    name="orgsync",
    help="Coordinate the GitHub repositories of an organization",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()

state = {"debug": False}


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Print full tracebacks"),
) -> None:
    """Coordinate the GitHub repositories of an organization."""
    state["debug"] = debug


def _run(coroutine: Coroutine) -> Any:
    """Run a coroutine, turning known failures into an error exit."""
    try:
        return asyncio.run(coroutine)
    except (OrgsyncError, GithubException, RequestException) as e:
        logger.error({"message": "Command failed", "error": str(e)})
        if state["debug"]:
            console.print_exception()
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def _aggregator(settings: Settings) -> OrgAggregator:
    client = GitHubClient(
        settings.github_token.get_secret_value(),
        timeout=settings.github_timeout,
        per_page=settings.github_per_page,
    )
    return OrgAggregator(client)


def _org(settings: Settings, org: Optional[str]) -> str:
    org = org or settings.github_org
    if not org:
        console.print("[red]Error: no organization given; use --org or GITHUB_ORG[/red]")
        raise typer.Exit(1)
    return org


def _report(results: Dict[str, SettledResult], action: str) -> None:
    failed = 0
    for name, result in results.items():
        if result.fulfilled:
            console.print(f"[green]OK[/green]     {name}: {action}")
        else:
            failed += 1
            console.print(f"[red]FAILED[/red] {name}: {escape(result.error.message)}")
            if state["debug"] and result.error.error_type:
                console.print(f"         {result.error.error_type} ({result.error.code})")
    console.print(f"{len(results) - failed} succeeded, {failed} failed")


def _report_groups(index: GroupedResult, title: str) -> None:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Repositories")
    for key, entities in index.groups.items():
        table.add_row(
            escape(key),
            str(len(entities)),
            ", ".join(entity.repository or "" for entity in entities),
        )
    console.print(table)
    for repository, error in index.failures.items():
        console.print(f"[red]FAILED[/red] {repository}: {escape(error.message)}")


OrgOption = typer.Option(None, "--org", "-o", help="GitHub organization")


@app.command()
def repos(org: Optional[str] = OrgOption) -> None:
    """List the repositories of an organization."""
    settings = _settings()
    repositories = _run(_aggregator(settings).list_repositories(_org(settings, org)))
    for repository in repositories:
        visibility = "private" if repository.private else "public"
        console.print(f"{repository.full_name} ({visibility})", markup=False)


@app.command()
def issues(
    repo: str = typer.Argument(..., help="Repository name"),
    org: Optional[str] = OrgOption,
    labels: Optional[str] = typer.Option(None, help="Comma separated label names"),
    milestone: Optional[str] = typer.Option(None, help="Milestone number, * or none"),
    assignee: Optional[str] = typer.Option(None, help="Assignee login, * or none"),
) -> None:
    """List the issues of one repository."""
    settings = _settings()
    found = _run(
        _aggregator(settings).list_issues(
            _org(settings, org), repo, labels, milestone, assignee
        )
    )
    for issue in found:
        console.print(f"#{issue.number} [{issue.state}] {issue.title}", markup=False)


@app.command("org-issues")
def org_issues(
    org: Optional[str] = OrgOption,
    labels: Optional[str] = typer.Option(None, help="Comma separated label names"),
    milestone: Optional[str] = typer.Option(None, help="Milestone number, * or none"),
    assignee: Optional[str] = typer.Option(None, help="Assignee login, * or none"),
) -> None:
    """List the issues of every repository, grouped by milestone."""
    settings = _settings()
    found = _run(
        _aggregator(settings).list_org_issues(
            _org(settings, org), labels=labels, milestone=milestone, assignee=assignee
        )
    )
    for title, grouped in group_issues_by_milestone(found).items():
        console.print(f"[bold]{escape(title)}[/bold] ({len(grouped)})")
        for issue in grouped:
            console.print(f"  {issue.repository}#{issue.number} {issue.title}", markup=False)


@app.command()
def labels(org: Optional[str] = OrgOption) -> None:
    """List labels across the organization."""
    settings = _settings()
    index = _run(_aggregator(settings).list_labels(_org(settings, org)))
    _report_groups(index, "Labels")


@app.command()
def milestones(org: Optional[str] = OrgOption) -> None:
    """List milestones across the organization."""
    settings = _settings()
    index = _run(_aggregator(settings).list_milestones(_org(settings, org)))
    _report_groups(index, "Milestones")


@app.command("create-label")
def create_label(
    name: str = typer.Argument(..., help="Label name"),
    color: str = typer.Option("ffffff", help="Label color, hex without #"),
    org: Optional[str] = OrgOption,
) -> None:
    """Create a label in every repository."""
    settings = _settings()
    results = _run(_aggregator(settings).create_labels(_org(settings, org), name, color))
    _report(results, f"created label {name}")


@app.command("delete-label")
def delete_label(
    name: str = typer.Argument(..., help="Label name"),
    org: Optional[str] = OrgOption,
) -> None:
    """Delete a label from every repository."""
    settings = _settings()
    results = _run(_aggregator(settings).delete_labels(_org(settings, org), name))
    _report(results, f"deleted label {name}")


@app.command("create-milestone")
def create_milestone(
    title: str = typer.Argument(..., help="Milestone title"),
    org: Optional[str] = OrgOption,
) -> None:
    """Create a milestone in every repository."""
    settings = _settings()
    results = _run(_aggregator(settings).create_milestones(_org(settings, org), title))
    _report(results, f"created milestone {title}")


@app.command("delete-milestone")
def delete_milestone(
    title: str = typer.Argument(..., help="Milestone title"),
    org: Optional[str] = OrgOption,
) -> None:
    """Delete a milestone, by title, from every repository."""
    settings = _settings()
    results = _run(_aggregator(settings).delete_milestones(_org(settings, org), title))
    _report(results, f"deleted milestone {title}")


@app.command()
def events(user: str = typer.Argument(..., help="GitHub user login")) -> None:
    """List the public events of a user."""
    settings = _settings()
    found = _run(_aggregator(settings).list_user_events(user))
    for event in found:
        console.print(
            f"{event.created_at.isoformat()} {event.type} {event.repo or ''}", markup=False
        )


def _brancher(settings: Settings, owner: str) -> ReleaseBrancher:
    try:
        workspace = load_workspace(settings.workspace_file)
    except OrgsyncError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    return ReleaseBrancher(settings.workspace_root, workspace, owner)


@app.command("release-branch")
def release_branch(
    branch: str = typer.Argument(..., help="Release branch name"),
    org: Optional[str] = OrgOption,
) -> None:
    """Create a release branch in every workspace checkout."""
    settings = _settings()
    results = _run(_brancher(settings, _org(settings, org)).create_release_branch(branch))
    _report(results, f"created branch {branch}")
    for result in results.values():
        if result.fulfilled and result.value.rewrite:
            for name, pinned in result.value.rewrite.pinned.items():
                console.print(
                    f"[yellow]WARNING[/yellow] {result.repository}: branch for {name} "
                    f"already set to {pinned}, not changing"
                )


@app.command()
def status(org: Optional[str] = OrgOption) -> None:
    """Show branch and pending changes of every workspace checkout."""
    settings = _settings()
    results = _run(_brancher(settings, org or settings.github_org or "").status())
    for name, result in results.items():
        if result.rejected:
            console.print(f"[red]FAILED[/red] {name}: {escape(result.error.message)}")
            continue
        console.print(f"[bold]{name}[/bold] ({result.value.branch})")
        for line in result.value.changes:
            console.print(f"  {line}", markup=False)


if __name__ == "__main__":
    app()
