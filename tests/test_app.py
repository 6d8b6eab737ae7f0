"""Command line interface tests."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from github import GithubException
from requests.exceptions import ReadTimeout
from typer.testing import CliRunner

from app import app
from clients.models import ErrorDetail, GroupedResult, Label, SettledResult
from conftest import make_repository

runner = CliRunner()


@pytest.fixture
def aggregator():
    aggregator = Mock()
    with patch("app._aggregator", return_value=aggregator):
        yield aggregator


def test_create_label_reports_each_repository(aggregator):
    aggregator.create_labels = AsyncMock(
        return_value={
            "repo-a": SettledResult(repository="repo-a", status="fulfilled", value=Label(name="triage")),
            "repo-b": SettledResult(
                repository="repo-b",
                status="rejected",
                error=ErrorDetail(message="Validation Failed", code=422),
            ),
        }
    )

    result = runner.invoke(app, ["create-label", "triage", "--org", "acme"])

    assert result.exit_code == 0
    assert "OK     repo-a: created label triage" in result.stdout
    assert "FAILED repo-b: Validation Failed" in result.stdout
    assert "1 succeeded, 1 failed" in result.stdout
    aggregator.create_labels.assert_awaited_once_with("acme", "triage", "ffffff")


def test_delete_milestone_uses_default_org(aggregator):
    aggregator.delete_milestones = AsyncMock(return_value={})

    result = runner.invoke(app, ["delete-milestone", "Sprint 1"])

    assert result.exit_code == 0
    aggregator.delete_milestones.assert_awaited_once_with("test-org", "Sprint 1")


def test_repos_lists_repositories(aggregator):
    repository = make_repository("repo-a", 1)
    aggregator.list_repositories = AsyncMock(return_value=[repository])

    result = runner.invoke(app, ["repos"])

    assert result.exit_code == 0
    assert "test-org/repo-a (public)" in result.stdout


def test_milestones_prints_failures(aggregator):
    aggregator.list_milestones = AsyncMock(
        return_value=GroupedResult(failures={"repo-b": ErrorDetail(message="Server Error")})
    )

    result = runner.invoke(app, ["milestones"])

    assert result.exit_code == 0
    assert "FAILED repo-b: Server Error" in result.stdout


def test_github_error_exits_with_failure(aggregator):
    aggregator.list_labels = AsyncMock(
        side_effect=GithubException(401, {"message": "Bad credentials"}, None)
    )

    result = runner.invoke(app, ["labels"])

    assert result.exit_code == 1
    assert "Bad credentials" in result.stdout


def test_release_branch_missing_workspace(tmp_path):
    with patch("app.get_settings") as get_settings:
        get_settings.return_value = Mock(
            workspace_file=str(tmp_path / "missing.json"),
            workspace_root=str(tmp_path),
            github_org="test-org",
        )
        result = runner.invoke(app, ["release-branch", "release-1.0"])

    assert result.exit_code == 1
    assert "Workspace manifest not found" in result.stdout


def test_aggregator_builds_real_client_from_default_settings():
    """Default settings produce a working PyGithub client."""
    from app import _aggregator
    from config import Settings

    aggregator = _aggregator(Settings(github_token="t"))

    assert aggregator.client.per_page == 100
    assert aggregator.client.github is not None


def test_request_timeout_exits_without_traceback(aggregator):
    aggregator.list_labels = AsyncMock(side_effect=ReadTimeout("read timed out"))

    result = runner.invoke(app, ["labels"])

    assert result.exit_code == 1
    assert "read timed out" in result.stdout
    assert isinstance(result.exception, SystemExit)


def test_org_issues_forwards_milestone(aggregator):
    aggregator.list_org_issues = AsyncMock(return_value=[])

    result = runner.invoke(app, ["org-issues", "--milestone", "none", "--labels", "bug"])

    assert result.exit_code == 0
    aggregator.list_org_issues.assert_awaited_once_with(
        "test-org", labels="bug", milestone="none", assignee=None
    )
