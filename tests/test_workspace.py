"""
Workspace Test Suite.

Covers the workspace manifest loader, the git runner and the release branch
workflow. Git itself is replaced by mocks or by stand-in executables.
"""

import json
from unittest.mock import AsyncMock, Mock, call

import pytest
from tenacity import wait_none

from errors import GitCommandError, ManifestError
from workspace.git import GitRunner
from workspace.manifest import load_workspace
from workspace.release import ReleaseBrancher

CORE = "git+https://github.com/RackHD/on-core.git"


def test_load_workspace_keeps_order(tmp_path):
    path = tmp_path / "workspace.json"
    path.write_text(
        '{"on-tasks": "https://github.com/RackHD/on-tasks.git",'
        ' "on-core": "https://github.com/RackHD/on-core.git"}',
        encoding="utf-8",
    )

    assert list(load_workspace(str(path))) == ["on-tasks", "on-core"]


def test_load_workspace_missing_file(tmp_path):
    with pytest.raises(ManifestError, match="not found"):
        load_workspace(str(tmp_path / "missing.json"))


@pytest.mark.parametrize("content", ["{broken", '["on-core"]', '{"on-core": 1}'])
def test_load_workspace_invalid(tmp_path, content):
    path = tmp_path / "workspace.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ManifestError):
        load_workspace(str(path))


@pytest.mark.asyncio
async def test_git_runner_returns_stdout(tmp_path):
    runner = GitRunner(executable="echo")

    assert await runner.run(str(tmp_path), "hello") == "hello\n"


@pytest.mark.asyncio
async def test_git_runner_raises_on_failure(tmp_path):
    runner = GitRunner(executable="false")

    with pytest.raises(GitCommandError) as exc_info:
        await runner.run(str(tmp_path), "status")

    assert exc_info.value.code == 1
    assert exc_info.value.command == "false status"


@pytest.mark.asyncio
async def test_git_runner_status_lines(tmp_path):
    runner = GitRunner()
    runner.run = AsyncMock(return_value=" M package.json\n?? notes.txt\n")

    assert await runner.status(str(tmp_path)) == [" M package.json", "?? notes.txt"]
    runner.run.assert_awaited_once_with(str(tmp_path), "status", "-s")


@pytest.mark.asyncio
async def test_git_runner_push_retries(tmp_path):
    runner = GitRunner()
    runner.run = AsyncMock(
        side_effect=[GitCommandError(["git", "push"], 128, "timeout"), "pushed"]
    )

    push = GitRunner.push.retry_with(wait=wait_none())
    result = await push(runner, str(tmp_path), "release-1.0")

    assert result == "pushed"
    assert runner.run.await_count == 2


@pytest.fixture
def workspace_root(tmp_path):
    """Two checkouts; only on-http has a package manifest."""
    (tmp_path / "on-core").mkdir()
    (tmp_path / "on-http").mkdir()
    (tmp_path / "on-http" / "package.json").write_text(
        json.dumps({"dependencies": {"on-core": CORE}}, indent=2) + "\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def runner():
    runner = Mock()
    runner.create_branch = AsyncMock(return_value="")
    runner.push = AsyncMock(return_value="")
    runner.commit_all = AsyncMock(return_value="")
    runner.current_branch = AsyncMock(return_value="master")
    runner.status = AsyncMock(return_value=[])
    return runner


@pytest.fixture
def brancher(workspace_root, runner):
    workspace = {
        "on-core": "https://github.com/RackHD/on-core.git",
        "on-http": "https://github.com/RackHD/on-http.git",
    }
    return ReleaseBrancher(str(workspace_root), workspace, "RackHD", runner=runner)


@pytest.mark.asyncio
async def test_release_branch_pins_and_commits(brancher, runner, workspace_root):
    results = await brancher.create_release_branch("release-1.0")

    assert list(results) == ["on-core", "on-http"]
    assert all(result.fulfilled for result in results.values())

    core = results["on-core"].value
    assert core.rewrite is None and core.committed is False

    http = results["on-http"].value
    assert http.committed is True
    assert http.rewrite.changed == {"on-core": f"{CORE}#release-1.0"}

    http_dir = str(workspace_root / "on-http")
    runner.commit_all.assert_awaited_once_with(http_dir, "release-1.0")
    assert runner.push.await_args_list.count(call(http_dir, "release-1.0")) == 2


@pytest.mark.asyncio
async def test_release_branch_isolates_failures(brancher, runner, workspace_root):
    async def create_branch(cwd, branch):
        if cwd.endswith("on-core"):
            raise GitCommandError(["git", "checkout", "-b", branch], 128, "already exists")
        return ""

    runner.create_branch = AsyncMock(side_effect=create_branch)

    results = await brancher.create_release_branch("release-1.0")

    assert results["on-core"].rejected
    assert results["on-core"].error.code == 128
    assert "already exists" in results["on-core"].error.message
    assert results["on-http"].fulfilled


@pytest.mark.asyncio
async def test_release_branch_skips_commit_when_all_pinned(brancher, runner, workspace_root):
    (workspace_root / "on-http" / "package.json").write_text(
        json.dumps({"dependencies": {"on-core": f"{CORE}#hotfix"}}, indent=2),
        encoding="utf-8",
    )

    results = await brancher.create_release_branch("release-1.0")

    assert results["on-http"].value.rewrite.pinned == {"on-core": "hotfix"}
    runner.commit_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_workspace_status(brancher, runner):
    runner.status = AsyncMock(side_effect=[[" M index.js"], []])

    results = await brancher.status()

    assert results["on-core"].value.branch == "master"
    assert results["on-core"].value.changes == [" M index.js"]
    assert results["on-http"].value.changes == []
