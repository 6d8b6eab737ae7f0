"""
Release Branch Module.

Prepares a release branch in every checkout of the workspace: the branch is
created and pushed, git dependencies in ``package.json`` are pinned to it, and
the pinned manifest is committed and pushed. Checkouts are processed
concurrently and each one's outcome is reported separately.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config import logger
from clients.models import SettledResult
from aggregators.fan_out import FanOutExecutor
from workspace.git import GitRunner
from workspace.package_manifest import ManifestRewrite, rewrite_dependency_branches

PACKAGE_MANIFEST = "package.json"


@dataclass
class ReleaseOutcome:
    """Result of preparing the release branch in one checkout."""

    directory: str
    branch: str
    rewrite: Optional[ManifestRewrite] = None
    committed: bool = False


@dataclass
class CheckoutStatus:
    """Current branch and pending changes of one checkout."""

    directory: str
    branch: str
    changes: List[str] = field(default_factory=list)


class ReleaseBrancher:
    """
    Coordinates release branches across the workspace checkouts.

    Attributes:
        root (str): Directory containing the checkouts
        workspace (Dict[str, str]): Directory name to repository URL
        owner (str): Owner whose git dependencies are pinned
    """

    def __init__(
        self,
        root: str,
        workspace: Dict[str, str],
        owner: str,
        runner: Optional[GitRunner] = None,
        executor: Optional[FanOutExecutor] = None,
    ):
        self.root = root
        self.workspace = workspace
        self.owner = owner
        self.runner = runner or GitRunner()
        self.executor = executor or FanOutExecutor()

    def _path(self, directory: str) -> str:
        return os.path.join(self.root, directory)

    async def prepare_checkout(self, directory: str, branch: str) -> ReleaseOutcome:
        """
        Create ``branch`` in one checkout and pin its package manifest.

        Args:
            directory (str): Checkout directory name
            branch (str): Release branch name

        Returns:
            ReleaseOutcome: What was done in the checkout
        """
        cwd = self._path(directory)
        await self.runner.create_branch(cwd, branch)
        await self.runner.push(cwd, branch)
        outcome = ReleaseOutcome(directory=directory, branch=branch)

        manifest = os.path.join(cwd, PACKAGE_MANIFEST)
        if not os.path.exists(manifest):
            return outcome

        outcome.rewrite = rewrite_dependency_branches(manifest, branch, self.owner)
        if outcome.rewrite.changed:
            await self.runner.commit_all(cwd, branch)
            await self.runner.push(cwd, branch)
            outcome.committed = True
        return outcome

    async def create_release_branch(self, branch: str) -> Dict[str, SettledResult]:
        """Prepare ``branch`` in every checkout, settling each one separately."""
        logger.info(
            {
                "message": "Creating release branch",
                "branch": branch,
                "checkouts": len(self.workspace),
            }
        )
        return await self.executor.fan_out(
            self.workspace,
            lambda directory: self.prepare_checkout(directory, branch),
            key=lambda directory: directory,
        )

    async def checkout_status(self, directory: str) -> CheckoutStatus:
        """Report branch and short status of one checkout."""
        cwd = self._path(directory)
        return CheckoutStatus(
            directory=directory,
            branch=await self.runner.current_branch(cwd),
            changes=await self.runner.status(cwd),
        )

    async def status(self) -> Dict[str, SettledResult]:
        """Report branch and short status of every checkout."""
        return await self.executor.fan_out(
            self.workspace, self.checkout_status, key=lambda directory: directory
        )
