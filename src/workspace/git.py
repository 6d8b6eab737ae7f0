"""
Git Command Module.

Runs ``git`` in a working copy and reports failures as ``GitCommandError``.
Only the commands the release and status workflows need are exposed.
"""

import asyncio
from typing import List

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import logger
from errors import GitCommandError


class GitRunner:
    """Execute git commands inside a working copy."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    async def run(self, cwd: str, *args: str) -> str:
        """
        Run one git command.

        Args:
            cwd (str): Working copy directory
            *args (str): Arguments passed to git

        Returns:
            str: Standard output of the command

        Raises:
            GitCommandError: If the command exits with a non-zero status
        """
        command = [self.executable, *args]
        logger.debug({"message": "Running command", "cwd": cwd, "command": command})
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise GitCommandError(command, process.returncode, stderr.decode("utf-8"))
        return stdout.decode("utf-8")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(GitCommandError),
        reraise=True,
    )
    async def push(self, cwd: str, branch: str, remote: str = "origin") -> str:
        """Push a branch to the remote."""
        return await self.run(cwd, "push", remote, branch)

    async def create_branch(self, cwd: str, branch: str) -> str:
        """Create a branch from the current checkout and switch to it."""
        return await self.run(cwd, "checkout", "-b", branch)

    async def commit_all(self, cwd: str, message: str) -> str:
        """Commit every tracked change."""
        return await self.run(cwd, "commit", "-a", "-m", message)

    async def current_branch(self, cwd: str) -> str:
        """Name of the checked out branch."""
        return (await self.run(cwd, "rev-parse", "--abbrev-ref", "HEAD")).strip()

    async def status(self, cwd: str) -> List[str]:
        """Short status lines of the working copy."""
        output = await self.run(cwd, "status", "-s")
        return [line for line in output.splitlines() if line.strip()]
