"""
Application Exceptions.

GitHub transport and authentication failures are raised by PyGithub as
``github.GithubException`` and are not wrapped. The exceptions below cover the
domain failures raised by this application.
"""

from typing import List, Optional


class OrgsyncError(Exception):
    """Base class for application errors."""


class MilestoneNotFoundError(OrgsyncError):
    """Raised when a repository has no milestone with the requested title."""

    def __init__(self, title: str, repository: str):
        self.title = title
        self.repository = repository
        super().__init__(f"No milestone named {title} found in {repository}")


class ManifestError(OrgsyncError):
    """Raised when a workspace or package manifest cannot be read."""


class GitCommandError(OrgsyncError):
    """Raised when a git command exits with a non-zero status."""

    def __init__(
        self, command: List[str], returncode: Optional[int], stderr: str = ""
    ):
        self.command = " ".join(command)
        self.code = returncode
        self.stderr = stderr
        super().__init__(
            f"Error running command: {self.command} : ({returncode}) {stderr.strip()}"
        )
