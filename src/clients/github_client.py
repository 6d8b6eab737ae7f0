"""
GitHub API Client Module.

Thin asynchronous facade over PyGithub. Listing calls return one raw page at a
time together with the pagination cursors parsed from the ``Link`` header, so
that callers can decide how to fetch the remaining pages. Mutation calls return
typed models.

PyGithub is a blocking library; each call runs in a worker thread so that many
calls can be awaited concurrently from one event loop. Every request carries the
timeout configured on the underlying ``Github`` instance.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, quote, urlparse

from github import Auth, Github

from config import logger
from clients.models import Label, Milestone, Page, PageCursor

_LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


def parse_link_header(value: Optional[str]) -> Dict[str, PageCursor]:
    """
    Parse a GitHub ``Link`` header into cursors keyed by relation.

    Args:
        value (Optional[str]): Raw header, e.g.
            ``<https://api.github.com/orgs/o/repos?page=2&per_page=100>; rel="next"``

    Returns:
        Dict[str, PageCursor]: Cursors for relations that carry a page number.
    """
    cursors: Dict[str, PageCursor] = {}
    if not value:
        return cursors
    for url, rel in _LINK_PATTERN.findall(value):
        query = parse_qs(urlparse(url).query)
        if "page" not in query:
            continue
        per_page = query.get("per_page")
        cursors[rel] = PageCursor(
            page=int(query["page"][0]),
            per_page=int(per_page[0]) if per_page else None,
        )
    return cursors


class GitHubClient:
    """
    Authenticated GitHub API client.

    Attributes:
        github (Github): Underlying PyGithub client
        per_page (int): Default page size for listing calls
    """

    def __init__(self, token: str, timeout: int = 5, per_page: int = 100):
        """Initialize the client.

        Args:
            token (str): GitHub API token
            timeout (int): Per-request timeout in seconds
            per_page (int): Default page size for listing calls
        """
        self.github = Github(auth=Auth.Token(token), timeout=int(timeout), per_page=per_page)
        self.per_page = per_page

    async def _get_page(self, url: str, parameters: Dict[str, Any]) -> Page:
        headers, data = await asyncio.to_thread(
            self.github.requester.requestJsonAndCheck, "GET", url, parameters
        )
        cursors = parse_link_header(headers.get("link"))
        return Page(
            items=data or [],
            next=cursors.get("next"),
            last=cursors.get("last"),
        )

    def _page_parameters(self, page: int, per_page: Optional[int]) -> Dict[str, Any]:
        return {"page": page, "per_page": per_page or self.per_page}

    async def check_rate_limit(self, check_name: str) -> None:
        """
        Log the GitHub API rate limit status.

        Requests are never held back; a low or exhausted budget is only reported.

        Args:
            check_name (str): Identifier for the rate limit check point.
        """
        remaining, limit = await asyncio.to_thread(lambda: self.github.rate_limiting)
        reset_time = datetime.fromtimestamp(
            self.github.rate_limiting_resettime, timezone.utc
        )
        logger.info(
            {
                "message": f"{check_name} API rate limit status",
                "remaining_points": remaining,
                "total_points": limit,
                "reset_time": reset_time.isoformat(),
            }
        )
        if remaining == 0:
            logger.critical(
                {
                    "message": "GitHub API rate limit exhausted",
                    "reset_time": reset_time.isoformat(),
                }
            )
        elif remaining < limit * 0.1:
            logger.warning(
                {
                    "message": "GitHub API rate limit running low",
                    "remaining_points": remaining,
                    "reset_time": reset_time.isoformat(),
                }
            )

    async def org_repositories_page(
        self, org: str, page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        """Fetch one page of an organization's repositories."""
        return await self._get_page(
            f"/orgs/{quote(org)}/repos", self._page_parameters(page, per_page)
        )

    async def issues_page(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: Optional[int] = None,
        labels: Optional[str] = None,
        milestone: Optional[str] = None,
        assignee: Optional[str] = None,
        state: str = "open",
    ) -> Page:
        """
        Fetch one page of a repository's issues.

        Args:
            owner (str): Repository owner
            repo (str): Repository name
            page (int): Page number, starting at 1
            per_page (Optional[int]): Page size, defaults to the client's
            labels (Optional[str]): Comma separated label names, e.g. ``bug,ui``
            milestone (Optional[str]): Milestone number, ``*`` or ``none``
            assignee (Optional[str]): Assignee login, ``*`` or ``none``
            state (str): ``open``, ``closed`` or ``all``

        Returns:
            Page: Raw issues and pagination cursors
        """
        parameters = self._page_parameters(page, per_page)
        parameters["state"] = state
        if labels:
            parameters["labels"] = labels
        if milestone:
            parameters["milestone"] = milestone
        if assignee:
            parameters["assignee"] = assignee
        return await self._get_page(
            f"/repos/{quote(owner)}/{quote(repo)}/issues", parameters
        )

    async def labels_page(
        self, owner: str, repo: str, page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        """Fetch one page of a repository's labels."""
        return await self._get_page(
            f"/repos/{quote(owner)}/{quote(repo)}/labels",
            self._page_parameters(page, per_page),
        )

    async def milestones_page(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: Optional[int] = None,
        state: str = "open",
    ) -> Page:
        """Fetch one page of a repository's milestones."""
        parameters = self._page_parameters(page, per_page)
        parameters["state"] = state
        return await self._get_page(
            f"/repos/{quote(owner)}/{quote(repo)}/milestones", parameters
        )

    async def user_events_page(
        self, user: str, page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        """Fetch one page of a user's public events."""
        return await self._get_page(
            f"/users/{quote(user)}/events", self._page_parameters(page, per_page)
        )

    async def create_label(
        self, owner: str, repo: str, name: str, color: str = "ffffff"
    ) -> Label:
        """Create a label in a repository."""

        def _create() -> Label:
            created = self.github.get_repo(f"{owner}/{repo}", lazy=True).create_label(
                name, color
            )
            return Label.model_validate({**created.raw_data, "repository": repo})

        label = await asyncio.to_thread(_create)
        logger.info(
            {"message": "Created label", "label": name, "repository": f"{owner}/{repo}"}
        )
        return label

    async def delete_label(self, owner: str, repo: str, name: str) -> None:
        """Delete a label from a repository."""

        def _delete() -> None:
            self.github.get_repo(f"{owner}/{repo}", lazy=True).get_label(name).delete()

        await asyncio.to_thread(_delete)
        logger.info(
            {"message": "Deleted label", "label": name, "repository": f"{owner}/{repo}"}
        )

    async def create_milestone(self, owner: str, repo: str, title: str) -> Milestone:
        """Create a milestone in a repository."""

        def _create() -> Milestone:
            created = self.github.get_repo(
                f"{owner}/{repo}", lazy=True
            ).create_milestone(title)
            return Milestone.model_validate({**created.raw_data, "repository": repo})

        milestone = await asyncio.to_thread(_create)
        logger.info(
            {
                "message": "Created milestone",
                "milestone": title,
                "repository": f"{owner}/{repo}",
            }
        )
        return milestone

    async def delete_milestone(self, owner: str, repo: str, number: int) -> None:
        """Delete a milestone from a repository by its number."""

        def _delete() -> None:
            self.github.get_repo(f"{owner}/{repo}", lazy=True).get_milestone(
                number
            ).delete()

        await asyncio.to_thread(_delete)
        logger.info(
            {
                "message": "Deleted milestone",
                "milestone_number": number,
                "repository": f"{owner}/{repo}",
            }
        )
