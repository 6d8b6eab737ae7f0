"""
Organization Aggregation Module.

Org-wide operations built from three steps: enumerate the organization's
repositories, fan a per-repository call out across all of them, and merge the
per-repository results.

Listing operations are lenient: a repository whose fetch fails is logged and
left out of the merged index, and recorded under ``failures``. Mutating
operations return the settled result of every repository so that the caller
can report success and failure per repository.
"""

from typing import Dict, List, Optional

from config import logger
from clients.github_client import GitHubClient
from clients.models import (
    Event,
    GroupedResult,
    Issue,
    Label,
    Milestone,
    Repository,
    SettledResult,
)
from aggregators.fan_out import FanOutExecutor
from aggregators.index import merge_settled
from aggregators.paging import PagedFetcher
from errors import MilestoneNotFoundError


class OrgAggregator:
    """
    Coordinates operations across every repository of an organization.

    Attributes:
        client (GitHubClient): API client used for every call
        fetcher (PagedFetcher): Collects paginated listings
        executor (FanOutExecutor): Runs per-repository calls concurrently
    """

    def __init__(
        self,
        client: GitHubClient,
        fetcher: Optional[PagedFetcher] = None,
        executor: Optional[FanOutExecutor] = None,
    ):
        """Initialize the aggregator.

        Args:
            client (GitHubClient): API client used for every call
            fetcher (Optional[PagedFetcher]): Pagination helper
            executor (Optional[FanOutExecutor]): Fan-out helper
        """
        self.client = client
        self.fetcher = fetcher or PagedFetcher()
        self.executor = executor or FanOutExecutor()

    def _log_failures(self, operation: str, org: str, failures: Dict) -> None:
        for repository, error in failures.items():
            logger.error(
                {
                    "message": f"Failed to {operation}",
                    "organization": org,
                    "repository": repository,
                    "error": error.message,
                }
            )

    async def list_repositories(self, org: str) -> List[Repository]:
        """
        List every repository of an organization.

        Entries without an ``id`` are dropped. A failure here fails the call,
        since there is nothing to fan out to.
        """
        await self.client.check_rate_limit(f"{org} repository listing")
        items = await self.fetcher.fetch_all(self.client.org_repositories_page, org=org)
        repositories = [Repository.model_validate(item) for item in items]
        logger.info(
            {
                "message": "Listed organization repositories",
                "organization": org,
                "repository_count": len(repositories),
            }
        )
        return repositories

    async def list_issues(
        self,
        owner: str,
        repo: str,
        labels: Optional[str] = None,
        milestone: Optional[str] = None,
        assignee: Optional[str] = None,
    ) -> List[Issue]:
        """List every issue of one repository matching the optional filters."""
        items = await self.fetcher.fetch_all(
            self.client.issues_page,
            owner=owner,
            repo=repo,
            labels=labels,
            milestone=milestone,
            assignee=assignee,
        )
        return [Issue.model_validate({**item, "repository": repo}) for item in items]

    async def list_org_issues(
        self,
        org: str,
        labels: Optional[str] = None,
        milestone: Optional[str] = None,
        assignee: Optional[str] = None,
    ) -> List[Issue]:
        """
        List the issues of every repository in the organization.

        Returns:
            List[Issue]: Issues of all repositories, in repository order.
                Repositories whose listing failed are logged and skipped.
        """
        repositories = await self.list_repositories(org)
        settled = await self.executor.fan_out(
            repositories,
            lambda repository: self.list_issues(
                org, repository.name, labels, milestone, assignee
            ),
        )
        issues: List[Issue] = []
        failures = {}
        for name, result in settled.items():
            if result.rejected:
                failures[name] = result.error
            else:
                issues.extend(result.value)
        self._log_failures("retrieve issues", org, failures)
        return issues

    async def _repository_labels(self, org: str, repository: Repository) -> List[Label]:
        items = await self.fetcher.fetch_all(
            self.client.labels_page, identity_field="name", owner=org, repo=repository.name
        )
        return [Label.model_validate({**item, "repository": repository.name}) for item in items]

    async def _repository_milestones(
        self, org: str, repository: Repository, state: str = "open"
    ) -> List[Milestone]:
        items = await self.fetcher.fetch_all(
            self.client.milestones_page, owner=org, repo=repository.name, state=state
        )
        return [
            Milestone.model_validate({**item, "repository": repository.name})
            for item in items
        ]

    async def list_labels(self, org: str) -> GroupedResult:
        """
        List labels across the organization, grouped by label name.

        Each repository's label is appended to the list of its name, so a name
        used in several repositories maps to several labels.
        """
        repositories = await self.list_repositories(org)
        settled = await self.executor.fan_out(
            repositories, lambda repository: self._repository_labels(org, repository)
        )
        merged = merge_settled(settled, lambda label: label.name)
        self._log_failures("retrieve labels", org, merged.failures)
        return merged

    async def list_milestones(self, org: str) -> GroupedResult:
        """List milestones across the organization, grouped by title."""
        repositories = await self.list_repositories(org)
        settled = await self.executor.fan_out(
            repositories, lambda repository: self._repository_milestones(org, repository)
        )
        merged = merge_settled(settled, lambda milestone: milestone.title)
        self._log_failures("retrieve milestones", org, merged.failures)
        return merged

    async def create_labels(
        self, org: str, name: str, color: str = "ffffff"
    ) -> Dict[str, SettledResult]:
        """Create a label in every repository of the organization."""
        repositories = await self.list_repositories(org)
        return await self.executor.fan_out(
            repositories,
            lambda repository: self.client.create_label(org, repository.name, name, color),
        )

    async def delete_labels(self, org: str, name: str) -> Dict[str, SettledResult]:
        """Delete a label from every repository of the organization."""
        repositories = await self.list_repositories(org)
        return await self.executor.fan_out(
            repositories,
            lambda repository: self.client.delete_label(org, repository.name, name),
        )

    async def create_milestones(self, org: str, title: str) -> Dict[str, SettledResult]:
        """Create a milestone in every repository of the organization."""
        repositories = await self.list_repositories(org)
        return await self.executor.fan_out(
            repositories,
            lambda repository: self.client.create_milestone(org, repository.name, title),
        )

    async def delete_milestone(
        self, org: str, repository: Repository, title: str
    ) -> List[int]:
        """
        Delete the milestones titled ``title`` from one repository.

        Returns:
            List[int]: Numbers of the deleted milestones

        Raises:
            MilestoneNotFoundError: If no milestone has that title; nothing is
                deleted in that case.
        """
        milestones = await self._repository_milestones(org, repository, state="all")
        matches = [milestone for milestone in milestones if milestone.title == title]
        if not matches:
            logger.warning(
                {
                    "message": "Milestone not found",
                    "milestone": title,
                    "repository": f"{org}/{repository.name}",
                }
            )
            raise MilestoneNotFoundError(title, f"{org}/{repository.name}")
        for milestone in matches:
            await self.client.delete_milestone(org, repository.name, milestone.number)
        return [milestone.number for milestone in matches]

    async def delete_milestones(self, org: str, title: str) -> Dict[str, SettledResult]:
        """Delete a milestone, by title, from every repository of the organization."""
        repositories = await self.list_repositories(org)
        return await self.executor.fan_out(
            repositories,
            lambda repository: self.delete_milestone(org, repository, title),
        )

    async def list_user_events(self, user: str) -> List[Event]:
        """List every public event of a user."""
        items = await self.fetcher.fetch_all(self.client.user_events_page, user=user)
        return [Event.model_validate(item) for item in items]
