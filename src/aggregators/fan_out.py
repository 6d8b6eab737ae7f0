"""
Repository Fan-Out Module.

Runs one asynchronous operation against many repositories at the same time and
collects the outcome of each, so that a single failing repository never hides
the results of the others.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, TypeVar

from config import logger
from clients.models import ErrorDetail, SettledResult

R = TypeVar("R")


class FanOutExecutor:
    """
    Apply a per-repository operation to a set of repositories concurrently.

    Every operation is started without waiting for the previous one; there is
    no batching and no retry. The join waits for all operations to settle.
    """

    async def fan_out(
        self,
        repositories: Iterable[R],
        op: Callable[[R], Awaitable[Any]],
        key: Callable[[R], str] = lambda repository: repository.name,
    ) -> Dict[str, SettledResult]:
        """
        Run ``op`` for every repository and settle all results.

        Args:
            repositories (Iterable[R]): Targets, usually ``Repository`` models
            op (Callable[[R], Awaitable[Any]]): Per-repository coroutine function
            key (Callable[[R], str]): Result key for a target, its name by default

        Returns:
            Dict[str, SettledResult]: One entry per target, in input order,
                tagged fulfilled or rejected.
        """
        targets = list(repositories)
        outcomes = await asyncio.gather(
            *[op(target) for target in targets], return_exceptions=True
        )

        results: Dict[str, SettledResult] = {}
        for target, outcome in zip(targets, outcomes):
            name = key(target)
            if isinstance(outcome, BaseException):
                logger.debug(
                    {
                        "message": "Repository operation failed",
                        "repository": name,
                        "error": str(outcome),
                    }
                )
                results[name] = SettledResult(
                    repository=name,
                    status="rejected",
                    error=ErrorDetail.from_exception(outcome),
                )
            else:
                results[name] = SettledResult(
                    repository=name, status="fulfilled", value=outcome
                )
        return results
