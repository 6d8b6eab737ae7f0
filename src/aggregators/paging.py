"""
Paginated Listing Module.

Collects every page of a GitHub listing endpoint into one sequence. The first
page tells us how many pages exist; the remaining pages are then requested
concurrently and concatenated in page order.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List

from config import logger
from clients.models import Page

PageFetch = Callable[..., Awaitable[Page]]


class PagedFetcher:
    """
    Exhaustively retrieve a paginated listing.

    There is no partial success at this level: a failing page fails the whole
    fetch. Per-repository leniency is handled by the fan-out layer.
    """

    def _keep(self, items: List[Dict[str, Any]], identity_field: str) -> List[Dict[str, Any]]:
        kept = [item for item in items if identity_field in item]
        if len(kept) != len(items):
            logger.debug(
                {
                    "message": "Dropped listing entries without identity field",
                    "identity_field": identity_field,
                    "dropped": len(items) - len(kept),
                }
            )
        return kept

    async def fetch_all(
        self, page_fetch: PageFetch, identity_field: str = "id", **kwargs: Any
    ) -> List[Dict[str, Any]]:
        """
        Fetch every page and return the concatenated items.

        Args:
            page_fetch (PageFetch): Coroutine function returning one ``Page``;
                called with ``page`` and ``per_page`` keyword arguments plus
                ``kwargs``.
            identity_field (str): Items lacking this key are dropped.
            **kwargs: Extra arguments forwarded to every ``page_fetch`` call.

        Returns:
            List[Dict[str, Any]]: Items of all pages, in page order.

        Raises:
            Exception: Whatever the failing page request raised.
        """
        first = await page_fetch(page=1, **kwargs)
        results = self._keep(first.items, identity_field)

        if first.last is not None:
            pages = await asyncio.gather(
                *[
                    page_fetch(page=number, per_page=first.last.per_page, **kwargs)
                    for number in range(2, first.last.page + 1)
                ]
            )
            for page in pages:
                results.extend(self._keep(page.items, identity_field))
            return results

        # Endpoints without a last link can only be walked one page at a time
        cursor = first.next
        while cursor is not None:
            page = await page_fetch(page=cursor.page, per_page=cursor.per_page, **kwargs)
            results.extend(self._keep(page.items, identity_field))
            cursor = page.next

        return results
