"""One cursor/limit contract over every paginated list endpoint."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from taskq.exceptions import RemoteFailure
from taskq.models.paging import ExhaustiveResult, PageRequest, PageResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchPage = Callable[[PageRequest], Awaitable[PageResult[T]]]


async def paginate(
    fetch_page: FetchPage[T],
    *,
    limit: int,
    cursor: str | None = None,
    exhaustive: bool = False,
    exhaustive_limit: int | None = None,
) -> PageResult[T] | ExhaustiveResult[T]:
    """Fetch one page, or every page, of a list endpoint.

    In the default mode ``fetch_page`` is called exactly once with a
    PageRequest carrying the caller's cursor and limit, and its result is
    returned unchanged.

    In exhaustive mode the caller's cursor is ignored: pages are fetched one
    after another starting from no cursor until a page reports no next
    cursor, and all items are concatenated in cursor-chain order. Any
    failure aborts the walk; no partial result is returned.

    Args:
        fetch_page: Coroutine function taking a PageRequest.
        limit: Page size, already within the endpoint's bounds.
        cursor: Cursor from a previous call, paged mode only.
        exhaustive: Walk every page and return an ExhaustiveResult.
        exhaustive_limit: Page size for the walk, usually the endpoint
            maximum. Defaults to ``limit``.

    Returns:
        The single PageResult, or an ExhaustiveResult without a cursor.

    Raises:
        RemoteFailure: If a fetch fails or the remote repeats a cursor.
    """
    if not exhaustive:
        return await fetch_page(PageRequest(cursor=cursor, limit=limit))

    page_size = exhaustive_limit or limit
    result: ExhaustiveResult[T] = ExhaustiveResult()
    seen: set[str] = set()
    next_cursor: str | None = None

    while True:
        page = await fetch_page(PageRequest(cursor=next_cursor, limit=page_size))
        result.items.extend(page.items)
        result.pages += 1
        logger.debug("Fetched page %d (%d items)", result.pages, len(page.items))

        next_cursor = page.next_cursor
        if next_cursor is None:
            return result
        if next_cursor in seen:
            raise RemoteFailure(f"Pagination cursor repeated: {next_cursor}")
        seen.add(next_cursor)
