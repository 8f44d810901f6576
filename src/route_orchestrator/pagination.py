"""
Lazy traversal of paginated platform collections.

Platform collections are served one page at a time. :func:`iterate_pages`
turns a page fetch function into a single forward-only async sequence
that fetches the next page only once the consumer has drained the
previous one.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.models.resources import Page

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

T = TypeVar("T")

FIRST_PAGE = 1


async def iterate_pages(fetch: Callable[[int], Awaitable[Page[T]]]) -> AsyncIterator[T]:
    """Yield every resource of a paginated collection.

    Pages are numbered from 1. Iteration stops after a page reporting
    ``has_more=False`` or after an empty page. A failing fetch propagates
    to the consumer; resources already yielded stay consumed.

    Args:
        fetch: Coroutine function returning the page with the given number.

    Yields:
        Resources in server order, page after page.
    """
    page_number = FIRST_PAGE
    while True:
        page = await fetch(page_number)
        logger.debug(
            "Fetched page",
            extra={
                "extra_data": {
                    "page": page_number,
                    "resources": len(page.resources),
                    "has_more": page.has_more,
                }
            },
        )
        for resource in page.resources:
            yield resource
        if not page.has_more or not page.resources:
            return
        page_number += 1


async def first_item(items: AsyncIterator[T]) -> T | None:
    """Return the first item of an async sequence, or ``None`` if it is empty.

    The sequence is closed afterwards so no further pages are fetched.
    """
    try:
        async for item in items:
            return item
        return None
    finally:
        aclose = getattr(items, "aclose", None)
        if aclose is not None:
            await aclose()


async def batched(items: AsyncIterator[T], size: int) -> AsyncIterator[list[T]]:
    """Group an async sequence into lists of at most ``size`` items.

    Used to bound fan-out: each batch is processed concurrently, batches
    one after the other, so the collection is still consumed lazily.
    """
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    batch: list[T] = []
    async for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch
