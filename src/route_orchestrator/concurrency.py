"""
Structured fan-out helpers.

Concurrent per-route work runs inside an ``asyncio.TaskGroup`` so that a
failure cancels its siblings. Callers see the first failure itself
rather than the ``ExceptionGroup`` wrapping it.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def run_concurrently(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Await all ``awaitables`` concurrently and return their results in order.

    Raises:
        Exception: The first failure; remaining work is cancelled.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_as_coroutine(aw)) for aw in awaitables]
    except ExceptionGroup as group:
        raise group.exceptions[0] from None
    return [task.result() for task in tasks]


async def _as_coroutine(awaitable: Awaitable[T]) -> T:
    return await awaitable
