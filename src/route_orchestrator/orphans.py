"""
Orphaned route detection and cleanup.

A route is orphaned when no application is bound to it and no route
service is associated with it. The scanner checks routes concurrently,
in batches of at most ``max_concurrency``, and deletes the orphans
through the same delete-and-wait path as a single route deletion.

What happens after one deletion fails is governed by
:class:`~route_orchestrator.config.OrphanFailurePolicy`:

- ``ABORT`` cancels the work still in flight and re-raises the failure.
- ``CONTINUE`` finishes the scan, logs every failure, then re-raises the
  first one.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from route_orchestrator.client import PlatformClient
from route_orchestrator.concurrency import run_concurrently
from route_orchestrator.config import OrphanFailurePolicy
from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.models.resources import Application, Page, Route
from route_orchestrator.pagination import batched, first_item, iterate_pages

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

RouteDeleter = Callable[[str], Awaitable[None]]


class OrphanScanner:
    """Finds and deletes routes nothing refers to.

    Args:
        client: Platform client used for route application listings.
        delete_route: Coroutine function deleting a route by id and
            waiting for the deletion job.
        max_concurrency: Number of routes checked concurrently.
    """

    def __init__(
        self,
        client: PlatformClient,
        delete_route: RouteDeleter,
        max_concurrency: int = 8,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self._client = client
        self._delete_route = delete_route
        self._max_concurrency = max_concurrency

    async def is_orphaned(self, route: Route) -> bool:
        """Whether the route has neither a route service nor a bound application."""
        if route.service_instance_id:
            return False

        async def fetch(page: int) -> Page[Application]:
            return await self._client.list_route_applications(route.id, page)

        return await first_item(iterate_pages(fetch)) is None

    async def _cleanup(self, route: Route) -> str | None:
        if not await self.is_orphaned(route):
            return None
        logger.info(
            "Deleting orphaned route",
            extra={
                "extra_data": {
                    "route_id": route.id,
                    "host": route.host,
                    "path": route.path,
                    "port": route.port,
                }
            },
        )
        await self._delete_route(route.id)
        return route.id

    async def delete_orphans(
        self,
        routes: AsyncIterator[Route],
        policy: OrphanFailurePolicy = OrphanFailurePolicy.ABORT,
    ) -> list[str]:
        """Delete every orphaned route of ``routes``.

        Args:
            routes: Routes of the scanned scope.
            policy: Behaviour after a failed deletion.

        Returns:
            Identifiers of the deleted routes, in listing order.

        Raises:
            RoutesError: The first deletion failure (``JobFailedError`` for a
                failed deletion job).
        """
        if policy == OrphanFailurePolicy.CONTINUE:
            deleted, failures = await self._delete_continuing(routes)
        else:
            deleted, failures = await self._delete_aborting(routes), []

        logger.info(
            "Orphaned route cleanup finished",
            extra={
                "extra_data": {
                    "deleted": len(deleted),
                    "failed": len(failures),
                    "policy": policy.value,
                }
            },
        )
        if failures:
            raise failures[0]
        return deleted

    async def _delete_aborting(self, routes: AsyncIterator[Route]) -> list[str]:
        deleted: list[str] = []
        async for batch in batched(routes, self._max_concurrency):
            try:
                results = await run_concurrently(self._cleanup(route) for route in batch)
            except Exception as exc:
                logger.warning(
                    "Orphaned route cleanup aborted",
                    extra={
                        "extra_data": {
                            "deleted": len(deleted),
                            "error": str(exc),
                        }
                    },
                )
                raise
            deleted.extend(route_id for route_id in results if route_id is not None)
        return deleted

    async def _delete_continuing(
        self, routes: AsyncIterator[Route]
    ) -> tuple[list[str], list[Exception]]:
        deleted: list[str] = []
        failures: list[Exception] = []
        async for batch in batched(routes, self._max_concurrency):
            results = await asyncio.gather(
                *(self._cleanup(route) for route in batch), return_exceptions=True
            )
            for route, result in zip(batch, results, strict=True):
                if isinstance(result, Exception):
                    logger.warning(
                        "Orphaned route deletion failed",
                        extra={"extra_data": {"route_id": route.id, "error": str(result)}},
                    )
                    failures.append(result)
                elif isinstance(result, BaseException):
                    raise result
                elif result is not None:
                    deleted.append(result)
        return deleted, failures
