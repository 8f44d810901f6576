"""
Route lookup by key.

A route is keyed by its domain plus either ``(host, path)`` or ``port``.
The platform filters listings server-side, but its filters are looser
than route identity (an absent path filter matches every path), so
:class:`RouteMatcher` re-checks each candidate client-side.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from route_orchestrator.client import PlatformClient
from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.models.resources import Page, Route
from route_orchestrator.pagination import first_item, iterate_pages

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)


def route_matches(
    route: Route,
    host: str | None,
    path: str | None,
    port: int | None,
) -> bool:
    """Whether ``route`` is the route identified by the given key.

    TCP keys (``port`` set) compare ports only. HTTP keys compare host and
    path with absent values normalized to ``""``.
    """
    if port is not None:
        return route.port == port
    return route.normalized_host == (host or "") and route.normalized_path == (path or "")


class RouteMatcher:
    """Existence checks and lookups of routes within a domain.

    Args:
        client: Platform client used for route listings.
    """

    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    @staticmethod
    async def _matching(
        fetch: Callable[[int], Awaitable[Page[Route]]],
        host: str | None,
        path: str | None,
        port: int | None,
    ) -> AsyncIterator[Route]:
        async for route in iterate_pages(fetch):
            if route_matches(route, host, path, port):
                yield route

    async def exists(self, domain_id: str, host: str | None, path: str | None) -> bool:
        """Return True iff a route in the domain has exactly this host and path.

        An absent path only matches routes without a path.
        """

        async def fetch(page: int) -> Page[Route]:
            return await self._client.list_routes(page, domain_id=domain_id, host=host, path=path)

        found = await first_item(self._matching(fetch, host, path, None)) is not None
        logger.debug(
            "Route existence checked",
            extra={
                "extra_data": {
                    "domain_id": domain_id,
                    "host": host,
                    "path": path,
                    "exists": found,
                }
            },
        )
        return found

    async def find(
        self,
        domain_id: str,
        host: str | None = None,
        path: str | None = None,
        port: int | None = None,
    ) -> Route | None:
        """Return the first route matching the key, or ``None``.

        When several routes match, the first in listing order wins.
        """

        async def fetch(page: int) -> Page[Route]:
            return await self._client.list_routes(
                page, domain_id=domain_id, host=host, path=path, port=port
            )

        route = await first_item(self._matching(fetch, host, path, port))
        logger.debug(
            "Route lookup finished",
            extra={
                "extra_data": {
                    "domain_id": domain_id,
                    "host": host,
                    "path": path,
                    "port": port,
                    "route_id": route.id if route else None,
                }
            },
        )
        return route
