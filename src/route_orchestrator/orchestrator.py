"""
Route lifecycle operations.

:class:`RouteOperations` composes name resolution, route matching, job
polling, and orphan scanning into the public operations:

- ``check``  -- does an HTTP route exist?
- ``create`` -- create a route in a named space
- ``map``    -- bind an application to a route, creating the route if needed
- ``unmap``  -- remove an application's binding from a route
- ``delete`` -- delete a route and wait for the deletion job
- ``list_routes`` -- stream annotated routes of the organization or space
- ``delete_orphaned_routes`` -- delete routes nothing refers to

Each operation is a sequential pipeline of platform calls that stops at
the first failure. Nothing is cached between calls: every name is
resolved afresh on every invocation. A failed step does not undo the
steps before it (a ``map`` may leave a freshly created, unbound route).
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from route_orchestrator.client import PlatformClient
from route_orchestrator.concurrency import run_concurrently
from route_orchestrator.config import RoutesConfig, get_config
from route_orchestrator.errors import ResourceNotFoundError
from route_orchestrator.job_poller import JobPoller
from route_orchestrator.logging_config import bind_operation, get_structured_logger
from route_orchestrator.matcher import RouteMatcher
from route_orchestrator.models.requests import (
    CheckRouteRequest,
    CreateRouteRequest,
    DeleteOrphanedRoutesRequest,
    DeleteRouteRequest,
    Level,
    ListRoutesRequest,
    MapRouteRequest,
    UnmapRouteRequest,
)
from route_orchestrator.models.resources import (
    Application,
    Domain,
    Page,
    Route,
    ServiceInstance,
    Space,
)
from route_orchestrator.models.views import RouteView
from route_orchestrator.orphans import OrphanScanner
from route_orchestrator.pagination import batched, iterate_pages
from route_orchestrator.resolver import find_named, resolve_id

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)


class RouteOperations:
    """Public route operations against one organization and space.

    Args:
        client: Platform client.
        organization_id: Organization operations run against.
        space_id: Current space (``map`` creates routes here, space-level
            listings and orphan scans read from here).
        poller: Job poller; built from ``config`` when omitted.
        config: Settings; the global config when omitted.
    """

    def __init__(
        self,
        client: PlatformClient,
        organization_id: str,
        space_id: str,
        *,
        poller: JobPoller | None = None,
        config: RoutesConfig | None = None,
    ) -> None:
        self._client = client
        self._organization_id = organization_id
        self._space_id = space_id
        self._config = config or get_config()
        self._poller = poller or JobPoller(
            client, interval_seconds=self._config.job_poll_interval_seconds
        )
        self._matcher = RouteMatcher(client)
        self._orphans = OrphanScanner(
            client, self._delete_and_wait, max_concurrency=self._config.max_concurrency
        )

    @classmethod
    def from_config(
        cls, client: PlatformClient, config: RoutesConfig | None = None
    ) -> "RouteOperations":
        """Build operations targeting the configured organization and space."""
        config = config or get_config()
        return cls(client, config.organization_id, config.space_id, config=config)

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    def _domains_named(self, name: str) -> AsyncIterator[Domain]:
        async def fetch(page: int) -> Page[Domain]:
            return await self._client.list_domains(page, name=name)

        return iterate_pages(fetch)

    def _visible(self, domain: Domain) -> bool:
        return domain.visible_to(self._organization_id)

    async def _find_domain(self, name: str) -> Domain | None:
        return await find_named(self._domains_named(name), name, self._visible)

    async def _resolve_domain_id(self, name: str) -> str:
        return await resolve_id(self._domains_named(name), "Domain", name, self._visible)

    async def _resolve_space_id(self, name: str) -> str:
        async def fetch(page: int) -> Page[Space]:
            return await self._client.list_spaces(
                page, organization_id=self._organization_id, name=name
            )

        return await resolve_id(iterate_pages(fetch), "Space", name)

    async def _resolve_application_id(self, name: str) -> str:
        async def fetch(page: int) -> Page[Application]:
            return await self._client.list_applications(page, space_id=self._space_id, name=name)

        return await resolve_id(iterate_pages(fetch), "Application", name)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def check(self, request: CheckRouteRequest) -> bool:
        """Return whether the HTTP route exists.

        An unknown domain yields ``False`` rather than an error.
        """
        bind_operation("routes.check")
        domain = await self._find_domain(request.domain)
        if domain is None:
            logger.info(
                "Domain not found, route reported absent",
                extra={"extra_data": {"domain": request.domain}},
            )
            return False
        return await self._matcher.exists(domain.id, request.host, request.path)

    async def create(self, request: CreateRouteRequest) -> Route:
        """Create a route in the named space.

        Returns:
            The created route, carrying its identifier and any assigned port.

        Raises:
            ResourceNotFoundError: If the domain or the space does not exist.
        """
        bind_operation("routes.create")
        domain_id = await self._resolve_domain_id(request.domain)
        space_id = await self._resolve_space_id(request.space)
        route = await self._client.create_route(
            domain_id=domain_id,
            space_id=space_id,
            host=request.host,
            path=request.path,
            port=request.port,
        )
        logger.info(
            "Route created",
            extra={
                "extra_data": {
                    "route_id": route.id,
                    "domain": request.domain,
                    "space": request.space,
                    "host": request.host,
                    "path": request.path,
                    "port": route.port,
                }
            },
        )
        return route

    async def map(self, request: MapRouteRequest) -> int | None:
        """Bind an application to a route, creating the route if it is missing.

        Returns:
            The route's port for TCP routes, ``None`` for HTTP routes.

        Raises:
            ResourceNotFoundError: If the application or the domain does not exist.
        """
        bind_operation("routes.map")
        application_id = await self._resolve_application_id(request.application_name)
        domain_id = await self._resolve_domain_id(request.domain)

        route = await self._matcher.find(domain_id, request.host, request.path, request.port)
        if route is None:
            route = await self._client.create_route(
                domain_id=domain_id,
                space_id=self._space_id,
                host=request.host,
                path=request.path,
                port=request.port,
            )
            logger.info(
                "Route created for mapping",
                extra={"extra_data": {"route_id": route.id, "domain": request.domain}},
            )

        await self._client.insert_route_destination(route.id, application_id)
        logger.info(
            "Application mapped to route",
            extra={
                "extra_data": {
                    "route_id": route.id,
                    "application": request.application_name,
                }
            },
        )
        return route.port

    async def unmap(self, request: UnmapRouteRequest) -> None:
        """Remove the application's bindings from a route.

        Raises:
            ResourceNotFoundError: If the application, the domain, or the
                route does not exist.
        """
        bind_operation("routes.unmap")
        application_id = await self._resolve_application_id(request.application_name)
        domain_id = await self._resolve_domain_id(request.domain)

        route = await self._matcher.find(domain_id, request.host, request.path, request.port)
        if route is None:
            raise ResourceNotFoundError("Route", request.domain)

        bindings = [
            d
            for d in route.destinations
            if d.application_id == application_id and d.destination_id is not None
        ]
        if not bindings:
            logger.warning(
                "Application is not mapped to route",
                extra={
                    "extra_data": {
                        "route_id": route.id,
                        "application": request.application_name,
                    }
                },
            )
            return

        for destination in bindings:
            await self._client.remove_route_destination(route.id, destination.destination_id)
        logger.info(
            "Application unmapped from route",
            extra={
                "extra_data": {
                    "route_id": route.id,
                    "application": request.application_name,
                    "destinations_removed": len(bindings),
                }
            },
        )

    async def delete(self, request: DeleteRouteRequest) -> None:
        """Delete a route and wait until the deletion job completes.

        Raises:
            ResourceNotFoundError: If the domain or the route does not exist.
            JobFailedError: If the deletion job fails.
            JobTimeoutError: If the job outlives the configured deadline.
        """
        bind_operation("routes.delete")
        domain_id = await self._resolve_domain_id(request.domain)
        route = await self._matcher.find(domain_id, request.host, request.path, request.port)
        if route is None:
            raise ResourceNotFoundError("Route", request.domain)
        await self._delete_and_wait(route.id)

    async def _delete_and_wait(self, route_id: str) -> None:
        job_id = await self._client.delete_route(route_id)
        if job_id is None:
            logger.info(
                "Route deleted synchronously",
                extra={"extra_data": {"route_id": route_id}},
            )
            return
        logger.info(
            "Route deletion submitted",
            extra={"extra_data": {"route_id": route_id, "job_id": job_id}},
        )
        await self._poller.wait(job_id, timeout=self._config.job_completion_timeout_seconds)

    def _scope_routes(self, level: Level) -> AsyncIterator[Route]:
        async def fetch(page: int) -> Page[Route]:
            if level == Level.ORGANIZATION:
                return await self._client.list_routes(page, organization_id=self._organization_id)
            return await self._client.list_routes(page, space_id=self._space_id)

        return iterate_pages(fetch)

    async def delete_orphaned_routes(
        self, request: DeleteOrphanedRoutesRequest | None = None
    ) -> list[str]:
        """Delete every route with no bound application and no route service.

        Returns:
            Identifiers of the deleted routes.

        Raises:
            JobFailedError: The first failed deletion job.
        """
        bind_operation("routes.delete_orphaned")
        request = request or DeleteOrphanedRoutesRequest()
        policy = request.failure_policy or self._config.orphan_failure_policy
        return await self._orphans.delete_orphans(self._scope_routes(request.level), policy)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_routes(self, request: ListRoutesRequest | None = None) -> AsyncIterator[RouteView]:
        """Stream the routes of the organization or the current space.

        Domain and space names are joined from indexes fetched once up
        front; application and service names are fetched per route,
        concurrently within each batch. Views come out in route listing
        order.
        """
        bind_operation("routes.list")
        request = request or ListRoutesRequest()

        domains, spaces = await run_concurrently(
            [
                _collect(self._client.list_domains),
                _collect(
                    lambda p: self._client.list_spaces(p, organization_id=self._organization_id)
                ),
            ]
        )
        # The platform has no visibility filter; apply it after draining.
        domain_names = {d.id: d.name for d in domains if self._visible(d)}
        space_names = {s.id: s.name for s in spaces}
        service_names: dict[str, dict[str, str]] = {}

        emitted = 0
        async for batch in batched(self._scope_routes(request.level), self._config.max_concurrency):
            await self._index_services(batch, service_names)
            views = await run_concurrently(
                self._annotate(route, domain_names, space_names, service_names)
                for route in batch
            )
            for view in views:
                emitted += 1
                yield view

        logger.info(
            "Routes listed",
            extra={"extra_data": {"level": request.level.value, "routes": emitted}},
        )

    async def _index_services(
        self, routes: list[Route], index: dict[str, dict[str, str]]
    ) -> None:
        """Fetch service-instance names for spaces not indexed yet."""
        space_ids = sorted(
            {
                r.space_id
                for r in routes
                if r.service_instance_id and r.space_id and r.space_id not in index
            }
        )
        if not space_ids:
            return

        async def names_in(space_id: str) -> dict[str, str]:
            instances: list[ServiceInstance] = await _collect(
                lambda p: self._client.list_space_service_instances(space_id, p)
            )
            return {i.id: i.name for i in instances}

        for space_id, names in zip(
            space_ids, await run_concurrently(names_in(s) for s in space_ids), strict=True
        ):
            index[space_id] = names

    async def _annotate(
        self,
        route: Route,
        domain_names: dict[str, str],
        space_names: dict[str, str],
        service_names: dict[str, dict[str, str]],
    ) -> RouteView:
        applications = await _collect(
            lambda p: self._client.list_route_applications(route.id, p)
        )
        service = None
        if route.service_instance_id and route.space_id:
            service = service_names.get(route.space_id, {}).get(route.service_instance_id)
        return RouteView(
            id=route.id,
            domain=domain_names.get(route.domain_id),
            host=route.host or None,
            path=route.path or None,
            port=route.port,
            applications=[a.name for a in applications],
            service=service,
            space=space_names.get(route.space_id) if route.space_id else None,
        )


async def _collect(fetch: Any) -> list[Any]:
    """Drain every page of ``fetch`` into a list."""
    return [item async for item in iterate_pages(fetch)]
