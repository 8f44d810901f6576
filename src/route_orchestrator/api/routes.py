"""
API route definitions for the route orchestrator HTTP server.

All routes are prefixed with ``/api``. Each endpoint delegates to one
:class:`~route_orchestrator.orchestrator.RouteOperations` method and maps
its exceptions onto HTTP statuses:

- 404: a named resource or the addressed route does not exist
- 502: the platform rejected a request or a job failed
- 504: a job did not complete before the configured deadline
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from route_orchestrator import __version__
from route_orchestrator.errors import JobTimeoutError, ResourceNotFoundError, RoutesError
from route_orchestrator.logging_config import get_structured_logger
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
from route_orchestrator.models.resources import Route
from route_orchestrator.models.views import RouteView
from route_orchestrator.orchestrator import RouteOperations

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

router = APIRouter(prefix="/api", tags=["routes"])


def _get_operations() -> RouteOperations:
    """Get the operations singleton via the http_server module."""
    from route_orchestrator.http_server import _get_operations as get_ops

    return get_ops()


def _http_error(exc: RoutesError) -> HTTPException:
    if isinstance(exc, ResourceNotFoundError):
        status_code = 404
    elif isinstance(exc, JobTimeoutError):
        status_code = 504
    else:
        status_code = 502
    logger.warning(
        "Route operation failed",
        extra={
            "extra_data": {
                "error_code": exc.error_code,
                "message": exc.message,
                "status_code": status_code,
            }
        },
    )
    return HTTPException(
        status_code=status_code,
        detail={
            "error_code": exc.error_code,
            "error_message": exc.message,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


@router.get("/health")
async def get_health() -> dict[str, Any]:
    """Return liveness and version.

    This endpoint does not touch the platform API.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/routes", response_model=list[RouteView])
async def get_routes(
    level: Level = Query(
        default=Level.SPACE,
        description="List the routes of the current space or the whole organization.",
    ),
) -> list[RouteView]:
    """Return every route of the scope, annotated with names."""
    operations = _get_operations()
    try:
        views = [view async for view in operations.list_routes(ListRoutesRequest(level=level))]
    except RoutesError as exc:
        raise _http_error(exc) from exc

    logger.info(
        "HTTP route listing served",
        extra={"extra_data": {"level": level.value, "routes": len(views)}},
    )
    return views


@router.post("/routes/check")
async def post_check(request: CheckRouteRequest) -> dict[str, Any]:
    """Report whether an HTTP route exists. An unknown domain reports ``false``."""
    try:
        exists = await _get_operations().check(request)
    except RoutesError as exc:
        raise _http_error(exc) from exc
    return {"exists": exists}


@router.post("/routes", status_code=201, response_model=Route)
async def post_route(request: CreateRouteRequest) -> Route:
    """Create a route in the named space.

    Error responses:
    - 404: the domain or the space does not exist
    - 502: the platform rejected the route
    """
    try:
        return await _get_operations().create(request)
    except RoutesError as exc:
        raise _http_error(exc) from exc


@router.post("/routes/map")
async def post_map(request: MapRouteRequest) -> dict[str, Any]:
    """Bind an application to a route, creating the route if needed.

    Returns:
        JSON object with the route's ``port`` (``null`` for HTTP routes).
    """
    try:
        port = await _get_operations().map(request)
    except RoutesError as exc:
        raise _http_error(exc) from exc
    return {"port": port}


@router.post("/routes/unmap")
async def post_unmap(request: UnmapRouteRequest) -> dict[str, Any]:
    try:
        await _get_operations().unmap(request)
    except RoutesError as exc:
        raise _http_error(exc) from exc
    return {"status": "unmapped"}


@router.post("/routes/delete")
async def post_delete(request: DeleteRouteRequest) -> dict[str, Any]:
    """Delete a route and wait for the deletion job.

    Error responses:
    - 404: the domain or the route does not exist
    - 502: the deletion job failed
    - 504: the deletion job outlived the configured deadline
    """
    try:
        await _get_operations().delete(request)
    except RoutesError as exc:
        raise _http_error(exc) from exc
    return {"status": "deleted"}


@router.post("/routes/orphans/delete")
async def post_delete_orphans(request: DeleteOrphanedRoutesRequest) -> dict[str, Any]:
    """Delete every route with no bound application and no route service.

    Returns:
        JSON object with the identifiers of the ``deleted`` routes.
    """
    try:
        deleted = await _get_operations().delete_orphaned_routes(request)
    except RoutesError as exc:
        raise _http_error(exc) from exc

    logger.info(
        "HTTP orphan cleanup served",
        extra={"extra_data": {"level": request.level.value, "deleted": len(deleted)}},
    )
    return {"deleted": deleted}
