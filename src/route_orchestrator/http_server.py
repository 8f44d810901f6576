"""
FastAPI HTTP server for the route orchestrator.

Provides a REST API over :class:`~route_orchestrator.orchestrator.RouteOperations`.

Registered endpoints:
- GET  /api/health                 -- liveness and version
- GET  /api/routes                 -- annotated routes of the space or organization
- POST /api/routes/check           -- does an HTTP route exist?
- POST /api/routes                 -- create a route
- POST /api/routes/map             -- bind an application to a route
- POST /api/routes/unmap           -- remove an application's binding
- POST /api/routes/delete          -- delete a route
- POST /api/routes/orphans/delete  -- delete orphaned routes
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from route_orchestrator import __version__
from route_orchestrator.config import get_config
from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.orchestrator import RouteOperations

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

# Lazy-initialized singletons. The platform client owns a connection pool
# and is closed when the application shuts down.
_client_instance: Any = None
_operations_instance: RouteOperations | None = None


def _get_operations() -> RouteOperations:
    """Get or create the RouteOperations singleton.

    The operations are built on first access from the global config, over
    an :class:`~route_orchestrator.client.HttpPlatformClient`.
    """
    global _client_instance, _operations_instance
    if _operations_instance is None:
        from route_orchestrator.client import HttpPlatformClient

        config = get_config()
        _client_instance = HttpPlatformClient(config)
        _operations_instance = RouteOperations.from_config(_client_instance, config)
    return _operations_instance


def set_operations(operations: RouteOperations | None) -> None:
    """Install the RouteOperations instance served by the API."""
    global _operations_instance
    _operations_instance = operations


def reset_http_singletons() -> None:
    """Reset the HTTP server singletons. For use in tests."""
    global _client_instance, _operations_instance
    _client_instance = None
    _operations_instance = None


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    if _client_instance is not None:
        await _client_instance.aclose()
        logger.info("Platform client closed")


def create_app(operations: RouteOperations | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Configures CORS middleware with allowed origins from the config and
    registers all API routes.

    Args:
        operations: Operations to serve. When omitted they are built
            lazily from the global config on the first request.

    Returns:
        Configured FastAPI application instance.
    """
    config = get_config()
    if operations is not None:
        set_operations(operations)

    app = FastAPI(
        title="Route Orchestrator API",
        description=(
            "REST API for route lifecycle operations: check, create, map, unmap, "
            "delete, list, and orphaned route cleanup."
        ),
        version=__version__,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    from route_orchestrator.api.routes import router

    app.include_router(router)

    logger.info(
        "FastAPI app created",
        extra={
            "extra_data": {
                "version": __version__,
                "cors_origins": config.cors_origins,
                "docs_url": "/api/docs",
            }
        },
    )

    return app
