"""
Route Orchestrator -- route lifecycle operations over a platform API.

Resolves domains, spaces, and applications by name, creates, maps,
unmaps, and deletes routes, waits on the platform's asynchronous jobs,
and cleans up routes nothing refers to.
"""

__version__ = "0.1.0"

from route_orchestrator.client import HttpPlatformClient, PlatformClient
from route_orchestrator.config import OrphanFailurePolicy, RoutesConfig, get_config
from route_orchestrator.errors import (
    JobFailedError,
    JobStateUnknownError,
    JobTimeoutError,
    PlatformApiError,
    ResourceNotFoundError,
    RoutesError,
)
from route_orchestrator.job_poller import JobPoller
from route_orchestrator.logging_config import get_structured_logger, setup_logging
from route_orchestrator.orchestrator import RouteOperations

__all__ = [
    # Configuration
    "OrphanFailurePolicy",
    "RoutesConfig",
    "get_config",
    # Logging
    "get_structured_logger",
    "setup_logging",
    # Platform access
    "HttpPlatformClient",
    "PlatformClient",
    # Operations
    "JobPoller",
    "RouteOperations",
    # Errors
    "JobFailedError",
    "JobStateUnknownError",
    "JobTimeoutError",
    "PlatformApiError",
    "ResourceNotFoundError",
    "RoutesError",
]
