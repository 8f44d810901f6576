"""
Pydantic models for the route orchestrator.

All data contracts are defined here and re-exported for convenient
access via ``from route_orchestrator.models import ...``.

Modules:
    resources -- Platform resources: domains, spaces, applications, routes.
    jobs -- Asynchronous job documents and their canonical form.
    requests -- Inputs of the public route operations.
    views -- Annotated route listings.
"""

from route_orchestrator.models.jobs import Job, JobErrorDetail, JobState, JobStatusPayload
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
    NamedResource,
    Page,
    Route,
    RouteDestination,
    ServiceInstance,
    Space,
)
from route_orchestrator.models.views import RouteView

__all__ = [
    # Resource models
    "Application",
    "Domain",
    "NamedResource",
    "Page",
    "Route",
    "RouteDestination",
    "ServiceInstance",
    "Space",
    # Job models
    "Job",
    "JobErrorDetail",
    "JobState",
    "JobStatusPayload",
    # Request models
    "CheckRouteRequest",
    "CreateRouteRequest",
    "DeleteOrphanedRoutesRequest",
    "DeleteRouteRequest",
    "Level",
    "ListRoutesRequest",
    "MapRouteRequest",
    "UnmapRouteRequest",
    # Views
    "RouteView",
]
