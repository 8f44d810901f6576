"""
Request models for the public route operations.

Each request names resources by their human-readable names; the
orchestrator resolves them to identifiers on every call. Requests that
address a TCP route by ``port`` must not also carry a host or path.
"""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from route_orchestrator.config import OrphanFailurePolicy


class Level(StrEnum):
    """Scope a listing or orphan scan operates within."""

    ORGANIZATION = "organization"
    SPACE = "space"


class _RouteKey(BaseModel):
    """Domain plus either host/path or port."""

    domain: str
    host: str | None = None
    path: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)

    @field_validator("domain")
    @classmethod
    def domain_must_be_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("domain must not be empty")
        return v

    @model_validator(mode="after")
    def port_excludes_host_and_path(self) -> "_RouteKey":
        if self.port is not None and (self.host or self.path):
            raise ValueError("port cannot be combined with host or path")
        return self


class CheckRouteRequest(BaseModel):
    """Check whether an HTTP route exists."""

    domain: str
    host: str | None = None
    path: str | None = None


class CreateRouteRequest(_RouteKey):
    """Create a route in the named space."""

    space: str


class MapRouteRequest(_RouteKey):
    """Bind an application to a route, creating the route when needed."""

    application_name: str


class UnmapRouteRequest(_RouteKey):
    """Remove an application's binding from a route."""

    application_name: str


class DeleteRouteRequest(_RouteKey):
    """Delete a route and wait for the deletion job."""


class ListRoutesRequest(BaseModel):
    level: Level = Level.SPACE


class DeleteOrphanedRoutesRequest(BaseModel):
    """Delete every route without applications or a route service.

    Attributes:
        level: Scope to scan; the current space by default.
        failure_policy: Overrides the configured policy for this call.
    """

    level: Level = Level.SPACE
    failure_policy: OrphanFailurePolicy | None = None
