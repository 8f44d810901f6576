"""
Read models returned by route listings.
"""

from pydantic import BaseModel, Field


class RouteView(BaseModel):
    """A route annotated with human-readable names.

    Attributes:
        id: Route identifier.
        domain: Domain name, ``None`` if the domain is not visible to the organization.
        host: Host label, ``None`` for TCP routes or an empty host.
        path: Path suffix, ``None`` when the route has no path.
        port: Port of a TCP route.
        applications: Names of the applications bound to the route.
        service: Name of the route service bound to the route.
        space: Name of the space owning the route.
    """

    id: str
    domain: str | None = None
    host: str | None = None
    path: str | None = None
    port: int | None = None
    applications: list[str] = Field(default_factory=list)
    service: str | None = None
    space: str | None = None
