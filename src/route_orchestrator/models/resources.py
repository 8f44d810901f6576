"""
Platform resource models for the route orchestrator.

Defines the data contracts for the resources read from the platform
API: domains, spaces, applications, service instances, and routes.
Identifiers are opaque strings assigned by the platform.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a paginated platform collection.

    Attributes:
        resources: The resources on this page, in server order.
        has_more: Whether a further page exists.
    """

    resources: list[T] = Field(default_factory=list)
    has_more: bool = False


class NamedResource(BaseModel):
    """A resource addressable by a human-readable name."""

    id: str
    name: str


class Domain(NamedResource):
    """A domain routes are created under.

    Attributes:
        organization_id: Owning organization for a private domain, ``None``
            for a domain shared across all organizations.
    """

    organization_id: str | None = None

    @property
    def is_shared(self) -> bool:
        return self.organization_id is None

    def visible_to(self, organization_id: str) -> bool:
        """Whether routes under this domain may be created in the organization."""
        return self.is_shared or self.organization_id == organization_id


class Space(NamedResource):
    organization_id: str | None = None


class Application(NamedResource):
    space_id: str | None = None


class ServiceInstance(NamedResource):
    space_id: str | None = None


class RouteDestination(BaseModel):
    """Binding of a route to an application.

    Attributes:
        destination_id: Platform identifier of the binding, required to
            remove it again.
        application_id: The bound application.
        port: Application port traffic is delivered to, if not the default.
    """

    destination_id: str | None = None
    application_id: str
    port: int | None = None


class Route(BaseModel):
    """A traffic-binding record.

    HTTP routes are keyed by ``(domain_id, host, path)``; TCP routes by
    ``(domain_id, port)``. The two families never mix on one route.

    Attributes:
        id: Platform identifier.
        domain_id: Domain the route lives under.
        host: Host label (HTTP routes).
        path: Path suffix (HTTP routes); absent and ``""`` compare equal.
        port: Port (TCP routes).
        space_id: Space owning the route.
        service_instance_id: Route service bound to the route, if any.
        destinations: Applications the route delivers traffic to.
    """

    id: str
    domain_id: str
    host: str | None = None
    path: str | None = None
    port: int | None = None
    space_id: str | None = None
    service_instance_id: str | None = None
    destinations: list[RouteDestination] = Field(default_factory=list)

    @field_validator("id", "domain_id")
    @classmethod
    def identifier_must_be_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("identifiers must not be empty")
        return v

    @model_validator(mode="after")
    def port_excludes_host_and_path(self) -> "Route":
        """A TCP route carries neither host nor path."""
        if self.port is not None and (self.host or self.path):
            raise ValueError(
                f"route {self.id} has both a port ({self.port}) and a host/path"
            )
        return self

    @property
    def normalized_host(self) -> str:
        return self.host or ""

    @property
    def normalized_path(self) -> str:
        return self.path or ""
