"""
Platform API client for the route orchestrator.

:class:`PlatformClient` describes the capabilities the route operations
consume: paginated listings, a handful of mutations, and job lookups.
:class:`HttpPlatformClient` implements it over ``httpx`` against the
platform's v3 REST API.

Every method issues exactly one logical request (plus, for route pages,
one lookup of route service bindings). No retries are attempted here.
"""

import logging
from typing import Any, Protocol

import httpx

from route_orchestrator import __version__
from route_orchestrator.config import RoutesConfig, get_config
from route_orchestrator.error_codes import ROUTES_3002_PLATFORM_RESPONSE_INVALID
from route_orchestrator.errors import PlatformApiError, RoutesError
from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.models.jobs import JobStatusPayload
from route_orchestrator.models.resources import (
    Application,
    Domain,
    Page,
    Route,
    RouteDestination,
    ServiceInstance,
    Space,
)

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

DEFAULT_PER_PAGE = 50


class PlatformClient(Protocol):
    """Capabilities of the platform API used by the route operations."""

    async def list_domains(self, page: int, *, name: str | None = None) -> Page[Domain]: ...

    async def list_spaces(
        self, page: int, *, organization_id: str, name: str | None = None
    ) -> Page[Space]: ...

    async def list_applications(
        self, page: int, *, space_id: str, name: str | None = None
    ) -> Page[Application]: ...

    async def list_routes(
        self,
        page: int,
        *,
        domain_id: str | None = None,
        host: str | None = None,
        path: str | None = None,
        port: int | None = None,
        space_id: str | None = None,
        organization_id: str | None = None,
    ) -> Page[Route]: ...

    async def list_route_applications(self, route_id: str, page: int) -> Page[Application]: ...

    async def list_space_service_instances(
        self, space_id: str, page: int
    ) -> Page[ServiceInstance]: ...

    async def create_route(
        self,
        *,
        domain_id: str,
        space_id: str,
        host: str | None = None,
        path: str | None = None,
        port: int | None = None,
    ) -> Route: ...

    async def insert_route_destination(self, route_id: str, application_id: str) -> None: ...

    async def remove_route_destination(self, route_id: str, destination_id: str) -> None: ...

    async def delete_route(self, route_id: str) -> str | None: ...

    async def get_job(self, job_id: str) -> JobStatusPayload: ...


# ---------------------------------------------------------------------------
# Document parsing helpers
# ---------------------------------------------------------------------------


def _related_id(document: dict[str, Any], relation: str) -> str | None:
    data = (document.get("relationships") or {}).get(relation, {}).get("data")
    if not data:
        return None
    return data.get("guid")


def _has_more(document: dict[str, Any]) -> bool:
    return bool((document.get("pagination") or {}).get("next"))


def _parse_route(document: dict[str, Any], service_instance_id: str | None = None) -> Route:
    destinations = [
        RouteDestination(
            destination_id=d.get("guid"),
            application_id=d["app"]["guid"],
            port=d.get("port"),
        )
        for d in document.get("destinations", [])
    ]
    domain_id = _related_id(document, "domain")
    if not domain_id:
        raise RoutesError(
            ROUTES_3002_PLATFORM_RESPONSE_INVALID,
            f"Route {document.get('guid')} has no domain relationship",
        )
    return Route(
        id=document["guid"],
        domain_id=domain_id,
        host=document.get("host") or None,
        path=document.get("path") or None,
        port=document.get("port"),
        space_id=_related_id(document, "space"),
        service_instance_id=service_instance_id,
        destinations=destinations,
    )


def _parse_job(job_id: str, document: dict[str, Any]) -> JobStatusPayload:
    """Parse either job vocabulary into a :class:`JobStatusPayload`."""
    if "entity" in document:
        entity = document["entity"] or {}
        return JobStatusPayload(
            id=entity.get("guid") or job_id,
            status=entity.get("status"),
            error_details=entity.get("error_details"),
        )
    return JobStatusPayload(
        id=document.get("guid") or job_id,
        state=document.get("state"),
        errors=document.get("errors") or [],
    )


def _csv(value: str | int | None) -> str | None:
    return None if value is None else str(value)


class HttpPlatformClient:
    """``httpx`` implementation of :class:`PlatformClient`.

    Args:
        config: Settings providing ``api_url``, ``access_token`` and
            ``http_timeout_seconds``. Defaults to the global config.
        transport: Optional ``httpx`` transport (tests use
            ``httpx.MockTransport``).
        per_page: Page size requested from the platform.
    """

    def __init__(
        self,
        config: RoutesConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> None:
        config = config or get_config()
        headers = {
            "Accept": "application/json",
            "User-Agent": f"route-orchestrator/{__version__}",
        }
        if config.access_token:
            headers["Authorization"] = f"bearer {config.access_token}"
        self._per_page = per_page
        self._http = httpx.AsyncClient(
            base_url=config.api_url,
            timeout=httpx.Timeout(config.http_timeout_seconds),
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpPlatformClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- plumbing ----------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        response = await self._http.request(method, url, params=query, json=json)
        if response.is_error:
            raise self._api_error(response)
        return response

    @staticmethod
    def _api_error(response: httpx.Response) -> PlatformApiError:
        code = title = detail = None
        try:
            body = response.json()
        except ValueError:
            body = None
        errors = body.get("errors") if isinstance(body, dict) else None
        first = errors[0] if isinstance(errors, list) and errors else None
        if isinstance(first, dict):
            code = first.get("code")
            title = first.get("title")
            detail = first.get("detail")
        logger.warning(
            "Platform request failed",
            extra={
                "extra_data": {
                    "method": response.request.method,
                    "url": str(response.request.url),
                    "status_code": response.status_code,
                    "code": code,
                    "title": title,
                }
            },
        )
        return PlatformApiError(response.status_code, code, title, detail)

    @staticmethod
    def _document(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body, or raise ``ROUTES_3002``."""
        try:
            document = response.json()
        except ValueError as exc:
            raise RoutesError(
                ROUTES_3002_PLATFORM_RESPONSE_INVALID,
                f"Platform returned a non-JSON document for {response.request.url.path}",
            ) from exc
        if not isinstance(document, dict):
            raise RoutesError(
                ROUTES_3002_PLATFORM_RESPONSE_INVALID,
                f"Platform returned a {type(document).__name__} instead of an object "
                f"for {response.request.url.path}",
            )
        return document

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._document(await self._request("GET", url, params=params))

    def _page_params(self, page: int, **filters: str | int | None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "per_page": self._per_page}
        params.update({k: _csv(v) for k, v in filters.items()})
        return params

    # -- domains -----------------------------------------------------------

    @staticmethod
    def _domains(document: dict[str, Any]) -> list[Domain]:
        return [
            Domain(
                id=d["guid"],
                name=d["name"],
                organization_id=_related_id(d, "organization"),
            )
            for d in document.get("resources", [])
        ]

    async def list_domains(self, page: int, *, name: str | None = None) -> Page[Domain]:
        document = await self._get_json("/v3/domains", self._page_params(page, names=name))
        return Page(resources=self._domains(document), has_more=_has_more(document))

    # -- spaces, applications, service instances ---------------------------

    async def list_spaces(
        self, page: int, *, organization_id: str, name: str | None = None
    ) -> Page[Space]:
        document = await self._get_json(
            "/v3/spaces",
            self._page_params(page, organization_guids=organization_id, names=name),
        )
        spaces = [
            Space(id=s["guid"], name=s["name"], organization_id=_related_id(s, "organization"))
            for s in document.get("resources", [])
        ]
        return Page(resources=spaces, has_more=_has_more(document))

    @staticmethod
    def _applications(document: dict[str, Any]) -> list[Application]:
        return [
            Application(id=a["guid"], name=a["name"], space_id=_related_id(a, "space"))
            for a in document.get("resources", [])
        ]

    async def list_applications(
        self, page: int, *, space_id: str, name: str | None = None
    ) -> Page[Application]:
        document = await self._get_json(
            "/v3/apps", self._page_params(page, space_guids=space_id, names=name)
        )
        return Page(resources=self._applications(document), has_more=_has_more(document))

    async def list_route_applications(self, route_id: str, page: int) -> Page[Application]:
        document = await self._get_json(f"/v3/routes/{route_id}/destinations")
        app_ids = sorted({d["app"]["guid"] for d in document.get("destinations", [])})
        if not app_ids:
            return Page()
        apps = await self._get_json("/v3/apps", self._page_params(page, guids=",".join(app_ids)))
        return Page(resources=self._applications(apps), has_more=_has_more(apps))

    async def list_space_service_instances(
        self, space_id: str, page: int
    ) -> Page[ServiceInstance]:
        document = await self._get_json(
            "/v3/service_instances", self._page_params(page, space_guids=space_id)
        )
        instances = [
            ServiceInstance(id=s["guid"], name=s["name"], space_id=_related_id(s, "space"))
            for s in document.get("resources", [])
        ]
        return Page(resources=instances, has_more=_has_more(document))

    # -- routes ------------------------------------------------------------

    async def _route_services(self, route_ids: list[str]) -> dict[str, str]:
        """Map route id -> bound service instance id for the given routes."""
        if not route_ids:
            return {}
        document = await self._get_json(
            "/v3/service_route_bindings",
            {"route_guids": ",".join(route_ids), "per_page": len(route_ids)},
        )
        bindings: dict[str, str] = {}
        for binding in document.get("resources", []):
            route_id = _related_id(binding, "route")
            instance_id = _related_id(binding, "service_instance")
            if route_id and instance_id:
                bindings[route_id] = instance_id
        return bindings

    async def list_routes(
        self,
        page: int,
        *,
        domain_id: str | None = None,
        host: str | None = None,
        path: str | None = None,
        port: int | None = None,
        space_id: str | None = None,
        organization_id: str | None = None,
    ) -> Page[Route]:
        document = await self._get_json(
            "/v3/routes",
            self._page_params(
                page,
                domain_guids=domain_id,
                hosts=host,
                paths=path,
                ports=port,
                space_guids=space_id,
                organization_guids=organization_id,
            ),
        )
        resources = document.get("resources", [])
        services = await self._route_services([r["guid"] for r in resources])
        routes = [_parse_route(r, services.get(r["guid"])) for r in resources]
        return Page(resources=routes, has_more=_has_more(document))

    async def create_route(
        self,
        *,
        domain_id: str,
        space_id: str,
        host: str | None = None,
        path: str | None = None,
        port: int | None = None,
    ) -> Route:
        body: dict[str, Any] = {
            "relationships": {
                "domain": {"data": {"guid": domain_id}},
                "space": {"data": {"guid": space_id}},
            }
        }
        if host is not None:
            body["host"] = host
        if path is not None:
            body["path"] = path
        if port is not None:
            body["port"] = port
        response = await self._request("POST", "/v3/routes", json=body)
        return _parse_route(self._document(response))

    async def insert_route_destination(self, route_id: str, application_id: str) -> None:
        await self._request(
            "POST",
            f"/v3/routes/{route_id}/destinations",
            json={"destinations": [{"app": {"guid": application_id}}]},
        )

    async def remove_route_destination(self, route_id: str, destination_id: str) -> None:
        await self._request("DELETE", f"/v3/routes/{route_id}/destinations/{destination_id}")

    async def delete_route(self, route_id: str) -> str | None:
        """Delete a route; returns the deletion job id, if the platform issued one."""
        response = await self._request("DELETE", f"/v3/routes/{route_id}")
        location = response.headers.get("Location")
        if not location:
            return None
        return location.rstrip("/").rsplit("/", 1)[-1]

    # -- jobs --------------------------------------------------------------

    async def get_job(self, job_id: str) -> JobStatusPayload:
        document = await self._get_json(f"/v3/jobs/{job_id}")
        return _parse_job(job_id, document)
