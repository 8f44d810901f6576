"""
Tests for route_orchestrator.orchestrator -- the public route operations.

Covers name resolution order and failures, route creation, mapping and
unmapping (including creation on demand and TCP ports), deletion with
job polling in both job vocabularies, annotated listings, and orphaned
route cleanup.
"""

import pytest
from fakes import FakePlatformClient, FakeSleep, legacy_job, v3_job

from route_orchestrator.config import OrphanFailurePolicy, RoutesConfig
from route_orchestrator.errors import JobFailedError, ResourceNotFoundError
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
from route_orchestrator.models.resources import Application, Domain, Route, ServiceInstance
from route_orchestrator.orchestrator import RouteOperations

SPACE_ID = "test-space-id"


def _route(route_id: str, **fields: object) -> Route:
    return Route(id=route_id, domain_id="test-domain-id", space_id=SPACE_ID, **fields)


async def _collect(operations: RouteOperations, level: Level = Level.SPACE) -> list:
    return [view async for view in operations.list_routes(ListRoutesRequest(level=level))]


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


class TestCheck:
    """Verify route existence checks."""

    @pytest.mark.asyncio
    async def test_existing_route(self, operations: RouteOperations) -> None:
        exists = await operations.check(
            CheckRouteRequest(
                domain="test-domain-name",
                host="test-route-entity-host",
                path="test-route-entity-path",
            )
        )
        assert exists is True

    @pytest.mark.asyncio
    async def test_absent_route(self, operations: RouteOperations) -> None:
        exists = await operations.check(
            CheckRouteRequest(domain="test-domain-name", host="other-host")
        )
        assert exists is False

    @pytest.mark.asyncio
    async def test_absent_path_does_not_match_route_with_path(
        self, operations: RouteOperations
    ) -> None:
        exists = await operations.check(
            CheckRouteRequest(domain="test-domain-name", host="test-route-entity-host")
        )
        assert exists is False

    @pytest.mark.asyncio
    async def test_absent_path_matches_route_without_path(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.routes.append(_route("root-route-id", host="test-route-entity-host"))
        exists = await operations.check(
            CheckRouteRequest(domain="test-domain-name", host="test-route-entity-host")
        )
        assert exists is True

    @pytest.mark.asyncio
    async def test_unknown_domain_reports_false(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        exists = await operations.check(CheckRouteRequest(domain="test-domain", host="host"))
        assert exists is False
        assert populated_client.calls_to("list_routes") == []

    @pytest.mark.asyncio
    async def test_private_domain_of_other_organization_is_invisible(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.domains.append(
            Domain(id="foreign-domain-id", name="foreign-domain", organization_id="other-org")
        )
        populated_client.routes.append(
            Route(id="foreign-route-id", domain_id="foreign-domain-id", host="host")
        )
        exists = await operations.check(CheckRouteRequest(domain="foreign-domain", host="host"))
        assert exists is False

    @pytest.mark.asyncio
    async def test_domain_filter_passed_to_listing(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        await operations.check(
            CheckRouteRequest(domain="test-domain-name", host="h", path="p")
        )
        call = populated_client.calls_to("list_routes")[0]
        assert call["domain_id"] == "test-domain-id"
        assert call["host"] == "h"
        assert call["path"] == "p"


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    """Verify route creation in a named space."""

    @pytest.mark.asyncio
    async def test_creates_http_route(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        route = await operations.create(
            CreateRouteRequest(
                domain="test-domain-name",
                space="test-space-entity-name",
                host="new-host",
                path="/new",
            )
        )
        assert route.host == "new-host"
        assert route.path == "/new"
        assert populated_client.calls_to("create_route") == [
            {
                "domain_id": "test-domain-id",
                "space_id": SPACE_ID,
                "host": "new-host",
                "path": "/new",
                "port": None,
            }
        ]

    @pytest.mark.asyncio
    async def test_creates_tcp_route(self, operations: RouteOperations) -> None:
        route = await operations.create(
            CreateRouteRequest(
                domain="test-domain-name", space="test-space-entity-name", port=9999
            )
        )
        assert route.port == 9999

    @pytest.mark.asyncio
    async def test_unknown_domain_stops_before_space_lookup(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        with pytest.raises(ResourceNotFoundError, match="Domain test-domain does not exist"):
            await operations.create(
                CreateRouteRequest(domain="test-domain", space="test-space-entity-name")
            )
        assert populated_client.calls_to("list_spaces") == []
        assert populated_client.calls_to("create_route") == []

    @pytest.mark.asyncio
    async def test_unknown_space(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await operations.create(
                CreateRouteRequest(domain="test-domain-name", space="test-space-name")
            )
        assert str(exc_info.value) == "Space test-space-name does not exist"
        assert populated_client.calls_to("create_route") == []


# ---------------------------------------------------------------------------
# map
# ---------------------------------------------------------------------------


class TestMap:
    """Verify application-to-route binding."""

    @pytest.mark.asyncio
    async def test_maps_existing_route(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        port = await operations.map(
            MapRouteRequest(
                domain="test-domain-name",
                host="test-route-entity-host",
                path="test-route-entity-path",
                application_name="test-application-name",
            )
        )
        assert port is None
        assert populated_client.calls_to("create_route") == []
        assert populated_client.calls_to("insert_route_destination") == [
            {"route_id": "test-route-id", "application_id": "test-application-id"}
        ]

    @pytest.mark.asyncio
    async def test_creates_missing_route_in_current_space(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        await operations.map(
            MapRouteRequest(
                domain="test-domain-name",
                host="fresh-host",
                application_name="test-application-name",
            )
        )
        [created] = populated_client.calls_to("create_route")
        assert created["space_id"] == SPACE_ID
        assert created["host"] == "fresh-host"
        [inserted] = populated_client.calls_to("insert_route_destination")
        assert inserted["route_id"].startswith("created-route-")

    @pytest.mark.asyncio
    async def test_tcp_route_returns_port(self, operations: RouteOperations) -> None:
        port = await operations.map(
            MapRouteRequest(
                domain="test-domain-name",
                port=9999,
                application_name="test-application-name",
            )
        )
        assert port == 9999

    @pytest.mark.asyncio
    async def test_picks_route_matching_path(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        """A host-only key matches the path-less route, not the one with a path."""
        populated_client.routes.append(_route("root-route-id", host="test-route-entity-host"))
        await operations.map(
            MapRouteRequest(
                domain="test-domain-name",
                host="test-route-entity-host",
                application_name="test-application-name",
            )
        )
        [inserted] = populated_client.calls_to("insert_route_destination")
        assert inserted["route_id"] == "root-route-id"
        assert populated_client.calls_to("create_route") == []

    @pytest.mark.asyncio
    async def test_unknown_application_resolved_first(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.applications.clear()
        with pytest.raises(
            ResourceNotFoundError, match="Application test-application-name does not exist"
        ):
            await operations.map(
                MapRouteRequest(domain="test-domain", application_name="test-application-name")
            )
        assert populated_client.calls_to("list_domains") == []

    @pytest.mark.asyncio
    async def test_unknown_domain(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        with pytest.raises(ResourceNotFoundError, match="Domain test-domain does not exist"):
            await operations.map(
                MapRouteRequest(domain="test-domain", application_name="test-application-name")
            )
        assert populated_client.calls_to("insert_route_destination") == []


# ---------------------------------------------------------------------------
# unmap
# ---------------------------------------------------------------------------


class TestUnmap:
    """Verify removal of application bindings."""

    @pytest.mark.asyncio
    async def test_removes_binding(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        await operations.unmap(
            UnmapRouteRequest(
                domain="test-domain-name",
                host="test-route-entity-host",
                path="test-route-entity-path",
                application_name="test-application-name",
            )
        )
        assert populated_client.calls_to("remove_route_destination") == [
            {"route_id": "test-route-id", "destination_id": "test-destination-id"}
        ]
        assert populated_client.route("test-route-id").destinations == []

    @pytest.mark.asyncio
    async def test_unbound_application_is_a_no_op(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.applications.append(
            Application(id="other-application-id", name="other-application")
        )
        await operations.unmap(
            UnmapRouteRequest(
                domain="test-domain-name",
                host="test-route-entity-host",
                path="test-route-entity-path",
                application_name="other-application",
            )
        )
        assert populated_client.calls_to("remove_route_destination") == []

    @pytest.mark.asyncio
    async def test_missing_route(self, operations: RouteOperations) -> None:
        with pytest.raises(
            ResourceNotFoundError, match="Route for test-domain-name does not exist"
        ):
            await operations.unmap(
                UnmapRouteRequest(
                    domain="test-domain-name",
                    host="missing-host",
                    application_name="test-application-name",
                )
            )

    @pytest.mark.asyncio
    async def test_unknown_application(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        with pytest.raises(ResourceNotFoundError, match="Application ghost does not exist"):
            await operations.unmap(
                UnmapRouteRequest(domain="test-domain-name", application_name="ghost")
            )
        assert populated_client.calls_to("list_routes") == []


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


_DELETE = DeleteRouteRequest(
    domain="test-domain-name",
    host="test-route-entity-host",
    path="test-route-entity-path",
)


class TestDelete:
    """Verify route deletion and job polling."""

    @pytest.mark.asyncio
    async def test_synchronous_delete_skips_polling(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        await operations.delete(_DELETE)
        assert populated_client.calls_to("delete_route") == [{"route_id": "test-route-id"}]
        assert populated_client.calls_to("get_job") == []
        assert populated_client.route("test-route-id") is None

    @pytest.mark.asyncio
    async def test_waits_for_job(
        self,
        operations: RouteOperations,
        populated_client: FakePlatformClient,
        fake_sleep: FakeSleep,
    ) -> None:
        populated_client.delete_jobs["test-route-id"] = "job-1"
        populated_client.jobs["job-1"] = [
            v3_job("job-1", "PROCESSING"),
            v3_job("job-1", "COMPLETE"),
        ]
        await operations.delete(_DELETE)
        assert len(populated_client.calls_to("get_job")) == 2
        assert fake_sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_job_failure_surfaces_error_detail(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.delete_jobs["test-route-id"] = "job-1"
        populated_client.jobs["job-1"] = [
            v3_job(
                "job-1",
                "FAILED",
                {"code": 10008, "title": "CF-UnprocessableEntity", "detail": "route in use"},
            )
        ]
        with pytest.raises(JobFailedError) as exc_info:
            await operations.delete(_DELETE)
        assert str(exc_info.value) == "CF-UnprocessableEntity(10008): route in use"
        assert exc_info.value.job_id == "job-1"

    @pytest.mark.asyncio
    async def test_legacy_job_failure(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.delete_jobs["test-route-id"] = "job-1"
        populated_client.jobs["job-1"] = [
            legacy_job("job-1", "running"),
            legacy_job(
                "job-1",
                "failed",
                error_code="test-error-details-errorCode",
                code=1,
                description="test-error-details-description",
            ),
        ]
        with pytest.raises(
            JobFailedError,
            match=r"test-error-details-errorCode\(1\): test-error-details-description",
        ):
            await operations.delete(_DELETE)

    @pytest.mark.asyncio
    async def test_missing_route(self, operations: RouteOperations) -> None:
        with pytest.raises(ResourceNotFoundError, match="Route for test-domain-name"):
            await operations.delete(DeleteRouteRequest(domain="test-domain-name", port=1234))

    @pytest.mark.asyncio
    async def test_unknown_domain(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        with pytest.raises(ResourceNotFoundError, match="Domain test-domain does not exist"):
            await operations.delete(DeleteRouteRequest(domain="test-domain", host="h"))
        assert populated_client.calls_to("delete_route") == []


# ---------------------------------------------------------------------------
# list_routes
# ---------------------------------------------------------------------------


class TestListRoutes:
    """Verify annotated route listings."""

    @pytest.mark.asyncio
    async def test_space_listing(self, operations: RouteOperations) -> None:
        [view] = await _collect(operations)
        assert view.id == "test-route-id"
        assert view.domain == "test-domain-name"
        assert view.host == "test-route-entity-host"
        assert view.path == "test-route-entity-path"
        assert view.applications == ["test-application-name"]
        assert view.space == "test-space-entity-name"
        assert view.service is None
        assert view.port is None

    @pytest.mark.asyncio
    async def test_domain_named_when_earlier_domain_page_is_foreign(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.page_size = 1
        populated_client.domains.insert(
            0, Domain(id="foreign-domain-id", name="foreign-domain", organization_id="other-org")
        )
        populated_client.domains.append(
            Domain(
                id="own-domain-id",
                name="own-domain",
                organization_id="test-organization-id",
            )
        )
        populated_client.routes.append(
            Route(id="own-route-id", domain_id="own-domain-id", space_id=SPACE_ID, host="own")
        )

        views = await _collect(operations)

        assert [(v.id, v.domain) for v in views] == [
            ("test-route-id", "test-domain-name"),
            ("own-route-id", "own-domain"),
        ]
        assert [c["page"] for c in populated_client.calls_to("list_domains")] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_foreign_private_domain_not_named(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.domains.append(
            Domain(id="foreign-domain-id", name="foreign-domain", organization_id="other-org")
        )
        populated_client.routes = [
            Route(id="odd-route-id", domain_id="foreign-domain-id", space_id=SPACE_ID, host="x")
        ]
        [view] = await _collect(operations)
        assert view.domain is None

    @pytest.mark.asyncio
    async def test_space_level_filters_by_space(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        await _collect(operations)
        call = populated_client.calls_to("list_routes")[0]
        assert call["space_id"] == SPACE_ID
        assert call["organization_id"] is None

    @pytest.mark.asyncio
    async def test_organization_level_filters_by_organization(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        await _collect(operations, Level.ORGANIZATION)
        call = populated_client.calls_to("list_routes")[0]
        assert call["organization_id"] == "test-organization-id"
        assert call["space_id"] is None

    @pytest.mark.asyncio
    async def test_missing_path_is_none(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.routes = [_route("bare-route-id", host="bare", path="")]
        [view] = await _collect(operations)
        assert view.path is None
        assert view.applications == []

    @pytest.mark.asyncio
    async def test_route_service_name(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.routes = [
            _route("serviced-route-id", host="svc", service_instance_id="test-service-id")
        ]
        populated_client.service_instances[SPACE_ID] = [
            ServiceInstance(id="test-service-id", name="test-service-name")
        ]
        [view] = await _collect(operations)
        assert view.service == "test-service-name"

    @pytest.mark.asyncio
    async def test_order_preserved_across_pages_and_batches(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.page_size = 3
        populated_client.routes = [_route(f"route-{i}", host=f"host-{i}") for i in range(10)]
        views = await _collect(operations)
        assert [v.id for v in views] == [f"route-{i}" for i in range(10)]

    @pytest.mark.asyncio
    async def test_service_index_fetched_once_per_space(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.page_size = 2
        populated_client.routes = [
            _route(f"route-{i}", host=f"h{i}", service_instance_id="test-service-id")
            for i in range(6)
        ]
        populated_client.service_instances[SPACE_ID] = [
            ServiceInstance(id="test-service-id", name="test-service-name")
        ]
        views = await _collect(operations)
        assert {v.service for v in views} == {"test-service-name"}
        assert len(populated_client.calls_to("list_space_service_instances")) == 1

    @pytest.mark.asyncio
    async def test_empty_scope(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.routes = []
        assert await _collect(operations) == []


# ---------------------------------------------------------------------------
# delete_orphaned_routes
# ---------------------------------------------------------------------------


class TestDeleteOrphanedRoutes:
    """Verify orphaned route cleanup through the public operation."""

    @pytest.mark.asyncio
    async def test_bound_route_is_kept(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        deleted = await operations.delete_orphaned_routes()
        assert deleted == []
        assert populated_client.calls_to("delete_route") == []

    @pytest.mark.asyncio
    async def test_unbound_route_is_deleted(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.route_applications.clear()
        populated_client.delete_jobs["test-route-id"] = "job-1"
        populated_client.jobs["job-1"] = [legacy_job("job-1", "finished")]

        deleted = await operations.delete_orphaned_routes()

        assert deleted == ["test-route-id"]
        assert populated_client.calls_to("get_job") == [{"job_id": "job-1"}]

    @pytest.mark.asyncio
    async def test_route_service_binding_is_skipped_without_lookup(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.routes = [
            _route("serviced-route-id", host="svc", service_instance_id="test-service-id")
        ]
        deleted = await operations.delete_orphaned_routes()
        assert deleted == []
        assert populated_client.calls_to("list_route_applications") == []

    @pytest.mark.asyncio
    async def test_job_failure_propagates(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.route_applications.clear()
        populated_client.delete_jobs["test-route-id"] = "job-1"
        populated_client.jobs["job-1"] = [
            legacy_job(
                "job-1",
                "failed",
                error_code="test-error-details-errorCode",
                code=1,
                description="test-error-details-description",
            )
        ]
        with pytest.raises(JobFailedError) as exc_info:
            await operations.delete_orphaned_routes()
        assert exc_info.value.message == (
            "test-error-details-errorCode(1): test-error-details-description"
        )

    @pytest.mark.asyncio
    async def test_continue_policy_deletes_remaining_orphans(
        self, operations: RouteOperations, populated_client: FakePlatformClient
    ) -> None:
        populated_client.routes = [_route("failing-route", host="a"), _route("clean-route", host="b")]
        populated_client.delete_jobs["failing-route"] = "job-fail"
        populated_client.jobs["job-fail"] = [
            v3_job("job-fail", "FAILED", {"code": 1, "title": "T", "detail": "D"})
        ]

        with pytest.raises(JobFailedError, match=r"T\(1\): D"):
            await operations.delete_orphaned_routes(
                DeleteOrphanedRoutesRequest(failure_policy=OrphanFailurePolicy.CONTINUE)
            )

        deleted_ids = [c["route_id"] for c in populated_client.calls_to("delete_route")]
        assert sorted(deleted_ids) == ["clean-route", "failing-route"]

    @pytest.mark.asyncio
    async def test_configured_policy_applies_by_default(
        self,
        populated_client: FakePlatformClient,
        monkeypatch: pytest.MonkeyPatch,
        fake_sleep: FakeSleep,
    ) -> None:
        monkeypatch.setenv("ROUTES_ORPHAN_FAILURE_POLICY", "continue")
        monkeypatch.setenv("ROUTES_SPACE_ID", SPACE_ID)
        config = RoutesConfig()
        operations = RouteOperations.from_config(populated_client, config)
        populated_client.routes = [_route("failing-route", host="a"), _route("clean-route", host="b")]
        populated_client.delete_jobs["failing-route"] = "job-fail"
        populated_client.jobs["job-fail"] = [
            v3_job("job-fail", "FAILED", {"code": 1, "title": "T", "detail": "D"})
        ]

        with pytest.raises(JobFailedError):
            await operations.delete_orphaned_routes()
        assert len(populated_client.calls_to("delete_route")) == 2
