"""
Shared test fixtures for route-orchestrator.

Provides reusable fixtures for:
- RoutesConfig with test-safe values set through environment variables
- An in-memory platform client, empty or populated with a one-route fixture
- RouteOperations wired to the fake client with a non-sleeping poller
- Module-level singleton cleanup between tests
"""

from collections.abc import Generator

import pytest
from fakes import FakePlatformClient, FakeSleep

from route_orchestrator.config import RoutesConfig
from route_orchestrator.job_poller import JobPoller
from route_orchestrator.models.resources import (
    Application,
    Domain,
    Route,
    RouteDestination,
    Space,
)
from route_orchestrator.orchestrator import RouteOperations

ORGANIZATION_ID = "test-organization-id"
SPACE_ID = "test-space-id"

# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def test_config(monkeypatch: pytest.MonkeyPatch) -> RoutesConfig:
    """Return a RoutesConfig targeting the fixture organization and space."""
    monkeypatch.setenv("ROUTES_API_URL", "https://api.test.example.com")
    monkeypatch.setenv("ROUTES_ORGANIZATION_ID", ORGANIZATION_ID)
    monkeypatch.setenv("ROUTES_SPACE_ID", SPACE_ID)
    monkeypatch.setenv("ROUTES_JOB_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("ROUTES_MAX_CONCURRENCY", "4")
    monkeypatch.setenv("ROUTES_LOG_LEVEL", "DEBUG")
    return RoutesConfig()


# ---------------------------------------------------------------------------
# Platform fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_client() -> FakePlatformClient:
    """Return an empty in-memory platform client."""
    return FakePlatformClient()


@pytest.fixture()
def populated_client(fake_client: FakePlatformClient) -> FakePlatformClient:
    """Return a platform client holding one domain, space, application and route.

    The route ``test-route-id`` is bound to ``test-application-name``.
    """
    application = Application(
        id="test-application-id", name="test-application-name", space_id=SPACE_ID
    )
    fake_client.domains.append(Domain(id="test-domain-id", name="test-domain-name"))
    fake_client.spaces.append(
        Space(id=SPACE_ID, name="test-space-entity-name", organization_id=ORGANIZATION_ID)
    )
    fake_client.applications.append(application)
    fake_client.routes.append(
        Route(
            id="test-route-id",
            domain_id="test-domain-id",
            host="test-route-entity-host",
            path="test-route-entity-path",
            space_id=SPACE_ID,
            destinations=[
                RouteDestination(
                    destination_id="test-destination-id",
                    application_id="test-application-id",
                )
            ],
        )
    )
    fake_client.route_applications["test-route-id"] = [application]
    return fake_client


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture()
def operations(
    populated_client: FakePlatformClient,
    test_config: RoutesConfig,
    fake_sleep: FakeSleep,
) -> RouteOperations:
    """Return RouteOperations over the populated client; polling never sleeps."""
    poller = JobPoller(populated_client, interval_seconds=0.5, sleep=fake_sleep)
    return RouteOperations(
        populated_client, ORGANIZATION_ID, SPACE_ID, poller=poller, config=test_config
    )


# ---------------------------------------------------------------------------
# Singleton cleanup
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_singletons() -> Generator[None, None, None]:
    """Reset all module-level global singletons before and after each test.

    This prevents one test's state from leaking into another.
    """
    import route_orchestrator.config as config_mod
    import route_orchestrator.http_server as http_server_mod

    config_mod._config = None
    http_server_mod._client_instance = None
    http_server_mod._operations_instance = None

    yield

    config_mod._config = None
    http_server_mod._client_instance = None
    http_server_mod._operations_instance = None
