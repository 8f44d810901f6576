"""
Exception hierarchy for the route orchestrator.

Every failure surfaced by a route operation is a :class:`RoutesError`
carrying a machine-readable ``error_code`` and a human-readable
``message``. Transport failures raised by ``httpx`` are not wrapped.
"""

from typing import Any

from route_orchestrator.error_codes import (
    ROUTES_1001_DOMAIN_NOT_FOUND,
    ROUTES_1002_SPACE_NOT_FOUND,
    ROUTES_1003_APPLICATION_NOT_FOUND,
    ROUTES_1004_ROUTE_NOT_FOUND,
    ROUTES_1005_RESOURCE_NOT_FOUND,
    ROUTES_2001_JOB_FAILED,
    ROUTES_2002_JOB_TIMEOUT,
    ROUTES_2003_JOB_STATE_UNKNOWN,
    ROUTES_3001_PLATFORM_REQUEST_FAILED,
)

_NOT_FOUND_CODES = {
    "Domain": ROUTES_1001_DOMAIN_NOT_FOUND,
    "Space": ROUTES_1002_SPACE_NOT_FOUND,
    "Application": ROUTES_1003_APPLICATION_NOT_FOUND,
    "Route": ROUTES_1004_ROUTE_NOT_FOUND,
}


class RoutesError(Exception):
    """Base exception for route operation failures.

    Attributes:
        error_code: Machine-readable error code from error_codes.py.
        message: Human-readable error description.
    """

    def __init__(self, error_code: str, message: str) -> None:
        self.error_code = error_code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {"error_code": self.error_code, "error_message": self.message}


class ResourceNotFoundError(RoutesError):
    """Raised when a required named resource cannot be resolved.

    The message reads ``"{kind} {name} does not exist"``. Routes are
    reported against their domain: ``"Route for {domain} does not exist"``.
    """

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        error_code = _NOT_FOUND_CODES.get(kind, ROUTES_1005_RESOURCE_NOT_FOUND)
        if kind == "Route":
            message = f"Route for {name} does not exist"
        else:
            message = f"{kind} {name} does not exist"
        super().__init__(error_code, message)


class JobFailedError(RoutesError):
    """Raised when a polled job reaches the failed terminal state."""

    def __init__(
        self,
        code: int | str,
        title: str,
        description: str,
        job_id: str | None = None,
    ) -> None:
        self.code = code
        self.title = title
        self.description = description
        self.job_id = job_id
        super().__init__(ROUTES_2001_JOB_FAILED, f"{title}({code}): {description}")


class JobTimeoutError(RoutesError):
    """Raised when a job outlives the deadline imposed by its caller."""

    def __init__(self, job_id: str, timeout_seconds: float) -> None:
        self.job_id = job_id
        self.timeout_seconds = timeout_seconds
        super().__init__(
            ROUTES_2002_JOB_TIMEOUT,
            f"Job {job_id} did not complete within {timeout_seconds}s",
        )


class JobStateUnknownError(RoutesError):
    """Raised when a job reports a status in neither known vocabulary."""

    def __init__(self, job_id: str, raw_state: str | None) -> None:
        self.job_id = job_id
        self.raw_state = raw_state
        super().__init__(
            ROUTES_2003_JOB_STATE_UNKNOWN,
            f"Job {job_id} reported unknown state {raw_state!r}",
        )


class PlatformApiError(RoutesError):
    """Raised when the platform API rejects a request.

    Attributes:
        status_code: HTTP status returned by the platform.
        code: Platform error code (first error of the response body).
        title: Platform error title.
        detail: Platform error detail.
    """

    def __init__(
        self,
        status_code: int,
        code: int | str | None = None,
        title: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.title = title
        self.detail = detail
        if title is not None:
            message = f"{title}({code}): {detail}"
        else:
            message = f"Platform request failed with HTTP {status_code}"
        super().__init__(ROUTES_3001_PLATFORM_REQUEST_FAILED, message)
