"""
Error code constants for the route orchestrator.

All error codes follow the ``ROUTES_XXXX`` format grouped by domain.
Each constant is a string suitable for use in structured error responses
and machine-readable logging.
"""

# ---------------------------------------------------------------------------
# Resolution errors (ROUTES_1xxx)
# ---------------------------------------------------------------------------

ROUTES_1001_DOMAIN_NOT_FOUND = "ROUTES_1001"
"""No domain visible to the organization carries the requested name."""

ROUTES_1002_SPACE_NOT_FOUND = "ROUTES_1002"
"""No space in the organization carries the requested name."""

ROUTES_1003_APPLICATION_NOT_FOUND = "ROUTES_1003"
"""No application in the current space carries the requested name."""

ROUTES_1004_ROUTE_NOT_FOUND = "ROUTES_1004"
"""No route matches the requested domain/host/path/port key."""

ROUTES_1005_RESOURCE_NOT_FOUND = "ROUTES_1005"
"""A named resource of some other kind could not be resolved."""

# ---------------------------------------------------------------------------
# Job errors (ROUTES_2xxx)
# ---------------------------------------------------------------------------

ROUTES_2001_JOB_FAILED = "ROUTES_2001"
"""A polled job reached the failed terminal state."""

ROUTES_2002_JOB_TIMEOUT = "ROUTES_2002"
"""A job did not reach a terminal state before the caller's deadline."""

ROUTES_2003_JOB_STATE_UNKNOWN = "ROUTES_2003"
"""The platform reported a job status outside the known vocabularies."""

# ---------------------------------------------------------------------------
# Platform API errors (ROUTES_3xxx)
# ---------------------------------------------------------------------------

ROUTES_3001_PLATFORM_REQUEST_FAILED = "ROUTES_3001"
"""The platform API answered a request with a non-success status."""

ROUTES_3002_PLATFORM_RESPONSE_INVALID = "ROUTES_3002"
"""The platform API returned a document that could not be interpreted."""
