"""
Configuration management for the route orchestrator.

Uses Pydantic BaseSettings for type-safe configuration loaded from
environment variables with the ``ROUTES_`` prefix, ``.env`` files,
and sensible defaults.
"""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrphanFailurePolicy(StrEnum):
    """What an orphan cleanup does after one route deletion fails."""

    ABORT = "abort"
    CONTINUE = "continue"


class RoutesConfig(BaseSettings):
    """Main route orchestrator configuration.

    All settings can be overridden via environment variables prefixed with ``ROUTES_``.
    For example, ``ROUTES_API_URL`` sets :pyattr:`api_url`.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROUTES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Platform target
    api_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the platform API (e.g. https://api.example.com).",
    )
    access_token: str | None = Field(
        default=None,
        description="Bearer token sent with every platform request.",
    )
    organization_id: str = Field(
        default="",
        description="Identifier of the organization operations run against.",
    )
    space_id: str = Field(
        default="",
        description="Identifier of the current space (map, list --space, orphan cleanup).",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout per platform request (seconds).",
    )

    # Job polling
    job_poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Delay between two polls of a pending or running job.",
    )
    job_completion_timeout_seconds: float | None = Field(
        default=300.0,
        gt=0,
        description="Deadline for a job to reach a terminal state. Unset to wait indefinitely.",
    )

    # Fan-out
    max_concurrency: int = Field(
        default=8,
        ge=1,
        le=256,
        description="Maximum number of routes annotated or checked concurrently.",
    )
    orphan_failure_policy: OrphanFailurePolicy = Field(
        default=OrphanFailurePolicy.ABORT,
        description="Whether orphan cleanup stops at the first failed deletion.",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    log_dir: str = Field(
        default="",
        description="Directory for log files. If empty, logs go to stderr only.",
    )

    # HTTP server settings
    http_host: str = Field(
        default="127.0.0.1",
        description="Host to bind the HTTP server to.",
    )
    http_port: int = Field(
        default=8000,
        description="Port for the HTTP server.",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins for the HTTP API.",
    )


# ---------------------------------------------------------------------------
# Global configuration singleton
# ---------------------------------------------------------------------------

_config: RoutesConfig | None = None


def get_config() -> RoutesConfig:
    """Return the global :class:`RoutesConfig` singleton.

    Creates the instance on first call.  Subsequent calls return the same
    instance.  Call :func:`reset_config` in tests to clear the singleton.
    """
    global _config
    if _config is None:
        _config = RoutesConfig()
    return _config


def reset_config() -> None:
    """Reset the global config singleton.

    Intended for use in test fixtures to ensure a clean config per test.
    """
    global _config
    _config = None
