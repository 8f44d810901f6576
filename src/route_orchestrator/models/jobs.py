"""
Job models for the route orchestrator.

A job is the server-side unit of work behind an asynchronous mutation.
The platform reports job status in one of two vocabularies; the raw
document is captured as :class:`JobStatusPayload` and normalized into a
canonical :class:`Job` by :func:`route_orchestrator.job_poller.normalize_job`.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class JobState(StrEnum):
    """Canonical lifecycle state of a job.

    Jobs progress PENDING -> RUNNING -> one of {SUCCEEDED, FAILED}.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TERMINAL_STATES = frozenset({JobState.SUCCEEDED, JobState.FAILED})


class JobErrorDetail(BaseModel):
    """Why a job failed."""

    code: int | str
    title: str
    description: str


class Job(BaseModel):
    """A job in canonical form.

    Attributes:
        id: Platform identifier of the job.
        state: Canonical state.
        error_detail: Failure detail; present exactly when ``state`` is FAILED.
    """

    id: str
    state: JobState
    error_detail: JobErrorDetail | None = None

    @model_validator(mode="after")
    def error_detail_only_when_failed(self) -> "Job":
        if self.state == JobState.FAILED and self.error_detail is None:
            raise ValueError(f"failed job {self.id} must carry an error detail")
        if self.state != JobState.FAILED and self.error_detail is not None:
            raise ValueError(f"job {self.id} in state {self.state.value} carries an error detail")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL_STATES


class JobStatusPayload(BaseModel):
    """Raw job document as returned by the platform.

    Legacy endpoints report a free-text ``status`` (``queued``, ``running``,
    ``finished``, ``failed``) with ``error_details`` holding ``error_code``,
    ``code`` and ``description``. Current endpoints report an enumerated
    ``state`` (``PROCESSING``, ``POLLING``, ``COMPLETE``, ``FAILED``) with a
    list of ``errors`` holding ``code``, ``title`` and ``detail``.
    """

    id: str
    status: str | None = None
    state: str | None = None
    error_details: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = Field(default_factory=list)
