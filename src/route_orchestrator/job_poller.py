"""
Job polling for asynchronous platform mutations.

Route deletions complete on the server after the request returns. The
platform hands back a job reference which is polled until it reaches a
terminal state:

    submitted -> polling -> {succeeded | failed}

Pending and running jobs are polled again after a fixed interval. The
delay goes through an injectable ``sleep`` coroutine so tests can drive
the state machine without waiting on the wall clock.

The platform reports job status in two vocabularies. :func:`normalize_job`
is the only place that knows about either of them.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from route_orchestrator.client import PlatformClient
from route_orchestrator.errors import JobFailedError, JobStateUnknownError, JobTimeoutError
from route_orchestrator.logging_config import get_structured_logger
from route_orchestrator.models.jobs import Job, JobErrorDetail, JobState, JobStatusPayload

logger: logging.LoggerAdapter[Any] = get_structured_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_POLL_INTERVAL_SECONDS = 1.0

# Free-text status strings of the legacy job endpoint.
_LEGACY_STATUSES: dict[str, JobState] = {
    "queued": JobState.PENDING,
    "running": JobState.RUNNING,
    "finished": JobState.SUCCEEDED,
    "failed": JobState.FAILED,
}

# Enumerated states of the current job endpoint.
_STATES: dict[str, JobState] = {
    "PROCESSING": JobState.RUNNING,
    "POLLING": JobState.RUNNING,
    "COMPLETE": JobState.SUCCEEDED,
    "FAILED": JobState.FAILED,
}

_UNKNOWN_ERROR = JobErrorDetail(
    code=0, title="UnknownError", description="job failed without error details"
)


def _error_detail(payload: JobStatusPayload) -> JobErrorDetail:
    if payload.error_details:
        legacy = payload.error_details
        return JobErrorDetail(
            code=legacy.get("code", 0),
            title=legacy.get("error_code") or _UNKNOWN_ERROR.title,
            description=legacy.get("description") or "",
        )
    if payload.errors:
        first = payload.errors[0]
        return JobErrorDetail(
            code=first.get("code", 0),
            title=first.get("title") or _UNKNOWN_ERROR.title,
            description=first.get("detail") or "",
        )
    return _UNKNOWN_ERROR


def normalize_job(payload: JobStatusPayload) -> Job:
    """Translate a raw job document into the canonical :class:`Job`.

    Raises:
        JobStateUnknownError: If the status is in neither vocabulary.
    """
    if payload.status is not None:
        state = _LEGACY_STATUSES.get(payload.status.lower())
        raw = payload.status
    else:
        state = _STATES.get((payload.state or "").upper())
        raw = payload.state
    if state is None:
        raise JobStateUnknownError(payload.id, raw)

    detail = _error_detail(payload) if state == JobState.FAILED else None
    return Job(id=payload.id, state=state, error_detail=detail)


class JobPoller:
    """Polls a job until it reaches a terminal state.

    Args:
        client: Platform client used for job lookups.
        interval_seconds: Delay between two polls of an unfinished job.
        sleep: Coroutine function performing the delay; ``asyncio.sleep``
            by default.
    """

    def __init__(
        self,
        client: PlatformClient,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Sleep | None = None,
    ) -> None:
        self._client = client
        self._interval = interval_seconds
        self._sleep = sleep or asyncio.sleep

    async def wait(self, job_id: str, timeout: float | None = None) -> Job:
        """Poll ``job_id`` until it succeeds or fails.

        The poller itself waits indefinitely; ``timeout`` is the caller's
        deadline.

        Args:
            job_id: Job reference returned by a mutating call.
            timeout: Optional deadline in seconds.

        Returns:
            The succeeded job.

        Raises:
            JobFailedError: If the job fails.
            JobTimeoutError: If ``timeout`` elapses first.
        """
        if timeout is None:
            return await self._poll(job_id)
        try:
            async with asyncio.timeout(timeout):
                return await self._poll(job_id)
        except TimeoutError as exc:
            logger.warning(
                "Job did not complete before deadline",
                extra={"extra_data": {"job_id": job_id, "timeout": timeout}},
            )
            raise JobTimeoutError(job_id, timeout) from exc

    async def _poll(self, job_id: str) -> Job:
        polls = 0
        while True:
            job = normalize_job(await self._client.get_job(job_id))
            polls += 1
            if job.is_terminal:
                break
            logger.debug(
                "Job not finished, polling again",
                extra={
                    "extra_data": {
                        "job_id": job_id,
                        "state": job.state.value,
                        "polls": polls,
                        "delay_seconds": self._interval,
                    }
                },
            )
            await self._sleep(self._interval)

        if job.state == JobState.FAILED:
            detail = job.error_detail or _UNKNOWN_ERROR
            logger.warning(
                "Job failed",
                extra={
                    "extra_data": {
                        "job_id": job_id,
                        "polls": polls,
                        "code": detail.code,
                        "title": detail.title,
                    }
                },
            )
            raise JobFailedError(detail.code, detail.title, detail.description, job_id)

        logger.info("Job succeeded", extra={"extra_data": {"job_id": job_id, "polls": polls}})
        return job
