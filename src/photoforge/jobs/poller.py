"""Generic wait loop shared by every provider protocol."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from ..errors import AuthError, JobTimeoutError, ProviderFailureError, RateLimitedError
from ..models import Artifact, Job, JobState, JobStatus

logger = logging.getLogger(__name__)

FetchStatus = Callable[[str], Awaitable[JobStatus]]
StatusPredicate = Callable[[JobStatus], bool]


@dataclass(slots=True, frozen=True)
class PollPolicy:
    """Attempt budget and sleep schedule for one class of operations."""

    max_attempts: int = 60
    interval_seconds: float = 2.0
    backoff_factor: float = 1.0
    max_interval_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")

    @property
    def cap_seconds(self) -> float:
        if self.max_interval_seconds is None:
            return self.interval_seconds
        return max(self.interval_seconds, self.max_interval_seconds)

    def delay_for(self, attempt: int) -> float:
        """Sleep before ``attempt`` (1-based), grown geometrically and capped."""
        delay = self.interval_seconds * self.backoff_factor ** max(attempt - 1, 0)
        return min(delay, self.cap_seconds)

    @property
    def worst_case_seconds(self) -> float:
        return sum(self.delay_for(attempt) for attempt in range(1, self.max_attempts + 1))

    def scaled(self, interval_seconds: float) -> "PollPolicy":
        """Return the same budget with a different base interval."""
        if self.interval_seconds == 0:
            ratio = 1.0
        else:
            ratio = interval_seconds / self.interval_seconds
        cap = None if self.max_interval_seconds is None else self.max_interval_seconds * ratio
        return PollPolicy(
            max_attempts=self.max_attempts,
            interval_seconds=interval_seconds,
            backoff_factor=self.backoff_factor,
            max_interval_seconds=cap,
        )


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TransportError, RateLimitedError)):
        return True
    return isinstance(exc, ProviderFailureError) and exc.transient


@dataclass(slots=True)
class JobPoller:
    """Drive a provider job to a terminal state.

    A success status without usable output is treated as still pending and
    keeps consuming the same attempt budget. Failure states end the loop at
    once. Transient request errors are retried; when the final attempt fails
    with one, that error is raised instead of a timeout.
    """

    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    log: logging.Logger = field(default_factory=lambda: logger)

    async def poll(
        self,
        job: Job,
        fetch_status: FetchStatus,
        is_terminal: StatusPredicate,
        has_usable_output: StatusPredicate,
        policy: PollPolicy,
    ) -> Artifact:
        job.state = JobState.POLLING
        last_error: Exception | None = None

        for attempt in range(1, policy.max_attempts + 1):
            await self.sleep(policy.delay_for(attempt))
            job.attempts = attempt
            try:
                status = await fetch_status(job.job_id)
            except AuthError:
                job.state = JobState.FAILED
                raise
            except (httpx.HTTPError, ProviderFailureError, RateLimitedError) as exc:
                if not _is_transient(exc):
                    job.state = JobState.FAILED
                    raise
                last_error = exc
                self.log.warning(
                    "poller.attempt.error",
                    extra={
                        "provider": job.provider,
                        "job_id": job.job_id,
                        "attempt": attempt,
                        "max_attempts": policy.max_attempts,
                        "error": str(exc),
                    },
                )
                continue

            last_error = None
            self.log.debug(
                "poller.attempt",
                extra={
                    "provider": job.provider,
                    "job_id": job.job_id,
                    "attempt": attempt,
                    "state": status.state,
                },
            )
            if not is_terminal(status):
                continue
            if status.failed:
                job.state = JobState.FAILED
                message = status.error or f"Job {job.job_id} ended with status '{status.state}'"
                raise ProviderFailureError(message)
            if has_usable_output(status):
                job.state = JobState.SUCCEEDED
                self.log.info(
                    "poller.completed",
                    extra={"provider": job.provider, "job_id": job.job_id, "attempts": attempt},
                )
                return Artifact(output=status.output, provider=job.provider)
            self.log.warning(
                "poller.succeeded_without_output",
                extra={"provider": job.provider, "job_id": job.job_id, "attempt": attempt},
            )

        if last_error is not None:
            job.state = JobState.FAILED
            if isinstance(last_error, httpx.HTTPError):
                raise ProviderFailureError(
                    f"Status request for job {job.job_id} failed: {last_error}"
                ) from last_error
            raise last_error

        job.state = JobState.TIMED_OUT
        raise JobTimeoutError(
            f"Job {job.job_id} did not complete after {policy.max_attempts} attempts"
        )


__all__ = ["JobPoller", "PollPolicy", "FetchStatus", "StatusPredicate"]
