"""Core job waiting and re-running logic.

This module contains the polling loop that drives a job to its DONE state.
It is intentionally synchronous: every poll is a blocking reload, the delay
between polls grows linearly with the attempt count, and there is no
ceiling unless the caller passes one.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable

import structlog

from gcops.core.errors import JobTimeout

if TYPE_CHECKING:
    from gcops.core.jobs import Job

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Backoff:
    """
    Linear, uncapped backoff: `delay(attempt) = multiplier * attempt + base`.

    Attributes:
        multiplier: Seconds added per attempt. Must be positive so that every
                    wait is longer than the previous one.
        base: Seconds to wait before the first poll.
    """

    multiplier: float = 2
    base: float = 5

    def __post_init__(self) -> None:
        if self.multiplier <= 0:
            raise ValueError("multiplier must be > 0")
        if self.base < 0:
            raise ValueError("base must be >= 0")

    def delay(self, attempt: int) -> float:
        """Return the number of seconds to sleep before poll number `attempt` (0-based)."""
        return self.multiplier * attempt + self.base


def wait_until_done(
    job: Job,
    backoff: Backoff | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    deadline: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Job:
    """
    Block until a job reaches the DONE state.

    A job that is already DONE returns immediately without any request.
    Otherwise the loop sleeps according to the backoff and reloads the job
    until it is DONE. DONE does not mean success; check `job.failed`.

    Args:
        job: Job to wait for. Its snapshot is replaced on every poll.
        backoff: Delay policy; defaults to `Backoff()` (5s, 7s, 9s, ...).
        sleep: Function used to wait between polls.
        deadline: Optional number of seconds after which waiting stops with
                  JobTimeout. None (the default) waits for as long as it takes.
        clock: Monotonic clock used to measure the deadline.

    Returns:
        The same job, now DONE.

    Raises:
        JobTimeout: If the next sleep would cross `deadline`.
        RemoteCallFailed: If a reload fails; polling is not retried further.
    """
    backoff = backoff or Backoff()
    if deadline is not None and deadline < 0:
        raise ValueError("deadline must be >= 0")

    started = clock()
    attempt = 0
    while not job.done:
        delay = backoff.delay(attempt)
        if deadline is not None:
            elapsed = clock() - started
            if elapsed + delay > deadline:
                raise JobTimeout(job.job_id, elapsed)
        sleep(delay)
        attempt += 1
        job.reload()
        logger.debug(
            "job_polled",
            job_id=job.job_id,
            attempt=attempt,
            state=job.state.value,
            delay=delay,
        )

    logger.info("job_done", job_id=job.job_id, attempts=attempt, failed=job.failed)
    return job


def rerun_jobs(jobs: Iterable[Job]) -> list[Job]:
    """
    Re-submit each job's configuration, one after another.

    Returns:
        The new jobs, in the order of the input.
    """
    return [job.rerun() for job in jobs]
