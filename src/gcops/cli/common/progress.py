"""Progress formatting utilities for the CLI."""

from __future__ import annotations

import time
from typing import Callable

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from gcops.core.errors import JobTimeout
from gcops.core.jobs import Job, JobState
from gcops.core.runs import Backoff

console = Console()
_MAX_JOB_ID_WIDTH = 56


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _display_job_label(job: Job, *, id_width: int) -> str:
    """Render `<job id>  (<kind>)` with an aligned kind column."""
    short_id = _truncate(job.job_id, _MAX_JOB_ID_WIDTH)
    return f"{short_id.ljust(id_width)}  ({job.kind})"


def _style_for(job: Job) -> str:
    if job.failed:
        return "red"
    if job.state is JobState.DONE:
        return "green"
    if job.state in (JobState.PENDING, JobState.RUNNING):
        return "yellow"
    return "dim"


def _status_label(job: Job) -> str:
    if job.failed:
        return "FAILED"
    return job.state.value


def wait_for_jobs_with_progress(
    jobs: list[Job],
    backoff: Backoff | None = None,
    *,
    deadline: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> list[Job]:
    """
    Reload all jobs until every one of them is DONE. Shows:
      - an overall progress bar (x/y done + failures)
      - per-job spinner rows with elapsed timers (stopped per job when done)

    The same job id given more than once is waited for (and shown) once;
    the returned list holds each distinct job in first-seen order.

    Every round reloads the jobs that are not done yet and then sleeps
    `backoff.delay(round)`, so the delay grows the same way as for a single
    job. Jobs that are already DONE are never reloaded.

    Raises:
        JobTimeout: If the next sleep would cross `deadline` (seconds).
    """
    backoff = backoff or Backoff()
    unique: dict[str, Job] = {}
    for job in jobs:
        unique.setdefault(job.job_id, job)
    jobs = list(unique.values())
    finished: set[str] = set()
    failures = 0
    id_width = max((len(_truncate(j.job_id, _MAX_JOB_ID_WIDTH)) for j in jobs), default=0)

    overall = Progress(
        TextColumn("[bold]Overall[/]"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("failures=[bold red]{task.fields[failures]}[/]"),
        TimeElapsedColumn(),
        console=console,
    )

    per_job = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.fields[job]}[/]"),
        TextColumn(
            "state=[{task.fields[style]}]{task.fields[state]}[/{task.fields[style]}]"
        ),
        TimeElapsedColumn(),
        console=console,
    )

    overall_task_id = overall.add_task("overall", total=max(len(jobs), 1), failures=0)

    task_ids: dict[str, int] = {}
    for job in jobs:
        task_ids[job.job_id] = per_job.add_task(
            "",
            total=1,
            job=_display_job_label(job, id_width=id_width),
            state=_status_label(job),
            style=_style_for(job),
        )

    def _mark(job: Job) -> None:
        nonlocal failures
        per_job.update(task_ids[job.job_id], state=_status_label(job), style=_style_for(job))
        if job.done:
            finished.add(job.job_id)
            if job.failed:
                failures += 1
                overall.update(overall_task_id, failures=failures)
            per_job.update(task_ids[job.job_id], completed=1)
            overall.advance(overall_task_id, 1)

    for job in jobs:
        if job.done:
            _mark(job)

    started = clock()
    attempt = 0
    with Live(Group(overall, per_job), console=console, refresh_per_second=10, transient=True):
        while len(finished) < len(jobs):
            delay = backoff.delay(attempt)
            if deadline is not None:
                elapsed = clock() - started
                if elapsed + delay > deadline:
                    pending = next(j for j in jobs if j.job_id not in finished)
                    raise JobTimeout(pending.job_id, elapsed)
            sleep(delay)
            attempt += 1

            for job in jobs:
                if job.job_id in finished:
                    continue
                job.reload()
                _mark(job)

        overall.update(overall_task_id, completed=len(jobs))

    return jobs
