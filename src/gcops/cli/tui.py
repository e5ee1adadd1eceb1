"""Terminal UI utilities for gcops."""

from __future__ import annotations

import questionary

from gcops.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from gcops.core.jobs import Job

_MAX_SUMMARY_WIDTH = 72


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _job_summary(job: Job) -> str:
    """One-line description of what the job does."""
    config = job.config
    query = getattr(config, "query", None)
    if query:
        return " ".join(str(query).split())
    destination = config.destination_table
    if destination is not None:
        return f"-> {destination.full_name}"
    if config.source_tables:
        return f"<- {config.source_tables[0].full_name}"
    return ""


def _job_choice_title(job: Job, *, id_width: int) -> str:
    """Format one job choice as `<job_id>  <kind> <state>  <summary>` with aligned columns."""
    summary = _truncate(_job_summary(job), _MAX_SUMMARY_WIDTH)
    state = "FAILED" if job.failed else job.state.value
    return f"{job.job_id.ljust(id_width)}  {job.kind:<7} {state:<7}  {summary}".rstrip()


def select_jobs(jobs: list[Job]) -> list[Job]:
    """Display a checkbox prompt to select jobs from a list.

    Args:
        jobs: A list of Job objects to choose from.

    Returns:
        A list of selected Job objects, or an empty list if none selected.
    """
    id_width = max((len(job.job_id) for job in jobs), default=0)

    choices = [
        questionary.Choice(
            title=_job_choice_title(job, id_width=id_width),
            value=job,
        )
        for job in jobs
    ]

    return (
        questionary.checkbox(
            "Select jobs:",
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
        ).ask()
        or []
    )
