"""Job selector abstractions and implementations.

This module defines the selector system used to decide whether a BigQuery
job matches a set of criteria. The jobs API can only filter by state on the
server; selectors add client-side matching on kind, failure and job id and
can be composed using logical operators (AND / OR).

Selectors are pure, side-effect-free objects and are intended to be
reusable across different frontends such as CLI commands, automation
scripts, and tests.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from gcops.core.jobs import Job

JOB_KINDS = ("query", "load", "copy", "extract")
JOB_STATES = ("PENDING", "RUNNING", "DONE")


class JobSelector(ABC):
    """
    Abstract base class for all job selectors.

    A JobSelector encapsulates a single piece of matching logic that
    determines whether a given Job satisfies a specific criterion.
    """

    @abstractmethod
    def matches(self, job: Job) -> bool:
        """
        Determine whether the given job matches this selector.

        Args:
            job: Job instance to evaluate.

        Returns:
            True if the job matches the selector criteria, False otherwise.
        """
        ...


class JobIdRegexSelector(JobSelector):
    """
    Selector that matches jobs based on a regular expression applied
    to the job id.
    """

    def __init__(self, pattern: str):
        try:
            self.regex = re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"Invalid regex expression: {exc}") from exc

    def matches(self, job: Job) -> bool:
        return bool(self.regex.search(job.job_id))


class KindSelector(JobSelector):
    """Selector that matches jobs of one or more kinds (query, load, copy, extract)."""

    def __init__(self, kinds: Iterable[str]):
        self.kinds = {k.strip().lower() for k in kinds}
        unknown = self.kinds - set(JOB_KINDS)
        if unknown:
            raise ValueError(
                f"Unknown job kind(s): {', '.join(sorted(unknown))} "
                f"(expected {', '.join(JOB_KINDS)})"
            )

    def matches(self, job: Job) -> bool:
        return job.kind in self.kinds


class StateSelector(JobSelector):
    """Selector that matches jobs whose last known state is one of `states`."""

    def __init__(self, states: Iterable[str]):
        self.states = {s.strip().upper() for s in states}
        unknown = self.states - set(JOB_STATES)
        if unknown:
            raise ValueError(
                f"Unknown job state(s): {', '.join(sorted(unknown))} "
                "(expected pending, running or done)"
            )

    def matches(self, job: Job) -> bool:
        return job.state.value in self.states


class FailedSelector(JobSelector):
    """Selector that matches jobs that carry an error result (or, inverted, none)."""

    def __init__(self, failed: bool = True):
        self.failed = failed

    def matches(self, job: Job) -> bool:
        return job.failed is self.failed


class AndSelector(JobSelector):
    """
    Composite selector that matches a job only if all child selectors match.
    """

    def __init__(self, selectors: list[JobSelector]):
        self.selectors = selectors

    def matches(self, job: Job) -> bool:
        return all(s.matches(job) for s in self.selectors)


class OrSelector(JobSelector):
    """
    Composite selector that matches a job if any child selector matches.
    """

    def __init__(self, selectors: list[JobSelector]):
        self.selectors = selectors

    def matches(self, job: Job) -> bool:
        return any(s.matches(job) for s in self.selectors)


class AnySelector(JobSelector):
    """Selector that matches every job."""

    def matches(self, job: Job) -> bool:
        return True
