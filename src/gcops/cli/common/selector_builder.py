"""Selector construction utilities.

This module translates CLI arguments into concrete JobSelector instances.
It centralizes validation and composition logic for selectors, so that
commands only ever deal with a single selector object.
"""

from typing import Iterable

from gcops.core.selectors import (
    AndSelector,
    AnySelector,
    FailedSelector,
    JobIdRegexSelector,
    JobSelector,
    KindSelector,
    OrSelector,
    StateSelector,
)


def build_selector(
    *,
    kinds: Iterable[str] = (),
    states: Iterable[str] = (),
    id_regex: str | None = None,
    failed: bool | None = None,
    use_or: bool = False,
) -> JobSelector:
    """
    Build a composite JobSelector from user-provided criteria.

    Each kind of criterion becomes one selector; several values of the same
    criterion (for example two `--kind` options) match any of them. The
    resulting selectors are combined with AND, or with OR if `use_or`.

    Args:
        kinds: Job kinds to match (query, load, copy, extract).
        states: Job states to match (pending, running, done).
        id_regex: Optional regular expression searched in the job id.
        failed: True for failed jobs only, False for jobs without an error
                result, None for both.
        use_or: If True, combine multiple selectors using logical OR.

    Returns:
        A JobSelector; AnySelector when no criteria are given.

    Raises:
        ValueError: If a kind, state or regex is invalid.
    """
    selectors: list[JobSelector] = []

    kinds = [k for k in kinds if k]
    if kinds:
        selectors.append(KindSelector(kinds))

    states = [s for s in states if s]
    if states:
        selectors.append(StateSelector(states))

    if id_regex:
        selectors.append(JobIdRegexSelector(id_regex))

    if failed is not None:
        selectors.append(FailedSelector(failed))

    if not selectors:
        return AnySelector()

    if len(selectors) == 1:
        return selectors[0]

    return OrSelector(selectors) if use_or else AndSelector(selectors)
