import pytest

from gcops.cli.common.selector_builder import build_selector
from gcops.core.selectors import (
    AndSelector,
    AnySelector,
    FailedSelector,
    JobIdRegexSelector,
    KindSelector,
    OrSelector,
    StateSelector,
)


def test_build_selector_without_criteria_matches_everything():
    assert isinstance(build_selector(), AnySelector)


def test_build_selector_single_criterion():
    assert isinstance(build_selector(kinds=["query"]), KindSelector)
    assert isinstance(build_selector(states=["done"]), StateSelector)
    assert isinstance(build_selector(id_regex="nightly"), JobIdRegexSelector)
    assert isinstance(build_selector(failed=False), FailedSelector)


def test_build_selector_combined_and_or():
    and_selector = build_selector(kinds=["load"], failed=True, use_or=False)
    or_selector = build_selector(kinds=["load"], failed=True, use_or=True)

    assert isinstance(and_selector, AndSelector)
    assert isinstance(or_selector, OrSelector)


def test_build_selector_ignores_empty_values():
    assert isinstance(build_selector(kinds=[""], states=[""]), AnySelector)


def test_build_selector_invalid_kind():
    with pytest.raises(ValueError):
        build_selector(kinds=["broken"])
