import pytest

from gcops.core.jobs import Job
from gcops.core.selectors import (
    AndSelector,
    AnySelector,
    FailedSelector,
    JobIdRegexSelector,
    KindSelector,
    OrSelector,
    StateSelector,
)


def _job(job_id: str, kind: str = "query", state: str = "DONE", failed: bool = False) -> Job:
    status = {"state": state}
    if failed:
        status["errorResult"] = {"reason": "invalid"}
    return Job.from_api(
        None,
        {
            "jobReference": {"projectId": "proj", "jobId": job_id},
            "configuration": {kind: {"x": 1}},
            "status": status,
        },
    )


def test_job_id_regex_selector_matches():
    assert JobIdRegexSelector("^nightly_").matches(_job("nightly_42")) is True
    assert JobIdRegexSelector("^nightly_").matches(_job("adhoc_1")) is False


def test_job_id_regex_selector_rejects_bad_pattern():
    with pytest.raises(ValueError, match="Invalid regex"):
        JobIdRegexSelector("(")


def test_kind_selector():
    selector = KindSelector(["Load", "copy"])

    assert selector.matches(_job("a", kind="load"))
    assert selector.matches(_job("b", kind="copy"))
    assert not selector.matches(_job("c", kind="query"))


def test_kind_selector_rejects_unknown_kind():
    with pytest.raises(ValueError, match="transfer"):
        KindSelector(["transfer"])


def test_state_selector():
    selector = StateSelector(["running", "PENDING"])

    assert selector.matches(_job("a", state="RUNNING"))
    assert not selector.matches(_job("b", state="DONE"))


def test_state_selector_rejects_unknown_state():
    with pytest.raises(ValueError):
        StateSelector(["unknown"])


def test_failed_selector():
    assert FailedSelector().matches(_job("a", failed=True))
    assert not FailedSelector().matches(_job("b"))
    assert FailedSelector(failed=False).matches(_job("b"))


def test_and_or_any_selectors():
    job = _job("nightly_1", kind="load", failed=True)

    id_sel = JobIdRegexSelector("nightly")
    kind_sel = KindSelector(["query"])

    assert AndSelector([id_sel, FailedSelector()]).matches(job) is True
    assert AndSelector([id_sel, kind_sel]).matches(job) is False
    assert OrSelector([id_sel, kind_sel]).matches(job) is True
    assert AnySelector().matches(job) is True
