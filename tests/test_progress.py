import pytest

from gcops.cli.common.progress import _display_job_label, wait_for_jobs_with_progress
from gcops.core.errors import JobTimeout
from gcops.core.jobs import Job


def _resource(job_id: str, state: str, kind: str = "query", failed: bool = False) -> dict:
    status = {"state": state}
    if failed:
        status["errorResult"] = {"reason": "backendError"}
    return {
        "jobReference": {"projectId": "proj", "jobId": job_id},
        "configuration": {kind: {"query": "SELECT 1"}},
        "status": status,
    }


class _JobsAdapterStub:
    project = "proj"

    def __init__(self, script: dict[str, list[dict]]):
        self.script = script
        self.calls: list[str] = []

    def get_job(self, job_id: str) -> dict:
        self.calls.append(job_id)
        return self.script[job_id].pop(0)


def test_display_job_label_aligns_kind_column():
    adapter = _JobsAdapterStub({})
    short = _display_job_label(Job.from_api(adapter, _resource("a", "DONE")), id_width=10)
    long = _display_job_label(Job.from_api(adapter, _resource("bquxjob_1", "DONE", "load")), id_width=10)

    assert short.startswith("a")
    assert long.startswith("bquxjob_1")
    assert short.index("(query)") == long.index("(load)")


def test_wait_for_jobs_reloads_only_unfinished_jobs():
    adapter = _JobsAdapterStub(
        {
            "a": [_resource("a", "RUNNING"), _resource("a", "DONE")],
            "b": [_resource("b", "DONE", failed=True)],
        }
    )
    jobs = [
        Job.from_api(adapter, _resource("a", "PENDING")),
        Job.from_api(adapter, _resource("b", "RUNNING")),
        Job.from_api(adapter, _resource("c", "DONE")),
    ]
    sleeps: list[float] = []

    result = wait_for_jobs_with_progress(jobs, sleep=sleeps.append)

    assert [job.job_id for job in result] == ["a", "b", "c"]
    assert all(r is j for r, j in zip(result, jobs))
    assert all(job.done for job in jobs)
    assert [job.failed for job in jobs] == [False, True, False]
    assert sleeps == [5, 7]
    assert adapter.calls == ["a", "b", "a"]


def test_wait_for_jobs_honors_deadline():
    adapter = _JobsAdapterStub({"a": [_resource("a", "RUNNING")] * 5})
    jobs = [Job.from_api(adapter, _resource("a", "RUNNING"))]

    with pytest.raises(JobTimeout):
        wait_for_jobs_with_progress(jobs, deadline=6, sleep=lambda _: None, clock=lambda: 0.0)


def test_wait_for_jobs_waits_once_for_repeated_ids():
    adapter = _JobsAdapterStub({"abc": [_resource("abc", "DONE")]})
    first = Job.from_api(adapter, _resource("abc", "RUNNING"))
    again = Job.from_api(adapter, _resource("abc", "RUNNING"))
    sleeps: list[float] = []

    result = wait_for_jobs_with_progress([first, again], sleep=sleeps.append)

    assert result == [first]
    assert first.done
    assert sleeps == [5]
    assert adapter.calls == ["abc"]
