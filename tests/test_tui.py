from gcops.cli.tui import _MAX_SUMMARY_WIDTH, _job_choice_title, _truncate
from gcops.core.jobs import Job


def _job(job_id: str, configuration: dict, state: str = "DONE") -> Job:
    return Job.from_api(
        None,
        {
            "jobReference": {"projectId": "proj", "jobId": job_id},
            "configuration": configuration,
            "status": {"state": state},
        },
    )


def test_job_choice_title_aligns_columns():
    first = _job_choice_title(_job("a1", {"query": {"query": "SELECT 1"}}), id_width=8)
    second = _job_choice_title(
        _job("bquxjob_9", {"load": {"destinationTable": {"projectId": "p", "datasetId": "d", "tableId": "t"}}}),
        id_width=9,
    )

    assert first.startswith("a1")
    assert "query" in first and "SELECT 1" in first
    assert second.startswith("bquxjob_9")
    assert "-> p:d.t" in second


def test_job_choice_title_collapses_and_truncates_long_queries():
    sql = "SELECT\n  " + ", ".join(f"col_{i}" for i in range(50)) + "\nFROM t"
    rendered = _job_choice_title(_job("q", {"query": {"query": sql}}, state="RUNNING"), id_width=1)

    assert "\n" not in rendered
    assert rendered.endswith("...")
    assert "RUNNING" in rendered
    assert _truncate("x" * (_MAX_SUMMARY_WIDTH + 5), _MAX_SUMMARY_WIDTH).endswith("...")
