import pytest

from gcops.core.errors import NotFoundError, PreconditionViolation
from gcops.core.jobs import (
    CopyConfig,
    ExtractConfig,
    Job,
    JobConfig,
    JobState,
    LoadConfig,
    QueryConfig,
    copy_job,
    extract_job,
    get_job,
    list_jobs,
    load_job,
    parse_config,
    query_job,
    select_jobs,
)
from gcops.core.resources import Dataset, TableReference
from gcops.core.schema import Field, Schema
from gcops.core.selectors import KindSelector


def _resource(job_id: str = "job_1", state: str = "DONE", configuration=None, **extra) -> dict:
    resource = {
        "jobReference": {"projectId": "proj", "jobId": job_id},
        "configuration": configuration or {"query": {"query": "SELECT 1"}},
        "status": {"state": state},
    }
    resource.update(extra)
    return resource


def _table(project: str, dataset: str, table: str) -> dict:
    return {
        "tableReference": {"projectId": project, "datasetId": dataset, "tableId": table},
        "type": "TABLE",
        "numRows": "12",
    }


class _JobsAdapterStub:
    project = "proj"

    def __init__(self, jobs=None, tables=None, pages=None):
        self.jobs = jobs or {}
        self.tables = tables or {}
        self.pages = pages or {}
        self.inserted: list[dict] = []
        self.list_calls: list[dict] = []

    def get_job(self, job_id: str) -> dict:
        if job_id not in self.jobs:
            raise NotFoundError(f"Not found: Job proj:{job_id}", status_code=404)
        value = self.jobs[job_id]
        return value.pop(0) if isinstance(value, list) else value

    def insert_job(self, configuration: dict) -> dict:
        self.inserted.append(configuration)
        return _resource(f"new_{len(self.inserted)}", "PENDING", configuration=configuration)

    def cancel_job(self, job_id: str) -> dict:
        return _resource(job_id, "DONE", status={"state": "DONE"})

    def list_jobs(self, **options) -> dict:
        self.list_calls.append(options)
        return self.pages[options.get("token")]

    def get_query_results(self, job_id: str, **options) -> dict:
        return {
            "jobReference": {"projectId": "proj", "jobId": job_id},
            "jobComplete": True,
            "schema": {"fields": [{"name": "n", "type": "INTEGER"}]},
            "rows": [{"f": [{"v": "1"}]}],
            "totalRows": "1",
        }

    def get_table(self, project_id: str, dataset_id: str, table_id: str) -> dict:
        key = (project_id, dataset_id, table_id)
        if key not in self.tables:
            raise NotFoundError("Not found: Table", status_code=404)
        return self.tables[key]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("DONE", JobState.DONE),
        ("done", JobState.DONE),
        ("Running", JobState.RUNNING),
        ("pending", JobState.PENDING),
        ("SUSPENDED", JobState.UNKNOWN),
        (None, JobState.UNKNOWN),
    ],
)
def test_job_state_parse_is_case_insensitive(raw, expected):
    assert JobState.parse(raw) is expected


@pytest.mark.parametrize("state", list(JobState))
def test_job_state_parse_accepts_members(state):
    assert JobState.parse(state) is state


def test_failed_iff_error_result_present():
    ok = Job.from_api(_JobsAdapterStub(), _resource(state="DONE"))
    failed = Job.from_api(
        _JobsAdapterStub(),
        _resource(
            state="DONE",
            status={
                "state": "DONE",
                "errorResult": {"reason": "invalid", "message": "Bad SQL", "location": "query"},
                "errors": [{"reason": "invalid", "message": "Bad SQL"}],
            },
        ),
    )

    assert ok.done and not ok.failed
    assert failed.done and failed.failed
    assert str(failed.error) == "invalid: Bad SQL (query)"
    assert len(failed.errors) == 1


def test_error_result_counts_even_without_done_state():
    job = Job.from_api(
        _JobsAdapterStub(),
        _resource(status={"state": "RUNNING", "errorResult": {"reason": "stopped"}}),
    )

    assert job.running
    assert job.failed


def test_listing_state_is_used_when_status_has_none():
    resource = _resource()
    resource["status"] = {}
    resource["state"] = "running"

    assert Job.from_api(_JobsAdapterStub(), resource).state is JobState.RUNNING


def test_reload_walks_through_states():
    adapter = _JobsAdapterStub(
        jobs={"job_1": [_resource(state="RUNNING"), _resource(state="DONE")]}
    )
    job = Job.from_api(adapter, _resource(state="PENDING"))
    before = job.snapshot

    assert job.pending
    assert job.reload() is job
    assert job.running
    job.refresh()
    assert job.done
    # the old snapshot is never modified in place
    assert before.state is JobState.PENDING


def test_reload_accepts_state_regression_from_server():
    adapter = _JobsAdapterStub(jobs={"job_1": [_resource(state="RUNNING")]})
    job = Job.from_api(adapter, _resource(state="DONE"))

    job.reload()

    assert job.running


def test_reload_propagates_not_found():
    job = Job.from_api(_JobsAdapterStub(), _resource("gone"))

    with pytest.raises(NotFoundError):
        job.reload()


def test_get_job_returns_none_when_missing():
    adapter = _JobsAdapterStub(jobs={"job_1": _resource()})

    assert get_job(adapter, "job_1").job_id == "job_1"
    assert get_job(adapter, "nope") is None


def test_rerun_submits_same_configuration_as_new_job():
    adapter = _JobsAdapterStub()
    config = {"copy": {"sourceTable": {"projectId": "p", "datasetId": "d", "tableId": "a"}}}
    job = Job.from_api(adapter, _resource(configuration=config))

    new_job = job.rerun()

    assert new_job is not job
    assert new_job.job_id == "new_1"
    assert new_job.job_id != job.job_id
    assert adapter.inserted == [config]
    assert new_job.configuration == job.configuration
    assert job.job_id == "job_1"


def test_cancel_takes_returned_snapshot():
    adapter = _JobsAdapterStub()
    job = Job.from_api(adapter, _resource(state="RUNNING"))

    assert job.cancel() is job
    assert job.done


def test_parse_config_picks_variant_by_branch():
    assert isinstance(parse_config({"copy": {"sourceTables": []}}), CopyConfig)
    assert isinstance(parse_config({"extract": {"destinationUris": ["gs://b/x"]}}), ExtractConfig)
    assert isinstance(parse_config({"load": {"sourceUris": ["gs://b/x"]}}), LoadConfig)
    assert isinstance(parse_config({"query": {"query": "SELECT 1"}}), QueryConfig)
    generic = parse_config({"dryRun": True})
    assert type(generic) is JobConfig
    assert generic.kind == "job"
    assert generic.dry_run


def test_copy_config_defaults_and_dispositions():
    config = parse_config(
        {
            "copy": {
                "sourceTables": [
                    {"projectId": "p", "datasetId": "d", "tableId": "a"},
                    {"projectId": "p", "datasetId": "d", "tableId": "b"},
                ],
                "destinationTable": {"projectId": "p", "datasetId": "d", "tableId": "c"},
                "writeDisposition": "WRITE_TRUNCATE",
            }
        }
    )

    assert [t.table_id for t in config.source_tables] == ["a", "b"]
    assert config.destination_table.table_id == "c"
    assert config.create_if_needed and not config.create_never
    assert config.write_truncate and not config.write_empty and not config.write_append


def test_extract_config_defaults():
    config = parse_config(
        {"extract": {"sourceTable": {"projectId": "p", "datasetId": "d", "tableId": "t"}}}
    )

    assert config.csv and not config.json and not config.avro
    assert not config.compressed
    assert config.field_delimiter == ","
    assert config.print_header is True
    assert config.source_tables == (TableReference("p", "d", "t"),)


def test_extract_config_reads_format_and_header():
    config = parse_config(
        {
            "extract": {
                "destinationUri": "gs://bucket/out.json.gz",
                "destinationFormat": "NEWLINE_DELIMITED_JSON",
                "compression": "GZIP",
                "printHeader": False,
            }
        }
    )

    assert config.json and config.compressed
    assert config.print_header is False
    assert config.destination_uris == ("gs://bucket/out.json.gz",)


def test_load_config_defaults():
    config = parse_config({"load": {"sourceUris": ["gs://b/data.csv"]}})

    assert config.csv
    assert config.utf8 and not config.iso8859_1
    assert config.field_delimiter == ","
    assert config.quote == '"'
    assert config.skip_leading_rows == 0
    assert config.max_bad_records == 0
    assert not config.allow_quoted_newlines
    assert not config.allow_jagged_rows
    assert not config.ignore_unknown_values
    assert config.create_if_needed and config.write_empty
    assert not config.schema


def test_load_config_keeps_empty_quote_and_schema():
    config = parse_config(
        {
            "load": {
                "quote": "",
                "encoding": "ISO-8859-1",
                "sourceFormat": "DATASTORE_BACKUP",
                "schema": {"fields": [{"name": "id", "type": "integer"}]},
            }
        }
    )

    assert config.quote == ""
    assert config.iso8859_1
    assert config.backup
    assert config.schema.field("id").type == "INTEGER"


def test_query_config_defaults():
    config = parse_config({"query": {"query": "SELECT 1"}})

    assert config.interactive and not config.batch
    assert config.use_query_cache is False
    assert config.flatten_results is True
    assert config.allow_large_results is False
    assert config.destination_table is None


def test_destination_and_source_resolve_tables():
    adapter = _JobsAdapterStub(tables={("p", "d", "dst"): _table("p", "d", "dst")})
    job = Job.from_api(
        adapter,
        _resource(
            configuration={
                "copy": {
                    "sourceTable": {"projectId": "p", "datasetId": "d", "tableId": "gone"},
                    "destinationTable": {"projectId": "p", "datasetId": "d", "tableId": "dst"},
                }
            }
        ),
    )

    assert job.destination().full_name == "p:d.dst"
    assert job.destination().num_rows == 12
    assert job.source() is None


def test_query_without_destination_has_no_tables():
    job = Job.from_api(_JobsAdapterStub(), _resource())

    assert job.destination() is None
    assert job.source() is None


def test_load_statistics_are_exposed():
    job = Job.from_api(
        _JobsAdapterStub(),
        _resource(
            configuration={"load": {"sourceUris": ["gs://b/x.csv"]}},
            statistics={
                "creationTime": "1700000000000",
                "load": {
                    "inputFiles": "2",
                    "inputFileBytes": "2048",
                    "outputRows": "100",
                    "outputBytes": "4096",
                },
            },
        ),
    )

    assert (job.input_files, job.input_file_bytes) == (2, 2048)
    assert (job.output_rows, job.output_bytes) == (100, 4096)
    assert job.created_at.year == 2023
    assert job.bytes_processed is None


def test_snapshot_keeps_the_job_resource():
    resource = _resource(statistics={"query": {"cacheHit": True}})

    job = Job.from_api(_JobsAdapterStub(), resource)

    assert job.snapshot.raw == resource
    assert job.statistics.query == {"cacheHit": True}
    assert not hasattr(job.statistics, "raw")


def test_query_results_only_for_query_jobs():
    adapter = _JobsAdapterStub()
    query = Job.from_api(adapter, _resource())
    load = Job.from_api(adapter, _resource(configuration={"load": {"sourceUris": ["gs://b/x"]}}))

    assert list(query.query_results()) == [{"n": 1}]
    with pytest.raises(PreconditionViolation):
        load.query_results()


def test_list_jobs_follows_tokens_and_replays_filters():
    adapter = _JobsAdapterStub(
        pages={
            None: {"jobs": [_resource("a"), _resource("b")], "nextPageToken": "t1"},
            "t1": {"jobs": [_resource("c")]},
        }
    )

    first = list_jobs(adapter, max_results=2, state_filter="done")

    assert [j.job_id for j in first] == ["a", "b"]
    assert [j.job_id for j in first.all()] == ["a", "b", "c"]
    assert adapter.list_calls[1] == {
        "token": "t1",
        "all_users": None,
        "max_results": 2,
        "state_filter": "DONE",
    }


def test_list_jobs_accepts_state_member():
    adapter = _JobsAdapterStub(pages={None: {"jobs": [_resource("a", "RUNNING")]}})

    first = list_jobs(adapter, state_filter=JobState.RUNNING)

    assert [j.job_id for j in first] == ["a"]
    assert adapter.list_calls[0]["state_filter"] == "RUNNING"


def test_list_jobs_rejects_unknown_state():
    with pytest.raises(ValueError, match="Invalid state filter"):
        list_jobs(_JobsAdapterStub(), state_filter="sleeping")


def test_select_jobs_keeps_order():
    adapter = _JobsAdapterStub()
    jobs = [
        Job.from_api(adapter, _resource("a")),
        Job.from_api(adapter, _resource("b", configuration={"load": {"sourceUris": ["x"]}})),
        Job.from_api(adapter, _resource("c")),
    ]

    assert [j.job_id for j in select_jobs(jobs, KindSelector(["query"]))] == ["a", "c"]


def test_query_job_builds_configuration():
    adapter = _JobsAdapterStub()

    job = query_job(
        adapter,
        "SELECT * FROM t",
        priority="batch",
        table="d.out",
        write="truncate",
        large_results=True,
        dataset=Dataset(project_id="other", dataset_id="src"),
    )

    assert job.kind == "query"
    assert adapter.inserted == [
        {
            "query": {
                "query": "SELECT * FROM t",
                "priority": "BATCH",
                "useQueryCache": True,
                "destinationTable": {"projectId": "proj", "datasetId": "d", "tableId": "out"},
                "writeDisposition": "WRITE_TRUNCATE",
                "allowLargeResults": True,
                "defaultDataset": {"projectId": "other", "datasetId": "src"},
            }
        }
    ]


def test_query_job_dry_run_flag():
    adapter = _JobsAdapterStub()

    query_job(adapter, "SELECT 1", cache=False, dataset="src", dry_run=True)

    assert adapter.inserted[0]["dryRun"] is True
    assert adapter.inserted[0]["query"]["useQueryCache"] is False
    assert adapter.inserted[0]["query"]["defaultDataset"] == {"datasetId": "src"}


def test_query_job_rejects_unknown_disposition():
    with pytest.raises(ValueError, match="write disposition"):
        query_job(_JobsAdapterStub(), "SELECT 1", table="d.t", write="overwrite")


def test_copy_job_puts_bare_destination_in_source_dataset():
    adapter = _JobsAdapterStub()

    job = copy_job(adapter, "other:src.a", "b", create="never")

    assert job.kind == "copy"
    branch = adapter.inserted[0]["copy"]
    assert branch["sourceTable"] == {"projectId": "other", "datasetId": "src", "tableId": "a"}
    assert branch["destinationTable"] == {"projectId": "proj", "datasetId": "src", "tableId": "b"}
    assert branch["createDisposition"] == "CREATE_NEVER"
    assert job.config.destination_table == TableReference("proj", "src", "b")


def test_extract_job_infers_format_from_uri():
    adapter = _JobsAdapterStub()

    extract_job(adapter, TableReference("p", "d", "t"), "gs://b/out.json", compression="gzip")

    branch = adapter.inserted[0]["extract"]
    assert branch["destinationUris"] == ["gs://b/out.json"]
    assert branch["destinationFormat"] == "NEWLINE_DELIMITED_JSON"
    assert branch["compression"] == "GZIP"


def test_load_job_builds_configuration():
    adapter = _JobsAdapterStub()
    schema = Schema((Field("id", "INTEGER", "REQUIRED"), Field("name")))

    job = load_job(
        adapter,
        "d.t",
        ["gs://b/a.csv", "gs://b/b.csv"],
        write="append",
        schema=schema,
        skip_leading=1,
    )

    assert job.kind == "load"
    assert job.config.source_uris == ("gs://b/a.csv", "gs://b/b.csv")
    branch = adapter.inserted[0]["load"]
    assert branch["sourceFormat"] == "CSV"
    assert branch["writeDisposition"] == "WRITE_APPEND"
    assert branch["skipLeadingRows"] == 1
    assert branch["schema"]["fields"][0] == {"name": "id", "type": "INTEGER", "mode": "REQUIRED"}


def test_table_reference_parse():
    assert TableReference.parse("p:d.t", default_project="x") == TableReference("p", "d", "t")
    assert TableReference.parse("d.t", default_project="x") == TableReference("x", "d", "t")
    assert TableReference.parse("t", default_project="x", default_dataset="d").table_id == "t"
    with pytest.raises(ValueError):
        TableReference.parse("t", default_project="x")
