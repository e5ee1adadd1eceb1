"""Core job domain models plus lookup, listing and creation logic.

A BigQuery job is a server-side handle to an asynchronous operation (query,
load, copy or extract). This module decodes job resources into immutable
snapshots, wraps them in `Job` objects that can be refreshed, re-run and
waited on, and provides the functions that create or look up jobs through
a jobs adapter.

The configuration of a job is decoded once, at snapshot time, into one of
the `JobConfig` variants. Kind-specific accessors (dispositions, formats,
table references) live on the variant, so callers never have to inspect the
raw configuration to find out what kind of job they hold.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Callable, ClassVar, Mapping, Protocol, Sequence

import structlog

from gcops.core.errors import NotFoundError, PreconditionViolation
from gcops.core.paging import Page, PageQuery
from gcops.core.resources import Dataset, Table, TableReference, ms_to_datetime
from gcops.core.results import QueryResults, query_results
from gcops.core.runs import Backoff, wait_until_done
from gcops.core.schema import Schema
from gcops.core.selectors import JobSelector

logger = structlog.get_logger(__name__)

CREATE_IF_NEEDED = "CREATE_IF_NEEDED"
CREATE_NEVER = "CREATE_NEVER"
WRITE_TRUNCATE = "WRITE_TRUNCATE"
WRITE_APPEND = "WRITE_APPEND"
WRITE_EMPTY = "WRITE_EMPTY"

_CREATE_DISPOSITIONS = {"needed": CREATE_IF_NEEDED, "never": CREATE_NEVER}
_WRITE_DISPOSITIONS = {
    "truncate": WRITE_TRUNCATE,
    "append": WRITE_APPEND,
    "empty": WRITE_EMPTY,
}
_EXTRACT_FORMATS = {"csv": "CSV", "json": "NEWLINE_DELIMITED_JSON", "avro": "AVRO"}
_LOAD_FORMATS = {**_EXTRACT_FORMATS, "backup": "DATASTORE_BACKUP"}


class JobState(str, Enum):
    """
    Enumeration of the states a BigQuery job moves through.

    Values:
        PENDING: The job is queued and has not started yet.
        RUNNING: The job is executing.
        DONE: The job stopped. This does not mean it succeeded.
        UNKNOWN: The state is absent or not one of the above.
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: Any) -> JobState:
        """Case-insensitive parse of a wire state; anything else is UNKNOWN."""
        if isinstance(raw, cls):
            return raw
        if not raw:
            return cls.UNKNOWN
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return cls.UNKNOWN


_STATE_ORDER = {JobState.PENDING: 0, JobState.RUNNING: 1, JobState.DONE: 2}


@dataclass(frozen=True)
class ErrorDetail:
    """An error reported by BigQuery for a job."""

    reason: str | None = None
    message: str | None = None
    location: str | None = None
    debug_info: str | None = None

    @classmethod
    def from_api(cls, resource: Mapping[str, Any]) -> ErrorDetail:
        return cls(
            reason=resource.get("reason"),
            message=resource.get("message"),
            location=resource.get("location"),
            debug_info=resource.get("debugInfo"),
        )

    def __str__(self) -> str:
        text = f"{self.reason or 'error'}: {self.message or ''}".rstrip()
        return f"{text} ({self.location})" if self.location else text


@dataclass(frozen=True)
class JobStatus:
    """Status block of a job: raw state, terminal error and non-fatal errors."""

    raw_state: str | None = None
    error_result: ErrorDetail | None = None
    errors: tuple[ErrorDetail, ...] = ()

    @property
    def state(self) -> JobState:
        return JobState.parse(self.raw_state)

    @classmethod
    def from_api(cls, resource: Mapping[str, Any] | None, fallback_state: Any = None) -> JobStatus:
        resource = resource or {}
        error_result = resource.get("errorResult")
        return cls(
            raw_state=resource.get("state") or fallback_state,
            error_result=ErrorDetail.from_api(error_result) if error_result else None,
            errors=tuple(ErrorDetail.from_api(e) for e in resource.get("errors") or ()),
        )


@dataclass(frozen=True)
class JobStatistics:
    """Timestamps and counters reported for a job."""

    created_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    query: Mapping[str, Any] = field(default_factory=dict)
    load: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, resource: Mapping[str, Any] | None) -> JobStatistics:
        resource = resource or {}
        return cls(
            created_at=ms_to_datetime(resource.get("creationTime")),
            started_at=ms_to_datetime(resource.get("startTime")),
            ended_at=ms_to_datetime(resource.get("endTime")),
            query=resource.get("query") or {},
            load=resource.get("load") or {},
        )


@dataclass(frozen=True)
class JobConfig:
    """
    Configuration of a job whose kind is not recognized.

    Attributes:
        raw: The configuration exactly as the server reported it.
        dry_run: Whether the job only validates and estimates.
    """

    kind: ClassVar[str] = "job"

    raw: Mapping[str, Any] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def destination_table(self) -> TableReference | None:
        return None

    @property
    def source_tables(self) -> tuple[TableReference, ...]:
        return ()


class _Dispositions:
    """Disposition predicates shared by copy, load and query configurations."""

    create_disposition: str
    write_disposition: str

    @property
    def create_if_needed(self) -> bool:
        return self.create_disposition == CREATE_IF_NEEDED

    @property
    def create_never(self) -> bool:
        return self.create_disposition == CREATE_NEVER

    @property
    def write_truncate(self) -> bool:
        return self.write_disposition == WRITE_TRUNCATE

    @property
    def write_append(self) -> bool:
        return self.write_disposition == WRITE_APPEND

    @property
    def write_empty(self) -> bool:
        return self.write_disposition == WRITE_EMPTY


@dataclass(frozen=True)
class CopyConfig(_Dispositions, JobConfig):
    """Configuration of a table copy job."""

    kind: ClassVar[str] = "copy"

    source_tables: tuple[TableReference, ...] = ()
    destination_table: TableReference | None = None
    create_disposition: str = CREATE_IF_NEEDED
    write_disposition: str = WRITE_EMPTY


@dataclass(frozen=True)
class ExtractConfig(JobConfig):
    """Configuration of a job exporting a table to Cloud Storage."""

    kind: ClassVar[str] = "extract"

    source_table: TableReference | None = None
    destination_uris: tuple[str, ...] = ()
    destination_format: str = "CSV"
    compression: str = "NONE"
    field_delimiter: str = ","
    print_header: bool = True

    @property
    def source_tables(self) -> tuple[TableReference, ...]:
        return (self.source_table,) if self.source_table else ()

    @property
    def csv(self) -> bool:
        return self.destination_format == "CSV"

    @property
    def json(self) -> bool:
        return self.destination_format == "NEWLINE_DELIMITED_JSON"

    @property
    def avro(self) -> bool:
        return self.destination_format == "AVRO"

    @property
    def compressed(self) -> bool:
        return self.compression == "GZIP"


@dataclass(frozen=True)
class LoadConfig(_Dispositions, JobConfig):
    """Configuration of a job loading Cloud Storage files into a table."""

    kind: ClassVar[str] = "load"

    destination_table: TableReference | None = None
    source_uris: tuple[str, ...] = ()
    source_format: str = "CSV"
    field_delimiter: str = ","
    skip_leading_rows: int = 0
    encoding: str = "UTF-8"
    quote: str = '"'
    max_bad_records: int = 0
    allow_quoted_newlines: bool = False
    allow_jagged_rows: bool = False
    ignore_unknown_values: bool = False
    schema: Schema = Schema()
    create_disposition: str = CREATE_IF_NEEDED
    write_disposition: str = WRITE_EMPTY

    @property
    def csv(self) -> bool:
        return self.source_format == "CSV"

    @property
    def json(self) -> bool:
        return self.source_format == "NEWLINE_DELIMITED_JSON"

    @property
    def backup(self) -> bool:
        return self.source_format == "DATASTORE_BACKUP"

    @property
    def utf8(self) -> bool:
        return self.encoding.upper() == "UTF-8"

    @property
    def iso8859_1(self) -> bool:
        return self.encoding.upper() == "ISO-8859-1"


@dataclass(frozen=True)
class QueryConfig(_Dispositions, JobConfig):
    """Configuration of an asynchronous query job."""

    kind: ClassVar[str] = "query"

    query: str = ""
    priority: str = "INTERACTIVE"
    allow_large_results: bool = False
    use_query_cache: bool = False
    flatten_results: bool = True
    destination_table: TableReference | None = None
    default_dataset: Mapping[str, Any] | None = None
    create_disposition: str = CREATE_IF_NEEDED
    write_disposition: str = WRITE_EMPTY

    @property
    def batch(self) -> bool:
        return self.priority == "BATCH"

    @property
    def interactive(self) -> bool:
        return self.priority == "INTERACTIVE"


def _dispositions(branch: Mapping[str, Any]) -> dict[str, str]:
    return {
        "create_disposition": branch.get("createDisposition") or CREATE_IF_NEEDED,
        "write_disposition": branch.get("writeDisposition") or WRITE_EMPTY,
    }


def _uris(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def _flag(value: Any, default: bool) -> bool:
    return default if value is None else bool(value)


def parse_config(raw: Mapping[str, Any] | None) -> JobConfig:
    """
    Decode a job configuration into its variant.

    The variant is chosen by the branch that is present (`copy`, `extract`,
    `load` or `query`, checked in that order). A configuration without any
    of them decodes to the generic JobConfig.
    """
    raw = raw or {}
    dry_run = bool(raw.get("dryRun", False))

    if raw.get("copy"):
        branch = raw["copy"]
        sources = [TableReference.from_api(t) for t in branch.get("sourceTables") or ()]
        if not sources and branch.get("sourceTable"):
            sources = [TableReference.from_api(branch["sourceTable"])]
        return CopyConfig(
            raw=raw,
            dry_run=dry_run,
            source_tables=tuple(s for s in sources if s),
            destination_table=TableReference.from_api(branch.get("destinationTable")),
            **_dispositions(branch),
        )

    if raw.get("extract"):
        branch = raw["extract"]
        return ExtractConfig(
            raw=raw,
            dry_run=dry_run,
            source_table=TableReference.from_api(branch.get("sourceTable")),
            destination_uris=_uris(branch.get("destinationUris") or branch.get("destinationUri")),
            destination_format=branch.get("destinationFormat") or "CSV",
            compression=branch.get("compression") or "NONE",
            field_delimiter=branch.get("fieldDelimiter") or ",",
            print_header=_flag(branch.get("printHeader"), True),
        )

    if raw.get("load"):
        branch = raw["load"]
        return LoadConfig(
            raw=raw,
            dry_run=dry_run,
            destination_table=TableReference.from_api(branch.get("destinationTable")),
            source_uris=_uris(branch.get("sourceUris")),
            source_format=branch.get("sourceFormat") or "CSV",
            field_delimiter=branch.get("fieldDelimiter") or ",",
            skip_leading_rows=int(branch.get("skipLeadingRows") or 0),
            encoding=branch.get("encoding") or "UTF-8",
            quote=branch["quote"] if branch.get("quote") is not None else '"',
            max_bad_records=int(branch.get("maxBadRecords") or 0),
            allow_quoted_newlines=_flag(branch.get("allowQuotedNewlines"), False),
            allow_jagged_rows=_flag(branch.get("allowJaggedRows"), False),
            ignore_unknown_values=_flag(branch.get("ignoreUnknownValues"), False),
            schema=Schema.from_api(branch.get("schema")),
            **_dispositions(branch),
        )

    if raw.get("query"):
        branch = raw["query"]
        return QueryConfig(
            raw=raw,
            dry_run=dry_run,
            query=branch.get("query") or "",
            priority=branch.get("priority") or "INTERACTIVE",
            allow_large_results=_flag(branch.get("allowLargeResults"), False),
            use_query_cache=_flag(branch.get("useQueryCache"), False),
            flatten_results=_flag(branch.get("flattenResults"), True),
            destination_table=TableReference.from_api(branch.get("destinationTable")),
            default_dataset=branch.get("defaultDataset"),
            **_dispositions(branch),
        )

    return JobConfig(raw=raw, dry_run=dry_run)


@dataclass(frozen=True)
class JobSnapshot:
    """Everything known about a job as of the last fetch."""

    project_id: str
    job_id: str
    status: JobStatus
    statistics: JobStatistics
    config: JobConfig
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @property
    def state(self) -> JobState:
        return self.status.state

    @classmethod
    def from_api(cls, resource: Mapping[str, Any]) -> JobSnapshot:
        ref = resource.get("jobReference") or {}
        return cls(
            project_id=str(ref.get("projectId", "")),
            job_id=str(ref.get("jobId", "")),
            # job listings repeat the state at the top level
            status=JobStatus.from_api(resource.get("status"), resource.get("state")),
            statistics=JobStatistics.from_api(resource.get("statistics")),
            config=parse_config(resource.get("configuration")),
            raw=resource,
        )


class JobsAdapter(Protocol):
    """Interface for the job and table operations used by the core domain."""

    project: str

    def get_job(self, job_id: str) -> dict[str, Any]:
        """Return the job resource; raise NotFoundError if it does not exist."""
        ...

    def insert_job(self, configuration: Mapping[str, Any]) -> dict[str, Any]:
        """Submit a new job with the given configuration."""
        ...

    def cancel_job(self, job_id: str) -> dict[str, Any]:
        """Request cancellation of a job."""
        ...

    def list_jobs(self, **options: Any) -> dict[str, Any]:
        """Return one page of jobs."""
        ...

    def get_query_results(self, job_id: str, **options: Any) -> dict[str, Any]:
        """Return one page of query results."""
        ...

    def get_table(self, project_id: str, dataset_id: str, table_id: str) -> dict[str, Any]:
        """Return a table resource."""
        ...


class Job:
    """
    A BigQuery job and the operations that drive it to completion.

    A Job holds the last fetched snapshot. Only `reload()` and `cancel()`
    replace it, always as a whole; `rerun()` returns a different Job.
    """

    def __init__(self, adapter: JobsAdapter, snapshot: JobSnapshot):
        self.adapter = adapter
        self._snapshot = snapshot

    @classmethod
    def from_api(cls, adapter: JobsAdapter, resource: Mapping[str, Any]) -> Job:
        return cls(adapter, JobSnapshot.from_api(resource))

    def __repr__(self) -> str:
        return f"Job(job_id={self.job_id!r}, kind={self.kind!r}, state={self.state.value})"

    @property
    def snapshot(self) -> JobSnapshot:
        return self._snapshot

    @property
    def job_id(self) -> str:
        return self._snapshot.job_id

    @property
    def project_id(self) -> str:
        return self._snapshot.project_id

    @property
    def config(self) -> JobConfig:
        return self._snapshot.config

    @property
    def kind(self) -> str:
        return self._snapshot.config.kind

    @property
    def configuration(self) -> Mapping[str, Any]:
        """The configuration exactly as the server reported it."""
        return self._snapshot.config.raw

    @property
    def statistics(self) -> JobStatistics:
        return self._snapshot.statistics

    @property
    def status(self) -> JobStatus:
        return self._snapshot.status

    @property
    def state(self) -> JobState:
        return self._snapshot.state

    @property
    def pending(self) -> bool:
        return self.state is JobState.PENDING

    @property
    def running(self) -> bool:
        return self.state is JobState.RUNNING

    @property
    def done(self) -> bool:
        """True once the job stopped. Check `failed` to know whether it succeeded."""
        return self.state is JobState.DONE

    @property
    def failed(self) -> bool:
        """True if an error result is present, whatever the state says."""
        return self._snapshot.status.error_result is not None

    @property
    def error(self) -> ErrorDetail | None:
        return self._snapshot.status.error_result

    @property
    def errors(self) -> tuple[ErrorDetail, ...]:
        return self._snapshot.status.errors

    @property
    def created_at(self) -> datetime | None:
        return self._snapshot.statistics.created_at

    @property
    def started_at(self) -> datetime | None:
        return self._snapshot.statistics.started_at

    @property
    def ended_at(self) -> datetime | None:
        return self._snapshot.statistics.ended_at

    @property
    def cache_hit(self) -> bool:
        return bool(self._snapshot.statistics.query.get("cacheHit", False))

    @property
    def bytes_processed(self) -> int | None:
        value = self._snapshot.statistics.query.get("totalBytesProcessed")
        return None if value is None else int(value)

    def _load_stat(self, key: str) -> int | None:
        value = self._snapshot.statistics.load.get(key)
        return None if value is None else int(value)

    @property
    def input_files(self) -> int | None:
        return self._load_stat("inputFiles")

    @property
    def input_file_bytes(self) -> int | None:
        return self._load_stat("inputFileBytes")

    @property
    def output_rows(self) -> int | None:
        return self._load_stat("outputRows")

    @property
    def output_bytes(self) -> int | None:
        return self._load_stat("outputBytes")

    def reload(self) -> Job:
        """
        Replace the snapshot with the current state of the job on the server.

        Raises:
            NotFoundError: If the job no longer exists.
            RemoteCallFailed: On any other API or transport failure.
        """
        previous = self.state
        snapshot = JobSnapshot.from_api(self.adapter.get_job(self.job_id))
        if (
            previous in _STATE_ORDER
            and snapshot.state in _STATE_ORDER
            and _STATE_ORDER[snapshot.state] < _STATE_ORDER[previous]
        ):
            logger.warning(
                "state_regressed",
                job_id=self.job_id,
                previous=previous.value,
                current=snapshot.state.value,
            )
        self._snapshot = snapshot
        return self

    refresh = reload

    def rerun(self) -> Job:
        """Submit the same configuration again and return the new job."""
        resource = self.adapter.insert_job(self.configuration)
        job = Job.from_api(self.adapter, resource)
        logger.info("job_rerun", job_id=self.job_id, new_job_id=job.job_id)
        return job

    def cancel(self) -> Job:
        """Ask the server to cancel the job and take the snapshot it returns."""
        resource = self.adapter.cancel_job(self.job_id)
        if resource:
            self._snapshot = JobSnapshot.from_api(resource)
        return self

    def wait_until_done(
        self,
        backoff: Backoff | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        deadline: float | None = None,
    ) -> Job:
        """Reload with a widening delay until the job is DONE. See `runs.wait_until_done`."""
        return wait_until_done(self, backoff, sleep=sleep, deadline=deadline)

    def _resolve_table(self, ref: TableReference | None) -> Table | None:
        if ref is None:
            return None
        try:
            resource = self.adapter.get_table(ref.project_id, ref.dataset_id, ref.table_id)
        except NotFoundError:
            return None
        return Table.from_api(resource)

    def destination(self) -> Table | None:
        """Fetch the destination table, or None if there is none (or it is gone)."""
        return self._resolve_table(self.config.destination_table)

    def source(self) -> Table | None:
        """Fetch the (first) source table, or None if there is none (or it is gone)."""
        sources = self.config.source_tables
        return self._resolve_table(sources[0] if sources else None)

    def query_results(
        self,
        *,
        token: str | None = None,
        max_results: int | None = None,
        start_index: int | None = None,
        timeout_ms: int | None = None,
    ) -> QueryResults:
        """
        Fetch a page of results of this query job.

        Completion is the caller's concern: call `wait_until_done()` first
        or check `job_complete` on the returned page.
        """
        if not isinstance(self.config, QueryConfig):
            raise PreconditionViolation(f"Job {self.job_id} is a {self.kind} job, not a query job.")
        return query_results(
            self.adapter,
            self.job_id,
            token=token,
            max_results=max_results,
            start_index=start_index,
            timeout_ms=timeout_ms,
        )


def get_job(adapter: JobsAdapter, job_id: str) -> Job | None:
    """
    Look up a job by id.

    Returns:
        The Job, or None when the server has no job with that id.
    """
    try:
        resource = adapter.get_job(job_id)
    except NotFoundError:
        return None
    return Job.from_api(adapter, resource)


def _fetch_jobs_page(adapter: JobsAdapter, query: PageQuery) -> Page[Job]:
    response = adapter.list_jobs(token=query.token, **query.params)
    return Page(
        items=tuple(Job.from_api(adapter, r) for r in response.get("jobs") or ()),
        token=response.get("nextPageToken"),
        query=query,
        fetch=partial(_fetch_jobs_page, adapter),
        etag=response.get("etag"),
    )


def list_jobs(
    adapter: JobsAdapter,
    *,
    all_users: bool | None = None,
    max_results: int | None = None,
    state_filter: str | JobState | None = None,
    token: str | None = None,
) -> Page[Job]:
    """
    List jobs in the project, most recent first.

    Args:
        adapter: Jobs adapter used for the request and for follow-up pages.
        all_users: Include jobs of every user (needs project owner rights).
        max_results: Page size.
        state_filter: Only jobs in this state (pending, running or done).
        token: Continuation token of a previous page.

    Returns:
        The first requested Page of Job objects.
    """
    state = None
    if state_filter is not None:
        state = JobState.parse(state_filter)
        if state is JobState.UNKNOWN:
            raise ValueError(
                f"Invalid state filter '{state_filter}' (expected pending, running or done)"
            )
    params = {
        "all_users": all_users,
        "max_results": max_results,
        "state_filter": state.value if state else None,
    }
    return _fetch_jobs_page(adapter, PageQuery(params=params, token=token))


def select_jobs(jobs: Sequence[Job] | Page[Job], selector: JobSelector) -> list[Job]:
    """Return the jobs that match the selector, keeping their order."""
    return [job for job in jobs if selector.matches(job)]


def _create_disposition(value: str | None) -> str | None:
    return _lookup_option(value, _CREATE_DISPOSITIONS, "create disposition")


def _write_disposition(value: str | None) -> str | None:
    return _lookup_option(value, _WRITE_DISPOSITIONS, "write disposition")


def _lookup_option(value: str | None, options: Mapping[str, str], label: str) -> str | None:
    """Map a short option name (or the full API value) to the API value."""
    if value is None:
        return None
    key = str(value).strip()
    if key.lower() in options:
        return options[key.lower()]
    if key.upper() in options.values():
        return key.upper()
    raise ValueError(f"Unknown {label} '{value}' (expected one of {', '.join(options)})")


def _format_for(uris: Sequence[str], value: str | None, options: Mapping[str, str]) -> str | None:
    """Resolve a file format, inferring it from the first URI's extension."""
    if value is not None:
        return _lookup_option(value, options, "format")
    if not uris:
        return None
    suffix = uris[0].rsplit(".", 1)[-1].lower() if "." in uris[0] else ""
    return options.get(suffix)


def _table_ref(
    adapter: JobsAdapter,
    value: TableReference | Table | str,
    default_dataset: str | None = None,
) -> TableReference:
    if isinstance(value, TableReference):
        return value
    if isinstance(value, Table):
        return value.reference
    return TableReference.parse(
        value, default_project=adapter.project, default_dataset=default_dataset
    )


def _compact(values: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _insert(adapter: JobsAdapter, configuration: dict[str, Any], dry_run: bool) -> Job:
    if dry_run:
        configuration["dryRun"] = True
    job = Job.from_api(adapter, adapter.insert_job(configuration))
    logger.info("job_inserted", job_id=job.job_id, kind=job.kind)
    return job


def query_job(
    adapter: JobsAdapter,
    query: str,
    *,
    priority: str = "INTERACTIVE",
    cache: bool = True,
    table: TableReference | Table | str | None = None,
    create: str | None = None,
    write: str | None = None,
    large_results: bool | None = None,
    flatten: bool | None = None,
    dataset: Dataset | str | None = None,
    dry_run: bool = False,
) -> Job:
    """
    Submit an asynchronous query job.

    Args:
        priority: INTERACTIVE (default) or BATCH.
        cache: Whether to look for the result in the query cache.
        table: Destination table for the results.
        create: Create disposition (needed or never).
        write: Write disposition (truncate, append or empty).
        large_results: Allow arbitrarily large results (needs `table`).
        flatten: Flatten nested and repeated fields in the result.
        dataset: Default dataset for unqualified table names, as a Dataset
            or a dataset id.
    """
    default_dataset = None
    if isinstance(dataset, Dataset):
        default_dataset = {"projectId": dataset.project_id, "datasetId": dataset.dataset_id}
    elif dataset:
        default_dataset = {"datasetId": dataset}

    branch = _compact(
        {
            "query": query,
            "priority": str(priority).upper(),
            "useQueryCache": cache,
            "destinationTable": _table_ref(adapter, table).to_api() if table else None,
            "createDisposition": _create_disposition(create),
            "writeDisposition": _write_disposition(write),
            "allowLargeResults": large_results,
            "flattenResults": flatten,
            "defaultDataset": default_dataset,
        }
    )
    return _insert(adapter, {"query": branch}, dry_run)


def copy_job(
    adapter: JobsAdapter,
    source: TableReference | Table | str,
    destination: TableReference | Table | str,
    *,
    create: str | None = None,
    write: str | None = None,
    dry_run: bool = False,
) -> Job:
    """
    Copy a table. A bare destination table name lands in the source's dataset.
    """
    source_ref = _table_ref(adapter, source)
    destination_ref = _table_ref(adapter, destination, default_dataset=source_ref.dataset_id)
    branch = _compact(
        {
            "sourceTable": source_ref.to_api(),
            "destinationTable": destination_ref.to_api(),
            "createDisposition": _create_disposition(create),
            "writeDisposition": _write_disposition(write),
        }
    )
    return _insert(adapter, {"copy": branch}, dry_run)


def extract_job(
    adapter: JobsAdapter,
    source: TableReference | Table | str,
    uris: str | Sequence[str],
    *,
    format: str | None = None,
    compression: str | None = None,
    delimiter: str | None = None,
    header: bool | None = None,
    dry_run: bool = False,
) -> Job:
    """Export a table to one or more Cloud Storage URIs."""
    destination_uris = list(_uris(uris))
    branch = _compact(
        {
            "sourceTable": _table_ref(adapter, source).to_api(),
            "destinationUris": destination_uris,
            "destinationFormat": _format_for(destination_uris, format, _EXTRACT_FORMATS),
            "compression": str(compression).upper() if compression else None,
            "fieldDelimiter": delimiter,
            "printHeader": header,
        }
    )
    return _insert(adapter, {"extract": branch}, dry_run)


def load_job(
    adapter: JobsAdapter,
    destination: TableReference | Table | str,
    uris: str | Sequence[str],
    *,
    format: str | None = None,
    create: str | None = None,
    write: str | None = None,
    schema: Schema | None = None,
    skip_leading: int | None = None,
    delimiter: str | None = None,
    quote: str | None = None,
    encoding: str | None = None,
    max_bad_records: int | None = None,
    quoted_newlines: bool | None = None,
    jagged_rows: bool | None = None,
    ignore_unknown: bool | None = None,
    dry_run: bool = False,
) -> Job:
    """Load Cloud Storage files into a table."""
    source_uris = list(_uris(uris))
    branch = _compact(
        {
            "destinationTable": _table_ref(adapter, destination).to_api(),
            "sourceUris": source_uris,
            "sourceFormat": _format_for(source_uris, format, _LOAD_FORMATS),
            "createDisposition": _create_disposition(create),
            "writeDisposition": _write_disposition(write),
            "schema": schema.to_api() if schema else None,
            "skipLeadingRows": skip_leading,
            "fieldDelimiter": delimiter,
            "quote": quote,
            "encoding": encoding,
            "maxBadRecords": max_bad_records,
            "allowQuotedNewlines": quoted_newlines,
            "allowJaggedRows": jagged_rows,
            "ignoreUnknownValues": ignore_unknown,
        }
    )
    return _insert(adapter, {"load": branch}, dry_run)
