"""Query results: typed rows on top of paginated collections.

BigQuery sends every cell as a string (or null), whatever the column type,
so that large integers and exact decimals survive JSON. Rows are therefore
coerced here, at the boundary, using the schema that comes with each page.
A value that cannot be coerced aborts the page with MalformedResponse;
nothing is silently replaced by None.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from datetime import time as time_of_day
from decimal import Decimal
from functools import partial
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence

import structlog

from gcops.core.errors import MalformedResponse
from gcops.core.paging import Page, PageQuery
from gcops.core.resources import JobReference
from gcops.core.runs import Backoff
from gcops.core.schema import Field, Schema

logger = structlog.get_logger(__name__)


class QueryAdapter(Protocol):
    """Interface for the query endpoints used by this module."""

    project: str

    def get_query_results(self, job_id: str, **options: Any) -> dict[str, Any]:
        """Return one page of results for a query job."""
        ...

    def query(self, query: str, **options: Any) -> dict[str, Any]:
        """Run a query synchronously and return its first page."""
        ...


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "STRING": lambda v: v,
    "INTEGER": int,
    "INT64": int,
    "FLOAT": float,
    "FLOAT64": float,
    "NUMERIC": Decimal,
    "BIGNUMERIC": Decimal,
    "BOOLEAN": _parse_bool,
    "BOOL": _parse_bool,
    "TIMESTAMP": _parse_timestamp,
    "DATE": date.fromisoformat,
    "DATETIME": datetime.fromisoformat,
    "TIME": time_of_day.fromisoformat,
    "BYTES": lambda v: base64.b64decode(v, validate=True),
}


def _unwrap(cell: Any) -> Any:
    """Return the value of a `{"v": ...}` cell; other values pass through."""
    if isinstance(cell, Mapping) and "v" in cell:
        return cell["v"]
    return cell


def _coerce_scalar(field_def: Field, value: Any) -> Any:
    if value is None:
        return None
    if field_def.record:
        return coerce_row(field_def.fields, value)
    converter = _CONVERTERS.get(field_def.type)
    if converter is None:
        return value
    try:
        return converter(value)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise MalformedResponse(
            f"Cannot read {value!r} as {field_def.type} for field '{field_def.name}'"
        ) from exc


def coerce_value(field_def: Field, raw: Any) -> Any:
    """
    Coerce one wire value to the Python type of its field.

    Null stays None for every type. REPEATED fields produce a list of
    coerced elements, RECORD fields a dict keyed by nested field name.
    Unknown types are returned as sent.
    """
    if raw is None:
        return None
    if field_def.repeated:
        if not isinstance(raw, list):
            raise MalformedResponse(
                f"Expected a list for repeated field '{field_def.name}', got {type(raw).__name__}"
            )
        return [_coerce_scalar(field_def, _unwrap(item)) for item in raw]
    return _coerce_scalar(field_def, raw)


def coerce_row(fields: Sequence[Field], raw_row: Any) -> dict[str, Any]:
    """Zip a `{"f": [{"v": ...}, ...]}` row against its fields positionally."""
    cells = raw_row.get("f") if isinstance(raw_row, Mapping) else None
    if not isinstance(cells, list):
        raise MalformedResponse(f"Row is not a {{'f': [...]}} object: {raw_row!r}")
    if len(cells) != len(fields):
        raise MalformedResponse(
            f"Row has {len(cells)} values but the schema has {len(fields)} fields"
        )
    return {f.name: coerce_value(f, _unwrap(cell)) for f, cell in zip(fields, cells)}


def _int_or_none(value: Any) -> int | None:
    return None if value is None else int(value)


@dataclass(frozen=True)
class QueryResults(Page[dict]):
    """
    One page of query output with typed rows.

    Items are dicts mapping field name to typed value. Besides the Page
    attributes it carries the result schema, a reference to the job that
    produced it and the statistics BigQuery reports with each page.
    """

    schema: Schema = Schema()
    job_reference: JobReference | None = None
    job_complete: bool = True
    cache_hit: bool = False
    total_rows: int | None = None
    total_bytes_processed: int | None = None
    raw: tuple[tuple[Any, ...], ...] = field(default=(), repr=False)
    kind: str | None = None

    @property
    def headers(self) -> list[str]:
        return self.schema.headers

    def row_at(self, index: int) -> dict[str, Any]:
        """Return the typed row at `index` on this page."""
        return self.items[index]

    def raw_records(self) -> list[dict[str, Any]]:
        """Rows of this page as uncoerced wire values keyed by field name."""
        return [dict(zip(self.headers, row)) for row in self.raw]

    @classmethod
    def from_api(
        cls,
        adapter: QueryAdapter,
        response: Mapping[str, Any],
        query: PageQuery,
    ) -> QueryResults:
        schema = Schema.from_api(response.get("schema"))
        raw_rows = response.get("rows") or ()
        rows = tuple(coerce_row(schema.fields, r) for r in raw_rows)
        job_reference = JobReference.from_api(response.get("jobReference"))
        fetch = partial(_fetch_results_page, adapter, job_reference.job_id) if job_reference else None
        total_rows = _int_or_none(response.get("totalRows"))
        return cls(
            items=rows,
            token=response.get("pageToken"),
            query=query,
            fetch=fetch,
            etag=response.get("etag"),
            total=total_rows,
            schema=schema,
            job_reference=job_reference,
            job_complete=bool(response.get("jobComplete", True)),
            cache_hit=bool(response.get("cacheHit", False)),
            total_rows=total_rows,
            total_bytes_processed=_int_or_none(response.get("totalBytesProcessed")),
            raw=tuple(tuple(_unwrap(c) for c in r.get("f") or ()) for r in raw_rows),
            kind=response.get("kind"),
        )


def _fetch_results_page(adapter: QueryAdapter, job_id: str, query: PageQuery) -> QueryResults:
    response = adapter.get_query_results(job_id, token=query.token, **query.params)
    return QueryResults.from_api(adapter, response, query)


def iter_raw_records(
    start: QueryResults, request_limit: int | None = None
) -> Iterator[dict[str, Any]]:
    """
    Walk `start` and the pages after it, yielding wire values instead of typed rows.

    `request_limit` bounds the additional page fetches the same way as
    `Page.all`.
    """
    page = start
    remaining = request_limit
    while True:
        yield from page.raw_records()
        if remaining is not None:
            remaining -= 1
            if remaining < 0:
                return
        if not page.has_next():
            return
        page = page.next_page()


def query_results(
    adapter: QueryAdapter,
    job_id: str,
    *,
    token: str | None = None,
    max_results: int | None = None,
    start_index: int | None = None,
    timeout_ms: int | None = None,
) -> QueryResults:
    """
    Fetch a page of results for a query job.

    `start_index` only applies to this first request; following pages are
    addressed by their continuation token.
    """
    query = PageQuery(params={"max_results": max_results, "timeout_ms": timeout_ms}, token=token)
    response = adapter.get_query_results(
        job_id,
        token=token,
        max_results=max_results,
        start_index=start_index,
        timeout_ms=timeout_ms,
    )
    return QueryResults.from_api(adapter, response, query)


def query(
    adapter: QueryAdapter,
    sql: str,
    *,
    max_results: int | None = None,
    timeout_ms: int = 10000,
    dry_run: bool | None = None,
    cache: bool = True,
    dataset: str | None = None,
    project: str | None = None,
    backoff: Backoff | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> QueryResults:
    """
    Run a query and block until its first page of results is available.

    The server answers within `timeout_ms`; when the query is still running
    at that point, the results endpoint is polled with the same widening
    backoff used for jobs until BigQuery reports the job complete.

    Args:
        max_results: Page size of the returned results.
        timeout_ms: How long each request may wait for completion server-side.
        dry_run: Only validate the query and estimate the bytes processed.
        cache: Whether to look for the result in the query cache.
        dataset: Default dataset for unqualified table names.
        project: Project of the default dataset (defaults to the adapter's).
    """
    default_dataset = None
    if dataset:
        default_dataset = {"datasetId": dataset, "projectId": project or adapter.project}

    response = adapter.query(
        sql,
        max_results=max_results,
        timeout_ms=timeout_ms,
        dry_run=dry_run,
        use_query_cache=cache,
        default_dataset=default_dataset,
    )

    backoff = backoff or Backoff()
    attempt = 0
    while not response.get("jobComplete", True):
        job_reference = JobReference.from_api(response.get("jobReference"))
        if job_reference is None:
            raise MalformedResponse("Incomplete query response without a job reference")
        sleep(backoff.delay(attempt))
        attempt += 1
        response = adapter.get_query_results(
            job_reference.job_id,
            max_results=max_results,
            timeout_ms=timeout_ms,
        )
        logger.debug("query_polled", job_id=job_reference.job_id, attempt=attempt)

    return QueryResults.from_api(
        adapter,
        response,
        PageQuery(params={"max_results": max_results, "timeout_ms": timeout_ms}),
    )
