"""Lookup and listing of datasets, tables and buckets.

Lookups return None when the resource does not exist. Listings return the
first Page; follow-up pages replay the same filters with the continuation
token the server handed out.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Protocol

from gcops.core.errors import NotFoundError
from gcops.core.paging import Page, PageQuery
from gcops.core.resources import Bucket, Dataset, Table, TableReference


class CatalogAdapter(Protocol):
    """Interface for the BigQuery dataset and table endpoints."""

    project: str

    def get_dataset(self, dataset_id: str) -> dict[str, Any]: ...

    def list_datasets(self, **options: Any) -> dict[str, Any]: ...

    def get_table(self, project_id: str, dataset_id: str, table_id: str) -> dict[str, Any]: ...

    def list_tables(self, dataset_id: str, **options: Any) -> dict[str, Any]: ...


class BucketsAdapter(Protocol):
    """Interface for the Cloud Storage bucket endpoints."""

    def get_bucket(self, name: str) -> dict[str, Any]: ...

    def list_buckets(self, **options: Any) -> dict[str, Any]: ...


def _lookup(fetch: Callable[[], dict[str, Any]]) -> dict[str, Any] | None:
    try:
        return fetch()
    except NotFoundError:
        return None


def get_dataset(adapter: CatalogAdapter, dataset_id: str) -> Dataset | None:
    """Return the dataset, or None if it does not exist."""
    resource = _lookup(partial(adapter.get_dataset, dataset_id))
    return Dataset.from_api(resource) if resource is not None else None


def _fetch_datasets_page(adapter: CatalogAdapter, query: PageQuery) -> Page[Dataset]:
    response = adapter.list_datasets(token=query.token, **query.params)
    return Page(
        items=tuple(Dataset.from_api(d) for d in response.get("datasets") or ()),
        token=response.get("nextPageToken"),
        query=query,
        fetch=partial(_fetch_datasets_page, adapter),
        etag=response.get("etag"),
    )


def list_datasets(
    adapter: CatalogAdapter,
    *,
    all_datasets: bool | None = None,
    max_results: int | None = None,
    token: str | None = None,
) -> Page[Dataset]:
    """List datasets of the project; `all_datasets` includes hidden ones."""
    query = PageQuery(
        params={"all_datasets": all_datasets, "max_results": max_results}, token=token
    )
    return _fetch_datasets_page(adapter, query)


def get_table(adapter: CatalogAdapter, reference: TableReference) -> Table | None:
    """Return the table, or None if it does not exist."""
    resource = _lookup(
        partial(
            adapter.get_table,
            reference.project_id,
            reference.dataset_id,
            reference.table_id,
        )
    )
    return Table.from_api(resource) if resource is not None else None


def _fetch_tables_page(adapter: CatalogAdapter, dataset_id: str, query: PageQuery) -> Page[Table]:
    response = adapter.list_tables(dataset_id, token=query.token, **query.params)
    total = response.get("totalItems")
    return Page(
        items=tuple(Table.from_api(t) for t in response.get("tables") or ()),
        token=response.get("nextPageToken"),
        query=query,
        fetch=partial(_fetch_tables_page, adapter, dataset_id),
        etag=response.get("etag"),
        total=int(total) if total is not None else None,
    )


def list_tables(
    adapter: CatalogAdapter,
    dataset_id: str,
    *,
    max_results: int | None = None,
    token: str | None = None,
) -> Page[Table]:
    """List tables (and views) in a dataset."""
    query = PageQuery(params={"max_results": max_results}, token=token)
    return _fetch_tables_page(adapter, dataset_id, query)


def get_bucket(adapter: BucketsAdapter, name: str) -> Bucket | None:
    """Return the bucket, or None if it does not exist."""
    resource = _lookup(partial(adapter.get_bucket, name))
    return Bucket.from_api(resource) if resource is not None else None


def _fetch_buckets_page(adapter: BucketsAdapter, query: PageQuery) -> Page[Bucket]:
    response = adapter.list_buckets(token=query.token, **query.params)
    return Page(
        items=tuple(Bucket.from_api(b) for b in response.get("items") or ()),
        token=response.get("nextPageToken"),
        query=query,
        fetch=partial(_fetch_buckets_page, adapter),
    )


def list_buckets(
    adapter: BucketsAdapter,
    *,
    prefix: str | None = None,
    max_results: int | None = None,
    token: str | None = None,
) -> Page[Bucket]:
    """List buckets of the project, optionally only those starting with `prefix`."""
    query = PageQuery(params={"prefix": prefix, "max_results": max_results}, token=token)
    return _fetch_buckets_page(adapter, query)
