from gcops.core.catalog import (
    get_bucket,
    get_dataset,
    get_table,
    list_buckets,
    list_datasets,
    list_tables,
)
from gcops.core.errors import NotFoundError
from gcops.core.resources import TableReference


def _dataset(dataset_id: str) -> dict:
    return {
        "datasetReference": {"projectId": "proj", "datasetId": dataset_id},
        "location": "EU",
    }


def _table(table_id: str) -> dict:
    return {
        "tableReference": {"projectId": "proj", "datasetId": "sales", "tableId": table_id},
        "type": "VIEW" if table_id.startswith("v_") else "TABLE",
    }


class _CatalogAdapterStub:
    project = "proj"

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []

    def get_dataset(self, dataset_id: str) -> dict:
        if dataset_id != "sales":
            raise NotFoundError("Not found: Dataset", status_code=404)
        return _dataset("sales")

    def list_datasets(self, **options) -> dict:
        self.calls.append(("datasets", options))
        if options["token"] is None:
            return {"datasets": [_dataset("a"), _dataset("b")], "nextPageToken": "n1"}
        return {"datasets": [_dataset("c")]}

    def get_table(self, project_id: str, dataset_id: str, table_id: str) -> dict:
        if table_id != "orders":
            raise NotFoundError("Not found: Table", status_code=404)
        return {**_table("orders"), "numRows": "42", "creationTime": "1700000000000"}

    def list_tables(self, dataset_id: str, **options) -> dict:
        self.calls.append((dataset_id, options))
        return {"tables": [_table("orders"), _table("v_daily")], "totalItems": 2}


class _BucketsAdapterStub:
    def __init__(self):
        self.calls: list[dict] = []

    def get_bucket(self, name: str) -> dict:
        if name != "logs":
            raise NotFoundError("Not Found", status_code=404)
        return {"name": "logs", "location": "EU", "timeCreated": "2024-05-01T10:00:00.123Z"}

    def list_buckets(self, **options) -> dict:
        self.calls.append(options)
        return {"items": [{"name": "logs-a"}, {"name": "logs-b"}]}


def test_get_dataset_returns_none_on_not_found():
    adapter = _CatalogAdapterStub()

    assert get_dataset(adapter, "sales").full_name == "proj:sales"
    assert get_dataset(adapter, "missing") is None


def test_list_datasets_replays_filters_on_next_page():
    adapter = _CatalogAdapterStub()

    first = list_datasets(adapter, all_datasets=True, max_results=2)
    everything = list(first.all())

    assert [d.dataset_id for d in everything] == ["a", "b", "c"]
    assert adapter.calls[1] == (
        "datasets",
        {"token": "n1", "all_datasets": True, "max_results": 2},
    )


def test_get_table_resolves_reference():
    adapter = _CatalogAdapterStub()

    table = get_table(adapter, TableReference("proj", "sales", "orders"))

    assert table.num_rows == 42
    assert table.created_at.year == 2023
    assert get_table(adapter, TableReference("proj", "sales", "nope")) is None


def test_list_tables_reports_total_but_stops_on_missing_token():
    adapter = _CatalogAdapterStub()

    page = list_tables(adapter, "sales", max_results=50)

    assert page.total == 2
    assert not page.has_next()
    assert [t.table_type for t in page] == ["TABLE", "VIEW"]
    assert adapter.calls == [("sales", {"token": None, "max_results": 50})]


def test_buckets():
    adapter = _BucketsAdapterStub()

    bucket = get_bucket(adapter, "logs")
    assert bucket.location == "EU"
    assert bucket.created_at.microsecond == 123000
    assert get_bucket(adapter, "other") is None

    page = list_buckets(adapter, prefix="logs-")
    assert [b.name for b in page] == ["logs-a", "logs-b"]
    assert adapter.calls == [{"token": None, "prefix": "logs-", "max_results": None}]
