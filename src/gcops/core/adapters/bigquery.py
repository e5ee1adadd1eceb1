from __future__ import annotations

from typing import Any, Mapping

from gcops.core.adapters.http import RestGateway


class BigQueryAdapter(RestGateway):
    """Adapter around the BigQuery v2 REST API (jobs, queries, datasets, tables)."""

    service_name = "BigQuery"

    def get_job(self, job_id: str) -> dict[str, Any]:
        """Return the job resource for `job_id`."""
        return self._get(f"projects/{self.project}/jobs/{job_id}")

    def insert_job(self, configuration: Mapping[str, Any]) -> dict[str, Any]:
        """Submit a new job; the server assigns its job id."""
        return self._post(
            f"projects/{self.project}/jobs",
            {"configuration": dict(configuration)},
        )

    def cancel_job(self, job_id: str) -> dict[str, Any]:
        """Request cancellation and return the job resource as reported."""
        response = self._post(f"projects/{self.project}/jobs/{job_id}/cancel")
        return response.get("job") or {}

    def list_jobs(
        self,
        *,
        all_users: bool | None = None,
        token: str | None = None,
        max_results: int | None = None,
        state_filter: str | None = None,
    ) -> dict[str, Any]:
        """Return one page of jobs (`jobs`, `nextPageToken`)."""
        return self._get(
            f"projects/{self.project}/jobs",
            allUsers=all_users,
            pageToken=token,
            maxResults=max_results,
            stateFilter=state_filter.lower() if state_filter else None,
            projection="full",
        )

    def get_query_results(
        self,
        job_id: str,
        *,
        token: str | None = None,
        max_results: int | None = None,
        start_index: int | None = None,
        timeout_ms: int | None = None,
    ) -> dict[str, Any]:
        """Return one page of results for a query job."""
        return self._get(
            f"projects/{self.project}/queries/{job_id}",
            pageToken=token,
            maxResults=max_results,
            startIndex=start_index,
            timeoutMs=timeout_ms,
        )

    def query(
        self,
        query: str,
        *,
        max_results: int | None = None,
        timeout_ms: int | None = None,
        dry_run: bool | None = None,
        use_query_cache: bool | None = None,
        default_dataset: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a query synchronously and return the first page of results."""
        body: dict[str, Any] = {"query": query}
        if max_results is not None:
            body["maxResults"] = max_results
        if timeout_ms is not None:
            body["timeoutMs"] = timeout_ms
        if dry_run is not None:
            body["dryRun"] = dry_run
        if use_query_cache is not None:
            body["useQueryCache"] = use_query_cache
        if default_dataset:
            body["defaultDataset"] = dict(default_dataset)
        return self._post(f"projects/{self.project}/queries", body)

    def get_dataset(self, dataset_id: str) -> dict[str, Any]:
        """Return the dataset resource for `dataset_id`."""
        return self._get(f"projects/{self.project}/datasets/{dataset_id}")

    def list_datasets(
        self,
        *,
        all_datasets: bool | None = None,
        token: str | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """Return one page of datasets (`datasets`, `nextPageToken`)."""
        return self._get(
            f"projects/{self.project}/datasets",
            all=all_datasets,
            pageToken=token,
            maxResults=max_results,
        )

    def get_table(self, project_id: str, dataset_id: str, table_id: str) -> dict[str, Any]:
        """Return a table resource, possibly from another project."""
        return self._get(
            f"projects/{project_id}/datasets/{dataset_id}/tables/{table_id}"
        )

    def list_tables(
        self,
        dataset_id: str,
        *,
        token: str | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """Return one page of tables in a dataset (`tables`, `nextPageToken`)."""
        return self._get(
            f"projects/{self.project}/datasets/{dataset_id}/tables",
            pageToken=token,
            maxResults=max_results,
        )
