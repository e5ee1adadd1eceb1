from __future__ import annotations

from typing import Any

from gcops.core.adapters.http import RestGateway


class StorageAdapter(RestGateway):
    """Adapter around the Cloud Storage JSON API (buckets)."""

    service_name = "Cloud Storage"

    def list_buckets(
        self,
        *,
        prefix: str | None = None,
        token: str | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """Return one page of buckets in the project (`items`, `nextPageToken`)."""
        return self._get(
            "b",
            project=self.project,
            prefix=prefix,
            pageToken=token,
            maxResults=max_results,
        )

    def get_bucket(self, name: str) -> dict[str, Any]:
        """Return the bucket resource named `name`."""
        return self._get(f"b/{name}")
