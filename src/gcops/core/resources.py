"""Core domain models for BigQuery and Cloud Storage resources.

These models represent remote resources in a simple, immutable form.
They are intentionally free of HTTP types and UI/CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from gcops.core.schema import Schema


def ms_to_datetime(value: Any) -> datetime | None:
    """Convert a milliseconds-since-epoch wire value (number or string) to UTC."""
    if value is None or value == "":
        return None
    return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)


def rfc3339_to_datetime(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp such as `2024-05-01T10:00:00.123Z`."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _int_or_none(value: Any) -> int | None:
    return None if value is None else int(value)


@dataclass(frozen=True)
class JobReference:
    """Address of a job: the project that owns it and its server-assigned id."""

    project_id: str
    job_id: str

    @classmethod
    def from_api(cls, resource: Mapping[str, Any] | None) -> JobReference | None:
        if not resource or not resource.get("jobId"):
            return None
        return cls(
            project_id=str(resource.get("projectId", "")),
            job_id=str(resource["jobId"]),
        )


@dataclass(frozen=True)
class TableReference:
    """Fully qualified table address: project, dataset, table."""

    project_id: str
    dataset_id: str
    table_id: str

    @property
    def full_name(self) -> str:
        return f"{self.project_id}:{self.dataset_id}.{self.table_id}"

    def to_api(self) -> dict[str, str]:
        return {
            "projectId": self.project_id,
            "datasetId": self.dataset_id,
            "tableId": self.table_id,
        }

    @classmethod
    def from_api(cls, resource: Mapping[str, Any] | None) -> TableReference | None:
        if not resource:
            return None
        return cls(
            project_id=str(resource.get("projectId", "")),
            dataset_id=str(resource.get("datasetId", "")),
            table_id=str(resource.get("tableId", "")),
        )

    @classmethod
    def parse(
        cls,
        value: str,
        *,
        default_project: str,
        default_dataset: str | None = None,
    ) -> TableReference:
        """
        Parse `project:dataset.table`, `dataset.table` or `table`.

        A bare table name needs `default_dataset`.
        """
        text = value.strip()
        project = default_project
        if ":" in text:
            project, text = text.split(":", 1)
        if "." in text:
            dataset, table = text.split(".", 1)
        else:
            dataset, table = default_dataset, text
        if not project or not dataset or not table:
            raise ValueError(
                f"Invalid table reference '{value}'. "
                "Use project:dataset.table, dataset.table or a table name."
            )
        return cls(project_id=project, dataset_id=dataset, table_id=table)


@dataclass(frozen=True)
class Dataset:
    """Lightweight representation of a BigQuery dataset."""

    project_id: str
    dataset_id: str
    friendly_name: str | None = None
    location: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.project_id}:{self.dataset_id}"

    @classmethod
    def from_api(cls, resource: Mapping[str, Any]) -> Dataset:
        ref = resource.get("datasetReference") or {}
        return cls(
            project_id=str(ref.get("projectId", "")),
            dataset_id=str(ref.get("datasetId", "")),
            friendly_name=resource.get("friendlyName"),
            location=resource.get("location"),
        )


@dataclass(frozen=True)
class Table:
    """Lightweight representation of a BigQuery table or view."""

    reference: TableReference
    table_type: str | None = None
    friendly_name: str | None = None
    schema: Schema = Schema()
    num_rows: int | None = None
    num_bytes: int | None = None
    created_at: datetime | None = None

    @property
    def project_id(self) -> str:
        return self.reference.project_id

    @property
    def dataset_id(self) -> str:
        return self.reference.dataset_id

    @property
    def table_id(self) -> str:
        return self.reference.table_id

    @property
    def full_name(self) -> str:
        return self.reference.full_name

    @classmethod
    def from_api(cls, resource: Mapping[str, Any]) -> Table:
        return cls(
            reference=TableReference.from_api(resource.get("tableReference"))
            or TableReference("", "", ""),
            table_type=resource.get("type"),
            friendly_name=resource.get("friendlyName"),
            schema=Schema.from_api(resource.get("schema")),
            num_rows=_int_or_none(resource.get("numRows")),
            num_bytes=_int_or_none(resource.get("numBytes")),
            created_at=ms_to_datetime(resource.get("creationTime")),
        )


@dataclass(frozen=True)
class Bucket:
    """Lightweight representation of a Cloud Storage bucket."""

    name: str
    location: str | None = None
    storage_class: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, resource: Mapping[str, Any]) -> Bucket:
        return cls(
            name=str(resource.get("name", "")),
            location=resource.get("location"),
            storage_class=resource.get("storageClass"),
            created_at=rfc3339_to_datetime(resource.get("timeCreated")),
        )
