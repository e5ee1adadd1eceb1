"""Table schema models as reported by BigQuery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Field:
    """
    A single column definition.

    Attributes:
        name: Column name.
        type: Upper-cased wire type (STRING, INTEGER, RECORD, ...).
        mode: NULLABLE, REQUIRED or REPEATED.
        fields: Nested fields for RECORD columns.
        description: Optional free-form description.
    """

    name: str
    type: str = "STRING"
    mode: str = "NULLABLE"
    fields: tuple[Field, ...] = ()
    description: str | None = None

    @property
    def repeated(self) -> bool:
        return self.mode == "REPEATED"

    @property
    def record(self) -> bool:
        return self.type in ("RECORD", "STRUCT")

    def to_api(self) -> dict[str, Any]:
        resource: dict[str, Any] = {"name": self.name, "type": self.type, "mode": self.mode}
        if self.description:
            resource["description"] = self.description
        if self.fields:
            resource["fields"] = [f.to_api() for f in self.fields]
        return resource

    @classmethod
    def from_api(cls, resource: Mapping[str, Any]) -> Field:
        return cls(
            name=str(resource.get("name", "")),
            type=str(resource.get("type") or "STRING").upper(),
            mode=str(resource.get("mode") or "NULLABLE").upper(),
            fields=tuple(cls.from_api(f) for f in resource.get("fields") or ()),
            description=resource.get("description"),
        )


@dataclass(frozen=True)
class Schema:
    """Ordered field definitions of a table or a query result."""

    fields: tuple[Field, ...] = ()

    @property
    def headers(self) -> list[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> Field | None:
        """Return the top-level field called `name`, if any."""
        return next((f for f in self.fields if f.name == name), None)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def to_api(self) -> dict[str, Any]:
        return {"fields": [f.to_api() for f in self.fields]}

    @classmethod
    def from_api(cls, resource: Mapping[str, Any] | None) -> Schema:
        if not resource:
            return cls()
        return cls(fields=tuple(Field.from_api(f) for f in resource.get("fields") or ()))
