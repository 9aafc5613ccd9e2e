from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ContentTable:
    name: str
    label: str
    columns: tuple[str, ...]
    asset_column: str | None = None
    bucket: str | None = None
    object_prefix: str = ""
    json_columns: tuple[str, ...] = ()
    bool_columns: tuple[str, ...] = ()
    timestamp_column: str | None = "created_at"
    singleton_id: str | None = None
    order_by: str = "created_at DESC"
    public: bool = True
    keyed: bool = False

    @property
    def has_asset(self) -> bool:
        return self.asset_column is not None

    @property
    def all_columns(self) -> tuple[str, ...]:
        cols = ("id", *self.columns)
        if self.timestamp_column and self.timestamp_column not in cols:
            cols = (*cols, self.timestamp_column)
        return cols


@dataclass(slots=True)
class ContentRecord:
    table: str
    id: str
    fields: dict[str, Any] = field(default_factory=dict)

    def asset_url(self, content_table: ContentTable) -> str | None:
        if content_table.asset_column is None:
            return None
        value = self.fields.get(content_table.asset_column)
        return value or None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.fields}
