from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from foliocms.domain.models.content import ContentRecord, ContentTable
from foliocms.infrastructure.db.sqlite import get_connection, quote_identifier


class ContentRepo:
    """Row access for any table described by a ContentTable."""

    def __init__(self, db_path: Path, table: ContentTable) -> None:
        self.db_path = db_path
        self.table = table
        self._table_sql = quote_identifier(table.name)

    def insert(self, record: ContentRecord) -> None:
        values = self._to_row(record)
        columns = list(values.keys())
        placeholders = ", ".join("?" for _ in columns)
        column_sql = ", ".join(quote_identifier(c) for c in columns)
        with get_connection(self.db_path) as conn:
            conn.execute(
                f"INSERT INTO {self._table_sql} ({column_sql}) VALUES ({placeholders})",
                tuple(values[c] for c in columns),
            )
            conn.commit()

    def update(self, record: ContentRecord) -> bool:
        values = self._to_row(record)
        values.pop("id")
        if not values:
            return self.get(record.id) is not None
        assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in values)
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                f"UPDATE {self._table_sql} SET {assignments} WHERE id = ?",
                (*values.values(), record.id),
            )
            conn.commit()
        return cursor.rowcount > 0

    def upsert(self, record: ContentRecord) -> str:
        values = self._to_row(record)
        columns = list(values.keys())
        column_sql = ", ".join(quote_identifier(c) for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{quote_identifier(c)} = excluded.{quote_identifier(c)}" for c in columns if c != "id")
        conflict_sql = f"DO UPDATE SET {updates}" if updates else "DO NOTHING"
        with get_connection(self.db_path) as conn:
            existed = conn.execute(
                f"SELECT 1 FROM {self._table_sql} WHERE id = ?", (record.id,)
            ).fetchone()
            conn.execute(
                f"""
                INSERT INTO {self._table_sql} ({column_sql}) VALUES ({placeholders})
                ON CONFLICT(id) {conflict_sql}
                """,
                tuple(values[c] for c in columns),
            )
            conn.commit()
        return "updated" if existed else "inserted"

    def get(self, record_id: str) -> ContentRecord | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                f"SELECT * FROM {self._table_sql} WHERE id = ?",
                (record_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def list(self, limit: int = 500) -> list[ContentRecord]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT * FROM {self._table_sql} ORDER BY {self.table.order_by} LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    def delete(self, record_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(f"DELETE FROM {self._table_sql} WHERE id = ?", (record_id,))
            conn.commit()
        return cursor.rowcount > 0

    def count(self) -> int:
        with get_connection(self.db_path) as conn:
            row = conn.execute(f"SELECT COUNT(*) AS c FROM {self._table_sql}").fetchone()
        return int(row["c"])

    def list_asset_urls(self) -> list[tuple[str, str]]:
        """Return ``(record id, url)`` for every non-empty asset URL in the table."""
        column = self.table.asset_column
        if column is None:
            return []
        column_sql = quote_identifier(column)
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT id, {column_sql} AS url FROM {self._table_sql} "
                f"WHERE {column_sql} IS NOT NULL AND {column_sql} != ''"
            ).fetchall()
        return [(row["id"], row["url"]) for row in rows]

    def _to_row(self, record: ContentRecord) -> dict[str, Any]:
        row: dict[str, Any] = {"id": record.id}
        for column in self.table.all_columns:
            if column == "id" or column not in record.fields:
                continue
            value = record.fields[column]
            if column in self.table.json_columns and value is not None:
                value = json.dumps(value, ensure_ascii=False)
            elif column in self.table.bool_columns and value is not None:
                value = 1 if value else 0
            row[column] = value
        return row

    def _to_model(self, row) -> ContentRecord:
        fields: dict[str, Any] = {}
        for key in row.keys():
            if key == "id":
                continue
            value = row[key]
            if key in self.table.json_columns and value is not None:
                try:
                    value = json.loads(value)
                except json.JSONDecodeError:
                    pass
            elif key in self.table.bool_columns and value is not None:
                value = bool(value)
            fields[key] = value
        return ContentRecord(table=self.table.name, id=row["id"], fields=fields)
