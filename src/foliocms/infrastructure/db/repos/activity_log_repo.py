from __future__ import annotations

import json
from pathlib import Path

from foliocms.core.ids import new_uuid
from foliocms.domain.models.activity import ActivityLogEntry
from foliocms.infrastructure.db.sqlite import get_connection


class ActivityLogRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, entry: ActivityLogEntry) -> str:
        entry_id = entry.id or new_uuid()
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO admin_activity_log (
                    id,
                    timestamp,
                    user_identifier,
                    action_type,
                    description,
                    details
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry_id,
                    entry.occurred_at,
                    entry.user_identifier,
                    entry.action_type,
                    entry.description,
                    json.dumps(entry.details, ensure_ascii=False) if entry.details is not None else None,
                ),
            )
            conn.commit()
        return entry_id

    def list_recent(self, limit: int = 50, action_type: str | None = None) -> list[ActivityLogEntry]:
        with get_connection(self.db_path) as conn:
            if action_type:
                rows = conn.execute(
                    """
                    SELECT * FROM admin_activity_log
                    WHERE action_type = ?
                    ORDER BY timestamp DESC, rowid DESC
                    LIMIT ?
                    """,
                    (action_type, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM admin_activity_log
                    ORDER BY timestamp DESC, rowid DESC
                    LIMIT ?
                    """,
                    (limit,),
                ).fetchall()
        return [self._to_model(row) for row in rows]

    @staticmethod
    def _to_model(row) -> ActivityLogEntry:
        details = None
        if row["details"]:
            try:
                details = json.loads(row["details"])
            except json.JSONDecodeError:
                details = {"raw": row["details"]}
        return ActivityLogEntry(
            id=row["id"],
            occurred_at=row["timestamp"],
            user_identifier=row["user_identifier"] or "",
            action_type=row["action_type"],
            description=row["description"],
            details=details,
        )
