from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from foliocms.core.errors import ObjectStoreError, UnknownResourceGroupError
from foliocms.domain.models.resource_group import ResourceGroup
from foliocms.domain.resource_groups import groups_by_keys
from foliocms.infrastructure.db.sqlite import get_connection, quote_identifier
from foliocms.infrastructure.storage.object_store import LocalObjectStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PurgeReport:
    purged_groups: list[str] = field(default_factory=list)
    rows_deleted: dict[str, int] = field(default_factory=dict)
    objects_removed: dict[str, int] = field(default_factory=dict)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class PurgeService:
    """Server side of the ``delete-selected-data`` function.

    Groups are purged one after another in catalog order. Within a group every
    table is emptied in a single SQLite transaction, and only once that commits
    are the group's buckets emptied. A failing group does not stop the others;
    the overall response is an error if anything failed.
    """

    def __init__(self, db_path: Path, object_store: LocalObjectStore) -> None:
        self.db_path = db_path
        self.object_store = object_store

    def handle(self, payload: Any) -> tuple[int, dict[str, str]]:
        """Answer a wire request with ``(http status, {"message"|"error": ...})``."""
        keys = payload.get("sections_to_delete") if isinstance(payload, dict) else None
        if not isinstance(keys, list) or not keys or not all(isinstance(k, str) for k in keys):
            return 400, {"error": "sections_to_delete must be a non-empty list of section keys."}
        try:
            groups = groups_by_keys(keys)
        except UnknownResourceGroupError as exc:
            return 400, {"error": str(exc)}

        report = self.purge_groups(groups)
        labels = ", ".join(group.label for group in groups)
        if not report.ok:
            return 500, {"error": f"Deletion finished with errors ({labels}): " + "; ".join(report.failures)}
        return 200, {"message": f"Successfully deleted data for: {labels}."}

    def purge(self, keys: list[str]) -> PurgeReport:
        return self.purge_groups(groups_by_keys(keys))

    def purge_groups(self, groups: list[ResourceGroup]) -> PurgeReport:
        report = PurgeReport()
        for group in groups:
            if not self._purge_tables(group, report):
                continue
            bucket_ok = True
            for bucket in group.buckets:
                try:
                    report.objects_removed[bucket] = self.object_store.empty_bucket(bucket)
                except (ObjectStoreError, OSError) as exc:
                    bucket_ok = False
                    report.failures.append(f"bucket {bucket}: {exc}")
                    logger.error("Failed to empty bucket %s for group %s: %s", bucket, group.key, exc)
            if bucket_ok:
                report.purged_groups.append(group.key)
        logger.info(
            "Purge finished: groups=%s rows=%s objects=%s failures=%d",
            report.purged_groups,
            report.rows_deleted,
            report.objects_removed,
            len(report.failures),
        )
        return report

    def _purge_tables(self, group: ResourceGroup, report: PurgeReport) -> bool:
        counts: dict[str, int] = {}
        conn = get_connection(self.db_path)
        try:
            for table in group.tables:
                cursor = conn.execute(f"DELETE FROM {quote_identifier(table)}")
                counts[table] = max(cursor.rowcount, 0)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            report.failures.append(f"group {group.key}: {exc}")
            logger.error("Failed to purge tables for group %s: %s", group.key, exc)
            return False
        finally:
            conn.close()
        report.rows_deleted.update(counts)
        return True
