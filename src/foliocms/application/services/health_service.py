from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from foliocms.core.asset_urls import resolve_path
from foliocms.domain.content_catalog import CONTENT_TABLES
from foliocms.domain.resource_groups import all_groups, group_for_table
from foliocms.infrastructure.db.repos.content_repo import ContentRepo
from foliocms.infrastructure.db.sqlite import get_connection, list_tables
from foliocms.infrastructure.storage.object_store import LocalObjectStore


@dataclass(slots=True)
class DoctorIssue:
    check: str
    level: str
    message: str


@dataclass(slots=True)
class DoctorReport:
    ok: bool
    checks_run: int
    issues: list[DoctorIssue]
    db_runtime: dict[str, object]
    orphaned_objects: dict[str, list[str]] = field(default_factory=dict)


class HealthService:
    def __init__(self, db_path: Path, object_store: LocalObjectStore) -> None:
        self.db_path = db_path
        self.object_store = object_store

    def run_doctor(self) -> DoctorReport:
        issues: list[DoctorIssue] = []
        checks_run = 0

        # Check 1: database runtime pragmas.
        checks_run += 1
        with get_connection(self.db_path) as conn:
            journal_mode = str(conn.execute("PRAGMA journal_mode;").fetchone()[0]).lower()
            busy_timeout_ms = int(conn.execute("PRAGMA busy_timeout;").fetchone()[0])
            foreign_keys = int(conn.execute("PRAGMA foreign_keys;").fetchone()[0])
            schema_tables = list_tables(conn)

        db_runtime: dict[str, object] = {
            "journal_mode": journal_mode,
            "busy_timeout_ms": busy_timeout_ms,
            "foreign_keys": bool(foreign_keys),
            "tables": len(schema_tables),
        }
        if journal_mode != "wal":
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="error",
                    message=f"SQLite journal_mode is '{journal_mode}', expected 'wal'.",
                )
            )
        if busy_timeout_ms < 1_000:
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="warning",
                    message=f"SQLite busy_timeout is low ({busy_timeout_ms}ms); consider >= 1000ms.",
                )
            )

        # Check 2: every table belongs to exactly one resource group.
        checks_run += 1
        owners: dict[str, list[str]] = {}
        for group in all_groups():
            for table in group.tables:
                owners.setdefault(table, []).append(group.key)
        for table in schema_tables:
            keys = owners.get(table, [])
            if not keys:
                issues.append(
                    DoctorIssue(
                        check="group_coverage",
                        level="error",
                        message=f"Table {table} is not owned by any resource group; a purge would never touch it.",
                    )
                )
            elif len(keys) > 1:
                issues.append(
                    DoctorIssue(
                        check="group_coverage",
                        level="error",
                        message=f"Table {table} is owned by several resource groups: {', '.join(keys)}",
                    )
                )
        for table, keys in owners.items():
            if table not in schema_tables:
                issues.append(
                    DoctorIssue(
                        check="group_coverage",
                        level="error",
                        message=f"Resource group {keys[0]} lists missing table {table}.",
                    )
                )

        # Check 3: every asset bucket is purged with the group owning its table.
        checks_run += 1
        for content_table in CONTENT_TABLES.values():
            if not content_table.bucket:
                continue
            group = group_for_table(content_table.name)
            if group is None or content_table.bucket not in group.buckets:
                issues.append(
                    DoctorIssue(
                        check="group_coverage",
                        level="error",
                        message=(
                            f"Bucket {content_table.bucket} used by {content_table.name} is not listed "
                            f"by its resource group."
                        ),
                    )
                )

        # Check 4: managed asset URLs point at stored objects.
        checks_run += 1
        referenced: dict[str, set[str]] = {}
        for content_table in CONTENT_TABLES.values():
            if not content_table.bucket or content_table.name not in schema_tables:
                continue
            bucket_refs = referenced.setdefault(content_table.bucket, set())
            for record_id, url in ContentRepo(self.db_path, content_table).list_asset_urls():
                path = resolve_path(url, content_table.bucket)
                if path is None:
                    continue
                bucket_refs.add(path)
                if not self.object_store.exists(content_table.bucket, path):
                    issues.append(
                        DoctorIssue(
                            check="dangling_reference",
                            level="error",
                            message=(
                                f"{content_table.name} record {record_id} points at missing object "
                                f"{content_table.bucket}/{path}"
                            ),
                        )
                    )

        # Check 5: stored objects that no record references.
        checks_run += 1
        orphaned: dict[str, list[str]] = {}
        for bucket in sorted(referenced):
            stray = [path for path in self.object_store.list_objects(bucket) if path not in referenced[bucket]]
            if stray:
                orphaned[bucket] = stray
                issues.append(
                    DoctorIssue(
                        check="orphaned_objects",
                        level="warning",
                        message=f"{len(stray)} unreferenced object(s) in bucket {bucket}",
                    )
                )

        return DoctorReport(
            ok=not any(i.level == "error" for i in issues),
            checks_run=checks_run,
            issues=issues,
            db_runtime=db_runtime,
            orphaned_objects=orphaned,
        )

    def prune_orphans(self) -> dict[str, list[str]]:
        """Delete every object reported as orphaned and return what was removed."""
        report = self.run_doctor()
        removed: dict[str, list[str]] = {}
        for bucket, paths in report.orphaned_objects.items():
            removed[bucket] = self.object_store.remove(bucket, paths)
        return removed
