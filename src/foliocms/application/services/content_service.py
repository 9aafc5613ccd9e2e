from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from foliocms.application.services.activity_log_service import ActivityLogWriter
from foliocms.application.services.asset_sync_service import AssetSynchronizer
from foliocms.application.services.content_cache import ContentCache
from foliocms.core.errors import RecordNotFoundError, RecordWriteError, ValidationError
from foliocms.core.ids import new_uuid
from foliocms.core.time import now_utc_iso
from foliocms.domain.content_catalog import get_content_table
from foliocms.domain.models import activity
from foliocms.domain.models.asset import AssetChange, SyncResult
from foliocms.domain.models.content import ContentRecord, ContentTable
from foliocms.infrastructure.db.repos.content_repo import ContentRepo

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SaveResult:
    record: ContentRecord
    action: str
    asset_url: str | None
    old_asset_deleted: bool


@dataclass(slots=True)
class DeleteResult:
    record: ContentRecord
    asset_deleted: bool


class ContentService:
    def __init__(
        self,
        db_path: Path,
        synchronizer: AssetSynchronizer,
        activity_log: ActivityLogWriter,
        cache: ContentCache | None = None,
    ) -> None:
        self.db_path = db_path
        self.synchronizer = synchronizer
        self.activity_log = activity_log
        self.cache = cache or ContentCache()

    def repo_for(self, table: ContentTable) -> ContentRepo:
        return ContentRepo(self.db_path, table)

    def get(self, table_name: str, record_id: str) -> ContentRecord:
        table = get_content_table(table_name)
        record = self.repo_for(table).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"{table.label} record not found: {record_id}")
        return record

    def list(self, table_name: str, limit: int = 500) -> list[ContentRecord]:
        table = get_content_table(table_name)
        return self.repo_for(table).list(limit=limit)

    def public_view(self, table_name: str) -> list[dict[str, Any]]:
        table = get_content_table(table_name)
        if not table.public:
            raise ValidationError(f"Content table is not public: {table_name}")
        return self.cache.get_or_load(
            table.name,
            lambda: [record.to_dict() for record in self.repo_for(table).list()],
        )

    def save(
        self,
        table_name: str,
        fields: dict[str, Any],
        *,
        actor: str,
        record_id: str | None = None,
        asset_change: AssetChange | None = None,
    ) -> SaveResult:
        table = get_content_table(table_name)
        fields = dict(fields)
        asset_change = self._resolve_asset_change(table, fields, asset_change)
        self._validate_fields(table, fields)

        repo = self.repo_for(table)
        target_id, existing = self._load_target(table, repo, record_id)

        result: SyncResult | None = None
        if table.has_asset:
            old_url = existing.asset_url(table) if existing else None
            # UploadError propagates from here; nothing has been written yet.
            result = self.synchronizer.sync(
                old_url,
                asset_change or AssetChange(),
                table.bucket,
                object_prefix=table.object_prefix,
            )
            fields[table.asset_column] = result.final_url

        now = now_utc_iso()
        if table.timestamp_column == "updated_at":
            fields["updated_at"] = now
        elif table.timestamp_column and existing is None:
            fields[table.timestamp_column] = now

        record = ContentRecord(table=table.name, id=target_id, fields=fields)
        try:
            action = self._write(table, repo, record, existing)
        except (sqlite3.Error, RecordNotFoundError) as exc:
            if result is not None:
                self.synchronizer.discard_upload(result)
            if isinstance(exc, RecordNotFoundError):
                raise
            raise RecordWriteError(f"Failed to save {table.label} record {target_id}: {exc}") from exc

        old_asset_deleted = self.synchronizer.finalize(result) if result is not None else False
        self.cache.invalidate([table.name])

        saved = repo.get(target_id) or record
        self._log_save(table, saved, action, actor, result)
        return SaveResult(
            record=saved,
            action=action,
            asset_url=result.final_url if result is not None else None,
            old_asset_deleted=old_asset_deleted,
        )

    def delete(self, table_name: str, record_id: str, *, actor: str) -> DeleteResult:
        table = get_content_table(table_name)
        repo = self.repo_for(table)
        record = repo.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"{table.label} record not found: {record_id}")

        try:
            deleted = repo.delete(record_id)
        except sqlite3.Error as exc:
            raise RecordWriteError(f"Failed to delete {table.label} record {record_id}: {exc}") from exc
        if not deleted:
            raise RecordNotFoundError(f"{table.label} record not found: {record_id}")

        asset_deleted = False
        if table.has_asset:
            asset_deleted = self.synchronizer.remove_url(record.asset_url(table), table.bucket)
        self.cache.invalidate([table.name])

        self.activity_log.record(
            activity.CONTENT_DELETED,
            f"Admin deleted {table.label} record {record_id}.",
            actor,
            details={"table": table.name, "recordId": record_id, "assetDeleted": asset_deleted},
        )
        return DeleteResult(record=record, asset_deleted=asset_deleted)

    def _resolve_asset_change(
        self,
        table: ContentTable,
        fields: dict[str, Any],
        asset_change: AssetChange | None,
    ) -> AssetChange | None:
        if not table.has_asset:
            if asset_change is not None and (asset_change.new_file or asset_change.cleared_url_field):
                raise ValidationError(f"{table.label} records have no managed asset field")
            return None
        raw_url = fields.pop(table.asset_column, None)
        if asset_change is not None:
            return asset_change
        return AssetChange(manual_url=raw_url or None)

    @staticmethod
    def _validate_fields(table: ContentTable, fields: dict[str, Any]) -> None:
        fields.pop("id", None)
        unknown = sorted(set(fields) - set(table.columns))
        if unknown:
            raise ValidationError(f"Unknown column(s) for {table.name}: {', '.join(unknown)}")

    @staticmethod
    def _load_target(
        table: ContentTable,
        repo: ContentRepo,
        record_id: str | None,
    ) -> tuple[str, ContentRecord | None]:
        if table.singleton_id is not None:
            if record_id is not None and record_id != table.singleton_id:
                raise ValidationError(f"{table.label} only has the record {table.singleton_id}")
            return table.singleton_id, repo.get(table.singleton_id)
        if table.keyed:
            if not record_id:
                raise ValidationError(f"{table.label} records need an explicit id")
            return record_id, repo.get(record_id)
        if record_id is None:
            return new_uuid(), None
        existing = repo.get(record_id)
        if existing is None:
            raise RecordNotFoundError(f"{table.label} record not found: {record_id}")
        return record_id, existing

    @staticmethod
    def _write(
        table: ContentTable,
        repo: ContentRepo,
        record: ContentRecord,
        existing: ContentRecord | None,
    ) -> str:
        if table.singleton_id is not None or table.keyed:
            return repo.upsert(record)
        if existing is None:
            repo.insert(record)
            return "inserted"
        if not repo.update(record):
            raise RecordNotFoundError(f"{table.label} record disappeared during save: {record.id}")
        return "updated"

    def _log_save(
        self,
        table: ContentTable,
        record: ContentRecord,
        action: str,
        actor: str,
        result: SyncResult | None,
    ) -> None:
        details: dict[str, Any] = {"table": table.name, "recordId": record.id}
        if result is not None and result.changed:
            details["asset"] = {"previousUrl": result.old_url, "url": result.final_url}

        if table.name == "hero_content":
            self.activity_log.record(
                activity.HERO_CONTENT_UPDATED,
                "Admin updated the Hero section content.",
                actor,
            )
        elif table.name == "legal_documents":
            title = record.fields.get("title") or record.id
            self.activity_log.record(
                activity.LEGAL_DOC_UPDATED,
                f'Admin updated the "{title}" document.',
                actor,
                details={"documentId": record.id},
            )
        else:
            action_type = activity.CONTENT_CREATED if action == "inserted" else activity.CONTENT_UPDATED
            verb = "added" if action == "inserted" else "updated"
            self.activity_log.record(action_type, f"Admin {verb} {table.label} record {record.id}.", actor, details)

        if result is not None and result.changed and result.old_url is not None:
            if result.final_url is None:
                self.activity_log.record(
                    activity.ASSET_CLEARED,
                    f"Admin cleared the {table.label} asset on record {record.id}.",
                    actor,
                    details=details,
                )
            elif result.uploaded is not None:
                self.activity_log.record(
                    activity.ASSET_REPLACED,
                    f"Admin replaced the {table.label} asset on record {record.id}.",
                    actor,
                    details=details,
                )
