import sqlite3
from pathlib import Path

import pytest

from foliocms.application.services.activity_log_service import ActivityLogWriter
from foliocms.application.services.asset_sync_service import AssetSynchronizer
from foliocms.application.services.content_cache import ContentCache
from foliocms.application.services.content_service import ContentService
from foliocms.core.errors import RecordNotFoundError, RecordWriteError, UploadError, ValidationError
from foliocms.domain.models import activity
from foliocms.domain.models.asset import AssetChange, UploadedFile
from foliocms.infrastructure.db.repos.activity_log_repo import ActivityLogRepo
from foliocms.infrastructure.db.repos.content_repo import ContentRepo
from foliocms.infrastructure.db.sqlite import initialize_schema
from foliocms.infrastructure.storage.object_store import LocalObjectStore


def _setup(tmp_path: Path) -> tuple[ContentService, LocalObjectStore, ActivityLogWriter]:
    db_path = tmp_path / "folio.db"
    initialize_schema(db_path)
    store = LocalObjectStore(tmp_path / "storage", "http://localhost:8765")
    log = ActivityLogWriter(ActivityLogRepo(db_path))
    service = ContentService(db_path, AssetSynchronizer(store), log, ContentCache())
    return service, store, log


def _png(name: str = "shot.png", data: bytes = b"png") -> AssetChange:
    return AssetChange(new_file=UploadedFile(data, name, "image/png"))


def _event(title: str) -> dict:
    return {"date": "2024-01-01", "title": title, "description": "d", "type": "work"}


def test_create_project_with_image(tmp_path: Path) -> None:
    service, store, log = _setup(tmp_path)

    result = service.save(
        "projects",
        {"title": "Folio", "tags": ["python", "fastapi"]},
        actor="admin",
        asset_change=_png(),
    )

    assert result.action == "inserted"
    record = service.get("projects", result.record.id)
    assert record.fields["title"] == "Folio"
    assert record.fields["tags"] == ["python", "fastapi"]
    assert record.fields["image_url"] == result.asset_url
    assert record.fields["created_at"]
    path = result.asset_url.split("/project-images/", 1)[1]
    assert path.startswith("projects/")
    assert store.exists("project-images", path)

    entries = log.recent()
    assert [e.action_type for e in entries] == [activity.CONTENT_CREATED]
    assert entries[0].details == {
        "table": "projects",
        "recordId": record.id,
        "asset": {"previousUrl": None, "url": result.asset_url},
    }


def test_replacing_image_deletes_old_object_after_commit(tmp_path: Path) -> None:
    service, store, log = _setup(tmp_path)
    first = service.save("projects", {"title": "Folio"}, actor="admin", asset_change=_png("a.png"))
    old_path = first.asset_url.split("/project-images/", 1)[1]

    second = service.save(
        "projects",
        {"title": "Folio v2"},
        actor="admin",
        record_id=first.record.id,
        asset_change=_png("b.png", b"new"),
    )

    assert second.action == "updated"
    assert second.old_asset_deleted is True
    assert not store.exists("project-images", old_path)
    assert store.list_objects("project-images") == [second.asset_url.split("/project-images/", 1)[1]]
    assert service.get("projects", first.record.id).fields["image_url"] == second.asset_url
    actions = [e.action_type for e in log.recent()]
    assert activity.ASSET_REPLACED in actions
    assert activity.CONTENT_UPDATED in actions


def test_failed_record_write_keeps_old_asset_and_discards_upload(tmp_path: Path, monkeypatch) -> None:
    service, store, _log = _setup(tmp_path)
    first = service.save("projects", {"title": "Folio"}, actor="admin", asset_change=_png("a.png"))
    old_path = first.asset_url.split("/project-images/", 1)[1]

    def _fail_update(self, record) -> bool:
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(ContentRepo, "update", _fail_update)

    with pytest.raises(RecordWriteError):
        service.save(
            "projects",
            {"title": "Folio v2"},
            actor="admin",
            record_id=first.record.id,
            asset_change=_png("b.png", b"new"),
        )

    assert store.list_objects("project-images") == [old_path]
    record = service.get("projects", first.record.id)
    assert record.fields["image_url"] == first.asset_url
    assert record.fields["title"] == "Folio"


def test_upload_failure_aborts_before_any_write(tmp_path: Path, monkeypatch) -> None:
    service, store, log = _setup(tmp_path)
    first = service.save("projects", {"title": "Folio"}, actor="admin", asset_change=_png("a.png"))

    def _fail_upload(self, bucket, path, data, content_type="application/octet-stream", *, upsert=False):
        raise UploadError("bucket full")

    monkeypatch.setattr(LocalObjectStore, "upload", _fail_upload)

    with pytest.raises(UploadError):
        service.save("projects", {"title": "changed"}, actor="admin", record_id=first.record.id, asset_change=_png())

    assert service.get("projects", first.record.id).fields["title"] == "Folio"
    assert len(log.recent()) == 1


def test_save_without_asset_change_never_deletes(tmp_path: Path) -> None:
    service, store, _log = _setup(tmp_path)
    first = service.save("projects", {"title": "Folio"}, actor="admin", asset_change=_png("a.png"))

    again = service.save("projects", {"title": "Renamed"}, actor="admin", record_id=first.record.id)

    assert again.old_asset_deleted is False
    assert again.asset_url == first.asset_url
    assert len(store.list_objects("project-images")) == 1


def test_asset_column_in_fields_is_a_manual_url(tmp_path: Path) -> None:
    service, store, _log = _setup(tmp_path)
    first = service.save("projects", {"title": "Folio"}, actor="admin", asset_change=_png("a.png"))

    result = service.save(
        "projects",
        {"image_url": "https://cdn.example.com/x.png"},
        actor="admin",
        record_id=first.record.id,
    )

    assert result.asset_url == "https://cdn.example.com/x.png"
    assert result.old_asset_deleted is False
    assert len(store.list_objects("project-images")) == 1


def test_clearing_asset_sets_null_and_logs(tmp_path: Path) -> None:
    service, store, log = _setup(tmp_path)
    saved = service.save("about_content", {"headline_main": "Hi"}, actor="admin", asset_change=_png())

    cleared = service.save("about_content", {}, actor="admin", asset_change=AssetChange(cleared_url_field=True))

    assert cleared.action == "updated"
    assert cleared.record.id == "main_about_content"
    assert cleared.record.fields["image_url"] is None
    assert cleared.old_asset_deleted is True
    assert store.list_objects("about-images") == []
    assert saved.record.id == cleared.record.id
    assert log.recent()[0].action_type == activity.ASSET_CLEARED


def test_hero_and_legal_saves_use_their_own_log_actions(tmp_path: Path) -> None:
    service, _store, log = _setup(tmp_path)

    service.save("hero_content", {"main_name": "Ada", "subtitles": ["Engineer"]}, actor="admin")
    service.save(
        "legal_documents",
        {"title": "Privacy Policy", "content": "..."},
        actor="admin",
        record_id="privacy-policy",
    )

    entries = log.recent()
    assert [e.action_type for e in entries] == [activity.LEGAL_DOC_UPDATED, activity.HERO_CONTENT_UPDATED]
    assert entries[0].details == {"documentId": "privacy-policy"}
    hero = service.get("hero_content", "primary_hero_content")
    assert hero.fields["subtitles"] == ["Engineer"]


def test_validation_errors_happen_before_io(tmp_path: Path) -> None:
    service, store, _log = _setup(tmp_path)

    with pytest.raises(ValidationError):
        service.save("projects", {"title": "x", "bogus": 1}, actor="admin", asset_change=_png())
    with pytest.raises(ValidationError):
        service.save("no_such_table", {}, actor="admin")
    with pytest.raises(ValidationError):
        service.save("timeline_events", {"title": "x"}, actor="admin", asset_change=_png())
    with pytest.raises(ValidationError):
        service.save("legal_documents", {"title": "x"}, actor="admin")
    with pytest.raises(RecordNotFoundError):
        service.save("projects", {"title": "x"}, actor="admin", record_id="missing")

    assert store.list_objects("project-images") == []


def test_delete_removes_record_then_asset(tmp_path: Path) -> None:
    service, store, log = _setup(tmp_path)
    saved = service.save(
        "certifications",
        {"title": "AWS", "issuer": "Amazon", "date": "2024-05-01"},
        actor="admin",
        asset_change=_png(),
    )

    result = service.delete("certifications", saved.record.id, actor="admin")

    assert result.asset_deleted is True
    assert store.list_objects("certification-images") == []
    with pytest.raises(RecordNotFoundError):
        service.get("certifications", saved.record.id)
    entry = log.recent()[0]
    assert entry.action_type == activity.CONTENT_DELETED
    assert entry.details == {"table": "certifications", "recordId": saved.record.id, "assetDeleted": True}


def test_public_view_is_cached_until_a_save(tmp_path: Path) -> None:
    service, _store, _log = _setup(tmp_path)
    service.save("timeline_events", _event("Joined"), actor="admin")

    first = service.public_view("timeline_events")
    assert [r["title"] for r in first] == ["Joined"]
    assert "timeline_events" in service.cache.cached_tables()

    service.save("timeline_events", _event("Shipped"), actor="admin")
    assert "timeline_events" not in service.cache.cached_tables()
    assert len(service.public_view("timeline_events")) == 2

    with pytest.raises(ValidationError):
        service.public_view("contact_submissions")
