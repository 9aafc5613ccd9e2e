from pathlib import Path

from foliocms.application.services.purge_service import PurgeService
from foliocms.core.errors import StorageDeletionWarning
from foliocms.infrastructure.db.sqlite import get_connection, initialize_schema
from foliocms.infrastructure.storage.object_store import LocalObjectStore


def _setup(
    tmp_path: Path,
    store_cls: type[LocalObjectStore] = LocalObjectStore,
) -> tuple[PurgeService, Path, LocalObjectStore]:
    db_path = tmp_path / "folio.db"
    initialize_schema(db_path)
    store = store_cls(tmp_path / "storage", "http://localhost:8765")
    with get_connection(db_path) as conn:
        conn.execute(
            "INSERT INTO hero_content (id, main_name, updated_at) VALUES ('primary_hero_content', 'Ada', 'now')"
        )
        conn.execute(
            "INSERT INTO skill_categories (id, name, created_at) VALUES ('c1', 'Backend', 'now')"
        )
        conn.execute(
            "INSERT INTO skills (id, name, category_id, created_at) VALUES ('s1', 'Python', 'c1', 'now')"
        )
        conn.execute(
            "INSERT INTO legal_documents (id, title) VALUES ('privacy-policy', 'Privacy Policy')"
        )
        conn.commit()
    store.upload("category-icons", "backend.svg", b"<svg/>")
    store.upload("skill-icons", "python.svg", b"<svg/>")
    return PurgeService(db_path, store), db_path, store


def _count(db_path: Path, table: str) -> int:
    with get_connection(db_path) as conn:
        return int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])


def test_handle_purges_selected_groups_only(tmp_path: Path) -> None:
    service, db_path, store = _setup(tmp_path)

    status, body = service.handle({"sections_to_delete": ["skills", "hero"]})

    assert status == 200
    assert body == {"message": "Successfully deleted data for: Hero Section, Skills."}
    assert _count(db_path, "hero_content") == 0
    assert _count(db_path, "skills") == 0
    assert _count(db_path, "skill_categories") == 0
    assert _count(db_path, "legal_documents") == 1
    assert store.list_objects("category-icons") == []
    assert store.list_objects("skill-icons") == []


def test_handle_rejects_bad_payloads(tmp_path: Path) -> None:
    service, db_path, _store = _setup(tmp_path)

    assert service.handle(None)[0] == 400
    assert service.handle({"sections_to_delete": []})[0] == 400
    assert service.handle({"sections_to_delete": "hero"})[0] == 400
    status, body = service.handle({"sections_to_delete": ["hero", "blog"]})
    assert status == 400
    assert body == {"error": "Unknown resource group(s): blog"}
    assert _count(db_path, "hero_content") == 1


def test_bucket_failure_is_reported_after_rows_are_gone(tmp_path: Path) -> None:
    class BrokenStore(LocalObjectStore):
        def empty_bucket(self, bucket: str) -> int:
            if bucket == "skill-icons":
                raise StorageDeletionWarning("permission denied")
            return super().empty_bucket(bucket)

    service, db_path, store = _setup(tmp_path, BrokenStore)

    status, body = service.handle({"sections_to_delete": ["hero", "skills"]})

    assert status == 500
    assert "skill-icons" in body["error"]
    assert _count(db_path, "skills") == 0
    assert _count(db_path, "hero_content") == 0
    assert store.list_objects("category-icons") == []


def test_table_failure_rolls_back_group_and_keeps_its_buckets(tmp_path: Path) -> None:
    service, db_path, store = _setup(tmp_path)
    with get_connection(db_path) as conn:
        conn.execute(
            "CREATE TRIGGER block_skill_delete BEFORE DELETE ON skills "
            "BEGIN SELECT RAISE(ABORT, 'skills are locked'); END"
        )
        conn.commit()

    report = service.purge(["hero", "skills"])

    assert report.ok is False
    assert report.purged_groups == ["hero"]
    assert "skills are locked" in report.failures[0]
    assert _count(db_path, "skill_categories") == 1
    assert store.list_objects("skill-icons") == ["python.svg"]
    assert store.list_objects("category-icons") == ["backend.svg"]


def test_activity_log_group_empties_audit_table(tmp_path: Path) -> None:
    service, db_path, _store = _setup(tmp_path)
    with get_connection(db_path) as conn:
        conn.execute(
            "INSERT INTO admin_activity_log (id, timestamp, user_identifier, action_type, description) "
            "VALUES ('a1', 'now', 'admin', 'CONTENT_CREATED', 'x')"
        )
        conn.commit()

    report = service.purge(["activity_log"])

    assert report.ok
    assert report.rows_deleted == {"admin_activity_log": 1}
    assert _count(db_path, "admin_activity_log") == 0
