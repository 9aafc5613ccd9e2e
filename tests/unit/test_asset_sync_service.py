from pathlib import Path

import pytest

from foliocms.application.services.asset_sync_service import AssetSynchronizer
from foliocms.core.errors import StorageDeletionWarning, UploadError
from foliocms.domain.models.asset import AssetChange, UploadedFile
from foliocms.infrastructure.storage.object_store import LocalObjectStore

BUCKET = "project-images"


class FailingRemoveStore(LocalObjectStore):
    def remove(self, bucket: str, paths: list[str]) -> list[str]:
        raise StorageDeletionWarning(f"storage offline: {bucket}")


class FailingUploadStore(LocalObjectStore):
    def upload(self, bucket, path, data, content_type="application/octet-stream", *, upsert=False):
        raise UploadError("quota exceeded")


def _store(tmp_path: Path, cls: type[LocalObjectStore] = LocalObjectStore) -> LocalObjectStore:
    return cls(tmp_path / "storage", "http://localhost:8765")


def _seed(store: LocalObjectStore, path: str = "projects/old.png") -> str:
    store.upload(BUCKET, path, b"old")
    return store.public_url(BUCKET, path)


def test_new_file_uploads_and_schedules_old_deletion(tmp_path: Path) -> None:
    store = _store(tmp_path)
    old_url = _seed(store)
    sync = AssetSynchronizer(store)

    result = sync.sync(
        old_url,
        AssetChange(new_file=UploadedFile(b"new", "photo.PNG", "image/png")),
        BUCKET,
        object_prefix="projects/",
    )

    assert result.final_url != old_url
    assert result.delete_old_after_commit is True
    assert result.uploaded is not None
    assert result.uploaded.path.startswith("projects/")
    assert result.uploaded.path.endswith(".png")
    # Nothing is deleted before the record write commits.
    assert store.exists(BUCKET, "projects/old.png")

    assert sync.finalize(result) is True
    assert not store.exists(BUCKET, "projects/old.png")
    assert store.exists(BUCKET, result.uploaded.path)


def test_first_upload_has_nothing_to_delete(tmp_path: Path) -> None:
    sync = AssetSynchronizer(_store(tmp_path))

    result = sync.sync(None, AssetChange(new_file=UploadedFile(b"pdf", "cv.pdf", "application/pdf")), BUCKET)

    assert result.final_url is not None
    assert result.delete_old_after_commit is False
    assert sync.finalize(result) is False


def test_clear_sets_null_and_deletes_old_object(tmp_path: Path) -> None:
    store = _store(tmp_path)
    old_url = _seed(store)
    sync = AssetSynchronizer(store)

    result = sync.sync(old_url, AssetChange(cleared_url_field=True), BUCKET)

    assert result.final_url is None
    assert result.delete_old_after_commit is True
    assert sync.finalize(result) is True
    assert not store.exists(BUCKET, "projects/old.png")


def test_clear_of_external_url_sets_null_without_deleting(tmp_path: Path) -> None:
    sync = AssetSynchronizer(_store(tmp_path))

    result = sync.sync("https://cdn.example.com/a.png", AssetChange(cleared_url_field=True), BUCKET)

    assert result.final_url is None
    assert result.delete_old_after_commit is False


def test_manual_url_is_stored_verbatim_and_never_deletes(tmp_path: Path) -> None:
    store = _store(tmp_path)
    old_url = _seed(store)
    sync = AssetSynchronizer(store)

    result = sync.sync(old_url, AssetChange(manual_url="https://cdn.example.com/b.png"), BUCKET)

    assert result.final_url == "https://cdn.example.com/b.png"
    assert result.delete_old_after_commit is False
    assert sync.finalize(result) is False
    assert store.exists(BUCKET, "projects/old.png")


@pytest.mark.parametrize(
    "incoming",
    [
        AssetChange(),
        AssetChange(manual_url=""),
        AssetChange(cleared_url_field=True),
    ],
)
def test_no_op_save_never_deletes(tmp_path: Path, incoming: AssetChange) -> None:
    store = _store(tmp_path)
    old_url = _seed(store) if not incoming.cleared_url_field else None
    sync = AssetSynchronizer(store)

    result = sync.sync(old_url, incoming, BUCKET)

    assert result.final_url == old_url
    assert result.delete_old_after_commit is False
    assert sync.finalize(result) is False
    if old_url:
        assert store.exists(BUCKET, "projects/old.png")


def test_manual_url_equal_to_old_url_is_a_no_op(tmp_path: Path) -> None:
    store = _store(tmp_path)
    old_url = _seed(store)
    sync = AssetSynchronizer(store)

    result = sync.sync(old_url, AssetChange(manual_url=old_url), BUCKET)

    assert result.changed is False
    assert sync.finalize(result) is False
    assert store.exists(BUCKET, "projects/old.png")


def test_upload_failure_propagates_and_writes_nothing(tmp_path: Path) -> None:
    store = _store(tmp_path, FailingUploadStore)
    sync = AssetSynchronizer(store)

    with pytest.raises(UploadError):
        sync.sync(None, AssetChange(new_file=UploadedFile(b"x", "a.png")), BUCKET)


def test_empty_upload_is_rejected(tmp_path: Path) -> None:
    sync = AssetSynchronizer(_store(tmp_path))

    with pytest.raises(UploadError):
        sync.sync(None, AssetChange(new_file=UploadedFile(b"", "a.png")), BUCKET)


def test_finalize_swallows_storage_deletion_failure(tmp_path: Path) -> None:
    store = _store(tmp_path, FailingRemoveStore)
    old_url = _seed(store)
    sync = AssetSynchronizer(store)

    result = sync.sync(old_url, AssetChange(cleared_url_field=True), BUCKET)

    assert sync.finalize(result) is False
    assert store.exists(BUCKET, "projects/old.png")


def test_discard_upload_removes_only_the_new_object(tmp_path: Path) -> None:
    store = _store(tmp_path)
    old_url = _seed(store)
    sync = AssetSynchronizer(store)

    result = sync.sync(old_url, AssetChange(new_file=UploadedFile(b"new", "a.webp", "image/webp")), BUCKET)
    sync.discard_upload(result)

    assert not store.exists(BUCKET, result.uploaded.path)
    assert store.exists(BUCKET, "projects/old.png")


def test_extension_falls_back_to_content_type(tmp_path: Path) -> None:
    sync = AssetSynchronizer(_store(tmp_path))

    result = sync.sync(None, AssetChange(new_file=UploadedFile(b"%PDF", "resume", "application/pdf")), BUCKET)

    assert result.uploaded.path.endswith(".pdf")


class RecordingStore(LocalObjectStore):
    def __init__(self, base_dir: Path, public_base_url: str) -> None:
        super().__init__(base_dir, public_base_url)
        self.removed: list[tuple[str, list[str]]] = []

    def remove(self, bucket: str, paths: list[str]) -> list[str]:
        self.removed.append((bucket, list(paths)))
        return list(paths)


def test_replacing_project_image_requests_old_deletion_exactly_once(tmp_path: Path) -> None:
    store = RecordingStore(tmp_path / "storage", "https://store")
    sync = AssetSynchronizer(store)
    old_url = "https://store/project-images/old.png"

    result = sync.sync(old_url, AssetChange(new_file=UploadedFile(b"new", "new.png", "image/png")), BUCKET)

    assert result.final_url.startswith("https://store/storage/v1/object/public/project-images/")
    assert result.final_url != old_url
    assert store.removed == []

    sync.finalize(result)
    assert store.removed == [("project-images", ["old.png"])]
