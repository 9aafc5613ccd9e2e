from pathlib import Path

import pytest

from foliocms.core.errors import ObjectStoreError, UploadError
from foliocms.infrastructure.storage.object_store import LocalObjectStore


def _store(tmp_path: Path) -> LocalObjectStore:
    return LocalObjectStore(tmp_path / "storage", "http://localhost:8765/")


def test_upload_and_public_url(tmp_path: Path) -> None:
    store = _store(tmp_path)
    path = store.upload("project-images", "projects/a.png", b"png-bytes", "image/png")

    assert path == "projects/a.png"
    assert store.exists("project-images", "projects/a.png")
    assert (tmp_path / "storage" / "project-images" / "projects" / "a.png").read_bytes() == b"png-bytes"
    assert (
        store.public_url("project-images", path)
        == "http://localhost:8765/storage/v1/object/public/project-images/projects/a.png"
    )


def test_upload_refuses_to_overwrite_without_upsert(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upload("about-images", "a.png", b"one")

    with pytest.raises(UploadError):
        store.upload("about-images", "a.png", b"two")

    store.upload("about-images", "a.png", b"two", upsert=True)
    assert store.object_abspath("about-images", "a.png").read_bytes() == b"two"


def test_object_paths_cannot_escape_bucket(tmp_path: Path) -> None:
    store = _store(tmp_path)
    with pytest.raises(ObjectStoreError):
        store.object_abspath("about-images", "../other/a.png")
    with pytest.raises(ObjectStoreError):
        store.object_abspath("../etc", "passwd")
    with pytest.raises(UploadError):
        store.upload("about-images", "/abs.png", b"x")


def test_remove_treats_missing_objects_as_removed_and_prunes_directories(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upload("resume-section-icons", "experience/a.svg", b"<svg/>")

    removed = store.remove("resume-section-icons", ["experience/a.svg", "experience/missing.svg"])

    assert removed == ["experience/a.svg"]
    assert not (tmp_path / "storage" / "resume-section-icons" / "experience").exists()
    assert (tmp_path / "storage" / "resume-section-icons").exists()


def test_list_objects_and_empty_bucket(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upload("skill-icons", "b.png", b"b")
    store.upload("skill-icons", "nested/a.png", b"a")

    assert store.list_objects("skill-icons") == ["b.png", "nested/a.png"]
    assert store.list_objects("category-icons") == []
    assert store.empty_bucket("skill-icons") == 2
    assert store.list_objects("skill-icons") == []
