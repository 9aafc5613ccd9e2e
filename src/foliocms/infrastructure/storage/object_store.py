from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from foliocms.core.errors import ObjectStoreError, StorageDeletionWarning, UploadError
from foliocms.core.files import ensure_directory, prune_empty_parents, write_bytes_atomic

logger = logging.getLogger(__name__)

PUBLIC_OBJECT_ROUTE = "/storage/v1/object/public"


class LocalObjectStore:
    """Bucketed object storage on the local filesystem.

    Objects live at ``<base_dir>/<bucket>/<path>`` and are published under
    ``<public_base_url>/storage/v1/object/public/<bucket>/<path>``.
    """

    def __init__(self, base_dir: Path, public_base_url: str) -> None:
        self.base_dir = base_dir
        self.public_base_url = public_base_url.rstrip("/")

    def ensure_bucket(self, bucket: str) -> Path:
        bucket_dir = self._bucket_dir(bucket)
        ensure_directory(bucket_dir)
        return bucket_dir

    def object_abspath(self, bucket: str, path: str) -> Path:
        bucket_dir = self._bucket_dir(bucket)
        pure = PurePosixPath(path)
        if not path or pure.is_absolute() or any(part in {"", ".", ".."} for part in pure.parts):
            raise ObjectStoreError(f"Invalid object path: {path!r}")
        return bucket_dir.joinpath(*pure.parts)

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        *,
        upsert: bool = False,
    ) -> str:
        try:
            dst = self.object_abspath(bucket, path)
        except ObjectStoreError as exc:
            raise UploadError(str(exc)) from exc
        if dst.exists() and not upsert:
            raise UploadError(f"Object already exists: {bucket}/{path}")
        try:
            write_bytes_atomic(dst, data)
        except OSError as exc:
            raise UploadError(f"Failed to upload {bucket}/{path}: {exc}") from exc
        logger.info("Uploaded %s/%s (%d bytes, %s)", bucket, path, len(data), content_type)
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}{PUBLIC_OBJECT_ROUTE}/{quote(bucket)}/{quote(path)}"

    def exists(self, bucket: str, path: str) -> bool:
        try:
            return self.object_abspath(bucket, path).is_file()
        except ObjectStoreError:
            return False

    def remove(self, bucket: str, paths: list[str]) -> list[str]:
        """Delete objects; missing objects count as already removed."""
        removed: list[str] = []
        for path in paths:
            try:
                target = self.object_abspath(bucket, path)
            except ObjectStoreError as exc:
                raise StorageDeletionWarning(str(exc)) from exc
            if not target.exists():
                continue
            try:
                target.unlink()
            except OSError as exc:
                raise StorageDeletionWarning(f"Failed to delete {bucket}/{path}: {exc}") from exc
            prune_empty_parents(target.parent, self._bucket_dir(bucket))
            removed.append(path)
        return removed

    def list_objects(self, bucket: str) -> list[str]:
        bucket_dir = self._bucket_dir(bucket)
        if not bucket_dir.exists():
            return []
        return sorted(
            p.relative_to(bucket_dir).as_posix()
            for p in bucket_dir.rglob("*")
            if p.is_file() and not p.name.startswith(".")
        )

    def empty_bucket(self, bucket: str) -> int:
        return len(self.remove(bucket, self.list_objects(bucket)))

    def _bucket_dir(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or bucket in {".", ".."}:
            raise ObjectStoreError(f"Invalid bucket name: {bucket!r}")
        return self.base_dir / bucket
