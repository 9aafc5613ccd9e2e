from __future__ import annotations

import logging
import mimetypes
from pathlib import PurePosixPath

from foliocms.core.errors import ObjectStoreError, UploadError
from foliocms.core.ids import unique_object_name
from foliocms.domain.models.asset import AssetChange, AssetReference, SyncResult, UploadedFile
from foliocms.infrastructure.storage.object_store import LocalObjectStore

logger = logging.getLogger(__name__)


class AssetSynchronizer:
    """Keeps a record's asset URL field consistent with the objects in storage.

    A save goes through three calls, in order:

    1. ``sync`` decides the URL to persist, uploading a new file if one was given.
       It never deletes anything.
    2. The caller writes the record. If that write fails it calls
       ``discard_upload`` so the fresh object does not become an orphan; the old
       object is left alone.
    3. Only after the write has committed, the caller calls ``finalize``, which
       removes the superseded object. A failure there is logged, not raised.
    """

    def __init__(self, object_store: LocalObjectStore) -> None:
        self.object_store = object_store

    def sync(
        self,
        old_url: str | None,
        incoming: AssetChange,
        bucket: str,
        *,
        object_prefix: str = "",
    ) -> SyncResult:
        old_url = old_url or None
        old_reference = AssetReference.from_public_url(old_url, bucket) if old_url else None

        if incoming.new_file is not None:
            uploaded = self._upload(incoming.new_file, bucket, object_prefix)
            return SyncResult(
                final_url=uploaded.public_url,
                delete_old_after_commit=old_reference is not None,
                old_url=old_url,
                old_reference=old_reference,
                uploaded=uploaded,
            )

        if incoming.cleared_url_field and old_url is not None:
            return SyncResult(
                final_url=None,
                delete_old_after_commit=old_reference is not None,
                old_url=old_url,
                old_reference=old_reference,
            )

        manual_url = (incoming.manual_url or "").strip()
        if manual_url and manual_url != old_url:
            # Hand-entered URLs are stored verbatim and never trigger a deletion.
            return SyncResult(
                final_url=manual_url,
                delete_old_after_commit=False,
                old_url=old_url,
                old_reference=old_reference,
            )

        return SyncResult(
            final_url=old_url,
            delete_old_after_commit=False,
            old_url=old_url,
            old_reference=old_reference,
        )

    def finalize(self, result: SyncResult) -> bool:
        """Remove the superseded object once the record write has committed."""
        if not result.delete_old_after_commit or result.old_reference is None:
            return False
        if result.final_url == result.old_reference.public_url:
            return False
        return self.remove_reference(result.old_reference)

    def discard_upload(self, result: SyncResult) -> None:
        """Remove an object uploaded for a save whose record write then failed."""
        if result.uploaded is None:
            return
        self.remove_reference(result.uploaded)

    def remove_url(self, public_url: str | None, bucket: str) -> bool:
        reference = AssetReference.from_public_url(public_url, bucket)
        if reference is None:
            return False
        return self.remove_reference(reference)

    def remove_reference(self, reference: AssetReference) -> bool:
        try:
            self.object_store.remove(reference.bucket, [reference.path])
        except (ObjectStoreError, OSError) as exc:
            logger.warning(
                "Could not delete stored object %s/%s; leaving it for cleanup: %s",
                reference.bucket,
                reference.path,
                exc,
            )
            return False
        logger.info("Deleted stored object %s/%s", reference.bucket, reference.path)
        return True

    def _upload(self, new_file: UploadedFile, bucket: str, object_prefix: str) -> AssetReference:
        if not new_file.data:
            raise UploadError(f"Refusing to upload an empty file: {new_file.filename or '<unnamed>'}")
        extension = _extension_for(new_file)
        path = unique_object_name(extension, prefix=object_prefix)
        try:
            stored_path = self.object_store.upload(bucket, path, new_file.data, new_file.content_type)
        except UploadError:
            raise
        except (ObjectStoreError, OSError) as exc:
            raise UploadError(f"Failed to upload {new_file.filename or path} to {bucket}: {exc}") from exc
        public_url = self.object_store.public_url(bucket, stored_path)
        if not public_url:
            raise UploadError(f"Failed to get a public URL for uploaded object {bucket}/{stored_path}")
        return AssetReference(bucket=bucket, path=stored_path, public_url=public_url)


def _extension_for(new_file: UploadedFile) -> str:
    suffix = PurePosixPath(new_file.filename or "").suffix.lstrip(".")
    if suffix and suffix.isalnum():
        return suffix.lower()
    guessed = mimetypes.guess_extension(new_file.content_type or "")
    if guessed:
        return guessed.lstrip(".")
    return "bin"
