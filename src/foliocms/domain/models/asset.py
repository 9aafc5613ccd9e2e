from __future__ import annotations

from dataclasses import dataclass

from foliocms.core.asset_urls import resolve_path


@dataclass(frozen=True, slots=True)
class AssetReference:
    bucket: str
    path: str
    public_url: str

    @classmethod
    def from_public_url(cls, public_url: str | None, bucket: str) -> AssetReference | None:
        path = resolve_path(public_url, bucket)
        if path is None or public_url is None:
            return None
        return cls(bucket=bucket, path=path, public_url=public_url)


@dataclass(frozen=True, slots=True)
class UploadedFile:
    data: bytes
    filename: str
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class AssetChange:
    new_file: UploadedFile | None = None
    cleared_url_field: bool = False
    manual_url: str | None = None


@dataclass(frozen=True, slots=True)
class SyncResult:
    final_url: str | None
    delete_old_after_commit: bool
    old_url: str | None = None
    old_reference: AssetReference | None = None
    uploaded: AssetReference | None = None

    @property
    def changed(self) -> bool:
        return self.final_url != self.old_url
