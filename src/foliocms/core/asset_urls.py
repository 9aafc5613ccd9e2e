from __future__ import annotations

import logging
from urllib.parse import unquote, urlsplit

from foliocms.core.errors import ReferenceResolutionFailure

logger = logging.getLogger(__name__)


def parse_storage_path(public_url: str, bucket_name: str) -> str:
    """Return the storage path of ``public_url`` inside ``bucket_name``.

    Raises ReferenceResolutionFailure when the URL is malformed or is not hosted
    in the bucket (for example a hand-entered external image URL).
    """
    if not isinstance(public_url, str) or not public_url.strip():
        raise ReferenceResolutionFailure("Asset URL is empty")
    if not bucket_name or "/" in bucket_name:
        raise ReferenceResolutionFailure(f"Invalid bucket name: {bucket_name!r}")

    try:
        parts = urlsplit(public_url.strip())
    except ValueError as exc:
        raise ReferenceResolutionFailure(f"Malformed asset URL {public_url!r}: {exc}") from exc

    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ReferenceResolutionFailure(f"Asset URL is not an absolute http(s) URL: {public_url!r}")

    marker = f"/{bucket_name}/"
    index = parts.path.find(marker)
    if index < 0:
        raise ReferenceResolutionFailure(f"Asset URL is not hosted in bucket {bucket_name!r}: {public_url!r}")

    remainder = unquote(parts.path[index + len(marker):])
    if not remainder:
        raise ReferenceResolutionFailure(f"Asset URL has no storage path in bucket {bucket_name!r}: {public_url!r}")
    if any(segment in {"", ".", ".."} for segment in remainder.split("/")):
        raise ReferenceResolutionFailure(f"Asset URL has an unsafe storage path: {public_url!r}")
    return remainder


def resolve_path(public_url: str | None, bucket_name: str) -> str | None:
    """Recover the storage path for a stored object's public URL, or None.

    None means the URL is not eligible for automatic deletion. Never raises.
    """
    if public_url is None or not public_url.strip():
        return None
    try:
        return parse_storage_path(public_url, bucket_name)
    except ReferenceResolutionFailure as exc:
        logger.warning("Asset URL left untracked: %s", exc)
        return None
