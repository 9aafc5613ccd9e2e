from __future__ import annotations

import secrets
import time
import uuid


def new_uuid() -> str:
    """Generate a new UUID4 as a string."""
    return str(uuid.uuid4())


def new_session_token() -> str:
    """Generate an opaque, URL-safe bearer token for an admin session."""
    return secrets.token_urlsafe(32)


def unique_object_name(extension: str, prefix: str = "") -> str:
    """Build a fresh, time-qualified object name such as ``projects/1718000000000-3fa2b1c4.png``."""
    ext = extension.lstrip(".").lower() or "bin"
    millis = int(time.time() * 1000)
    return f"{prefix}{millis}-{secrets.token_hex(4)}.{ext}"
