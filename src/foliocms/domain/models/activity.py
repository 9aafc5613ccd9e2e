from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from foliocms.core.time import now_utc_iso

CONTENT_CREATED = "CONTENT_CREATED"
CONTENT_UPDATED = "CONTENT_UPDATED"
CONTENT_DELETED = "CONTENT_DELETED"
ASSET_REPLACED = "ASSET_REPLACED"
ASSET_CLEARED = "ASSET_CLEARED"
HERO_CONTENT_UPDATED = "HERO_CONTENT_UPDATED"
LEGAL_DOC_UPDATED = "LEGAL_DOC_UPDATED"
DATA_DELETION_INITIATED_SELECTIVE = "DATA_DELETION_INITIATED_SELECTIVE"
DATA_DELETION_FAILED = "DATA_DELETION_FAILED"
ADMIN_LOGIN = "ADMIN_LOGIN"

ACTION_TYPES = frozenset(
    {
        CONTENT_CREATED,
        CONTENT_UPDATED,
        CONTENT_DELETED,
        ASSET_REPLACED,
        ASSET_CLEARED,
        HERO_CONTENT_UPDATED,
        LEGAL_DOC_UPDATED,
        DATA_DELETION_INITIATED_SELECTIVE,
        DATA_DELETION_FAILED,
        ADMIN_LOGIN,
    }
)


@dataclass(slots=True)
class ActivityLogEntry:
    action_type: str
    description: str
    user_identifier: str
    details: dict[str, Any] | None = None
    occurred_at: str = field(default_factory=now_utc_iso)
    id: str | None = None
