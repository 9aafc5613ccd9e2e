from __future__ import annotations

import logging
from typing import Any

from foliocms.domain.models.activity import ACTION_TYPES, ActivityLogEntry
from foliocms.infrastructure.db.repos.activity_log_repo import ActivityLogRepo

logger = logging.getLogger(__name__)


class ActivityLogWriter:
    """Append-only audit sink for admin mutations.

    Writes are best effort: a failed audit insert is logged and never reaches the
    caller, whose content change has already happened.
    """

    def __init__(self, repo: ActivityLogRepo) -> None:
        self.repo = repo

    def append(self, entry: ActivityLogEntry) -> None:
        if entry.action_type not in ACTION_TYPES:
            logger.warning("Unrecognised activity action type %r", entry.action_type)
        try:
            self.repo.insert(entry)
        except Exception:
            logger.warning(
                "Failed to write activity log entry %s (%s)",
                entry.action_type,
                entry.description,
                exc_info=True,
            )

    def record(
        self,
        action_type: str,
        description: str,
        user_identifier: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.append(
            ActivityLogEntry(
                action_type=action_type,
                description=description,
                user_identifier=user_identifier,
                details=details,
            )
        )

    def recent(self, limit: int = 50, action_type: str | None = None) -> list[ActivityLogEntry]:
        return self.repo.list_recent(limit=limit, action_type=action_type)
