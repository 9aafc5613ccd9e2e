from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DeletionState(str, Enum):
    IDLE = "idle"
    AWAITING_PASSWORD_CONFIRMATION = "awaiting_password_confirmation"
    COUNTDOWN_ARMED = "countdown_armed"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DeletionState.COMPLETED, DeletionState.FAILED)


@dataclass(frozen=True, slots=True)
class DeletionRequest:
    selected_group_keys: frozenset[str]
    requested_at: str


@dataclass(slots=True)
class DeletionStatus:
    state: DeletionState
    selected_group_keys: list[str]
    seconds_remaining: float | None
    can_confirm: bool
    notice: str | None = None
    message: str | None = None
    error: str | None = None
