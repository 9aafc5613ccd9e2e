from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Protocol

from foliocms.application.services.activity_log_service import ActivityLogWriter
from foliocms.application.services.content_cache import ContentCache
from foliocms.core.errors import (
    AuthenticationError,
    DeletionProtocolError,
    FunctionInvocationError,
    RemoteDeletionLogicError,
    UnknownResourceGroupError,
)
from foliocms.core.time import Clock, monotonic_clock, now_utc_iso
from foliocms.domain.models import activity
from foliocms.domain.models.deletion import DeletionRequest, DeletionState, DeletionStatus
from foliocms.domain.models.session import AdminSession
from foliocms.domain.resource_groups import groups_by_keys

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_SECONDS = 5.0

NOTICE_NOTHING_SELECTED = "Select at least one section to delete."
NOTICE_NOT_SIGNED_IN = "You must be signed in as the administrator to delete data."


class IdentityVerifier(Protocol):
    def verify(self, identifier: str, credential: str) -> bool: ...


class PurgeFunction(Protocol):
    def invoke(self, group_keys: list[str]) -> str: ...


class GuardedDeletionProtocol:
    """Gates a bulk purge of resource groups behind re-authentication and a countdown.

    IDLE -> AWAITING_PASSWORD_CONFIRMATION -> COUNTDOWN_ARMED -> EXECUTING -> COMPLETED | FAILED

    The countdown is a deadline on ``clock``; nothing sleeps, so ``cancel`` is
    honoured at any point until ``confirm`` takes over. One instance
    serves one admin session.
    """

    def __init__(
        self,
        identity: IdentityVerifier,
        purge_function: PurgeFunction,
        activity_log: ActivityLogWriter,
        cache: ContentCache | None = None,
        *,
        countdown_seconds: float = DEFAULT_COUNTDOWN_SECONDS,
        clock: Clock = monotonic_clock,
    ) -> None:
        self.identity = identity
        self.purge_function = purge_function
        self.activity_log = activity_log
        self.cache = cache
        self.countdown_seconds = countdown_seconds
        self.clock = clock

        self._lock = threading.RLock()
        self._confirming = False
        self._state = DeletionState.IDLE
        self._request: DeletionRequest | None = None
        self._session: AdminSession | None = None
        self._armed_at: float | None = None
        self._notice: str | None = None
        self._message: str | None = None
        self._error: str | None = None

    @property
    def state(self) -> DeletionState:
        return self._state

    @property
    def request(self) -> DeletionRequest | None:
        return self._request

    def select(self, group_keys: Iterable[str]) -> DeletionRequest | None:
        keys = frozenset(str(key) for key in group_keys)
        with self._lock:
            self._require(DeletionState.IDLE, action="change the selection")
            groups_by_keys(keys)
            self._notice = None
            self._request = DeletionRequest(selected_group_keys=keys, requested_at=now_utc_iso()) if keys else None
            return self._request

    def initiate(self, session: AdminSession | None) -> str | None:
        """Open the password confirmation step, or return a notice and stay idle."""
        with self._lock:
            self._require(DeletionState.IDLE, action="initiate deletion")
            if self._request is None or not self._request.selected_group_keys:
                self._notice = NOTICE_NOTHING_SELECTED
                return self._notice
            if session is None:
                self._notice = NOTICE_NOT_SIGNED_IN
                return self._notice
            self._session = session
            self._notice = None
            self._state = DeletionState.AWAITING_PASSWORD_CONFIRMATION
            keys = sorted(self._request.selected_group_keys)
        logger.info("Deletion initiated for %s", ", ".join(keys))
        return None

    def reauthenticate(self, credential: str) -> None:
        with self._lock:
            self._require(DeletionState.AWAITING_PASSWORD_CONFIRMATION, action="confirm your password")
            session = self._session
            if session is None:
                raise DeletionProtocolError("No admin session is attached to this deletion request.")
            try:
                verified = self.identity.verify(session.identifier, credential)
            except Exception as exc:
                logger.warning("Re-authentication could not be completed", exc_info=True)
                raise AuthenticationError(f"Could not verify your password: {exc}") from exc
            if not verified:
                raise AuthenticationError("Incorrect password. Deletion was not started.")
            self._state = DeletionState.COUNTDOWN_ARMED
            self._armed_at = self.clock()

    def seconds_remaining(self) -> float | None:
        with self._lock:
            return self._seconds_remaining()

    def can_confirm(self) -> bool:
        with self._lock:
            return self._countdown_elapsed()

    def cancel(self) -> None:
        with self._lock:
            if self._confirming:
                raise DeletionProtocolError("Deletion is being confirmed and can no longer be cancelled.")
            if self._state in (DeletionState.EXECUTING, DeletionState.COMPLETED, DeletionState.FAILED):
                raise DeletionProtocolError(f"Deletion cannot be cancelled while {self._state.value}.")
            self._reset()
        logger.info("Deletion cancelled")

    def confirm(self) -> str:
        """Run the purge. Returns the function's message; on failure raises and lands in FAILED."""
        with self._lock:
            self._require(DeletionState.COUNTDOWN_ARMED, action="confirm deletion")
            self._confirming = True
            try:
                if not self._countdown_elapsed():
                    remaining = self._seconds_remaining() or 0.0
                    raise DeletionProtocolError(f"Confirm is available in {remaining:.1f} seconds.")
                request = self._request
                if request is None:
                    raise DeletionProtocolError("There is no deletion request to confirm.")
                try:
                    groups = groups_by_keys(request.selected_group_keys)
                except UnknownResourceGroupError:
                    self._reset()
                    raise
                self._state = DeletionState.EXECUTING
                actor = self._session.identifier if self._session else "admin"
            finally:
                self._confirming = False

        keys = [group.key for group in groups]
        try:
            message = self.purge_function.invoke(keys)
        except (FunctionInvocationError, RemoteDeletionLogicError) as exc:
            self._fail(keys, actor, exc)
            raise
        except Exception as exc:
            wrapped = FunctionInvocationError(f"Purge function call failed: {exc}")
            self._fail(keys, actor, wrapped)
            raise wrapped from exc

        self.activity_log.record(
            activity.DATA_DELETION_INITIATED_SELECTIVE,
            f"Admin initiated deletion of selected data sections: {', '.join(g.label for g in groups)}.",
            actor,
            details={"deletedGroupKeys": keys},
        )
        if self.cache is not None:
            self.cache.invalidate(table for group in groups for table in group.tables)
        with self._lock:
            self._request = None
            self._armed_at = None
            self._message = message
            self._error = None
            self._state = DeletionState.COMPLETED
        logger.info("Deletion completed for %s: %s", ", ".join(keys), message)
        return message

    def dismiss(self) -> None:
        with self._lock:
            if not self._state.is_terminal:
                raise DeletionProtocolError(f"Nothing to dismiss while {self._state.value}.")
            self._reset()

    def retry(self) -> None:
        """Send a failed request back through password confirmation and the countdown."""
        with self._lock:
            self._require(DeletionState.FAILED, action="retry deletion")
            if self._request is None or self._session is None:
                raise DeletionProtocolError("There is no failed deletion request to retry.")
            self._error = None
            self._armed_at = None
            self._state = DeletionState.AWAITING_PASSWORD_CONFIRMATION

    def status(self) -> DeletionStatus:
        with self._lock:
            keys = sorted(self._request.selected_group_keys) if self._request else []
            return DeletionStatus(
                state=self._state,
                selected_group_keys=keys,
                seconds_remaining=self._seconds_remaining(),
                can_confirm=self._countdown_elapsed(),
                notice=self._notice,
                message=self._message,
                error=self._error,
            )

    def _fail(self, keys: list[str], actor: str, exc: Exception) -> None:
        with self._lock:
            self._error = str(exc)
            self._message = None
            self._armed_at = None
            self._state = DeletionState.FAILED
        logger.error("Deletion of %s failed: %s", ", ".join(keys), exc)
        self.activity_log.record(
            activity.DATA_DELETION_FAILED,
            f"Deletion of selected data sections failed: {exc}",
            actor,
            details={"requestedGroupKeys": keys, "error": str(exc)},
        )

    def _seconds_remaining(self) -> float | None:
        if self._state is not DeletionState.COUNTDOWN_ARMED or self._armed_at is None:
            return None
        elapsed = self.clock() - self._armed_at
        return max(0.0, self.countdown_seconds - elapsed)

    def _countdown_elapsed(self) -> bool:
        remaining = self._seconds_remaining()
        return remaining is not None and remaining <= 0

    def _require(self, expected: DeletionState, *, action: str) -> None:
        if self._state is not expected:
            raise DeletionProtocolError(f"Cannot {action} while {self._state.value}.")

    def _reset(self) -> None:
        self._state = DeletionState.IDLE
        self._request = None
        self._session = None
        self._armed_at = None
        self._notice = None
        self._message = None
        self._error = None
