from __future__ import annotations

import threading

from foliocms.application.services.activity_log_service import ActivityLogWriter
from foliocms.core.errors import AuthenticationError
from foliocms.core.ids import new_session_token
from foliocms.core.time import now_utc_iso
from foliocms.domain.models import activity
from foliocms.domain.models.session import AdminSession
from foliocms.infrastructure.auth.identity import LocalIdentityProvider


class SessionService:
    """Issues and tracks admin sessions held in memory for the life of the process."""

    def __init__(self, identity: LocalIdentityProvider, activity_log: ActivityLogWriter) -> None:
        self.identity = identity
        self.activity_log = activity_log
        self._lock = threading.Lock()
        self._sessions: dict[str, AdminSession] = {}

    def login(self, identifier: str, credential: str) -> AdminSession:
        if not self.identity.verify(identifier, credential):
            raise AuthenticationError("Invalid administrator credentials.")
        session = AdminSession(identifier=identifier.strip(), token=new_session_token(), issued_at=now_utc_iso())
        with self._lock:
            self._sessions[session.token] = session
        self.activity_log.record(activity.ADMIN_LOGIN, "Administrator signed in.", session.identifier)
        return session

    def get(self, token: str | None) -> AdminSession | None:
        if not token:
            return None
        with self._lock:
            return self._sessions.get(token)

    def logout(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None
