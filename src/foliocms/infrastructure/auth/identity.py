from __future__ import annotations

import hmac
import logging

from foliocms.core.config import AppSettings
from foliocms.core.hashing import verify_password

logger = logging.getLogger(__name__)


class LocalIdentityProvider:
    """Verifies the single configured admin account.

    The credential is checked against a PBKDF2 hash; the provider keeps no
    session state of its own.
    """

    def __init__(self, admin_identifier: str, password_hash: str | None) -> None:
        self.admin_identifier = admin_identifier
        self.password_hash = password_hash

    @classmethod
    def from_settings(cls, settings: AppSettings) -> LocalIdentityProvider:
        return cls(settings.admin_identifier, settings.admin_password_hash)

    @property
    def configured(self) -> bool:
        return bool(self.password_hash)

    def verify(self, identifier: str, credential: str) -> bool:
        if not self.password_hash:
            logger.error("Admin authentication attempted but FOLIO_ADMIN_PASSWORD_HASH is not set")
            return False
        identifier_ok = hmac.compare_digest(
            identifier.strip().lower().encode("utf-8"),
            self.admin_identifier.strip().lower().encode("utf-8"),
        )
        password_ok = verify_password(credential, self.password_hash)
        if not (identifier_ok and password_ok):
            logger.warning("Admin authentication failed for %r", identifier)
            return False
        return True
