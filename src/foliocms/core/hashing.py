from __future__ import annotations

import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

PASSWORD_SCHEME = "pbkdf2_sha256"
DEFAULT_PASSWORD_ITERATIONS = 390_000
DERIVED_KEY_LENGTH = 32


def _kdf(salt: str, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=DERIVED_KEY_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=iterations,
    )


def hash_password(password: str, *, iterations: int = DEFAULT_PASSWORD_ITERATIONS, salt: str | None = None) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>`` for ``password``."""
    salt = salt or secrets.token_hex(16)
    digest = _kdf(salt, iterations).derive(password.encode("utf-8"))
    return f"{PASSWORD_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations_raw, salt, expected_hex = encoded.split("$", 3)
        iterations = int(iterations_raw)
        expected = bytes.fromhex(expected_hex)
    except ValueError:
        return False
    if scheme != PASSWORD_SCHEME or iterations <= 0 or len(expected) != DERIVED_KEY_LENGTH:
        return False
    try:
        _kdf(salt, iterations).verify(password.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True
