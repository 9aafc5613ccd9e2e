import hashlib

from foliocms.core.hashing import hash_password, verify_password
from foliocms.infrastructure.auth.identity import LocalIdentityProvider


def test_hash_password_is_verifiable_and_salted() -> None:
    first = hash_password("correct horse", iterations=1_000)
    second = hash_password("correct horse", iterations=1_000)

    assert first.startswith("pbkdf2_sha256$1000$")
    assert first != second
    assert verify_password("correct horse", first)
    assert not verify_password("wrong horse", first)


def test_hash_password_is_deterministic_for_fixed_salt() -> None:
    assert hash_password("pw", iterations=1_000, salt="abc") == hash_password("pw", iterations=1_000, salt="abc")


def test_verify_password_rejects_malformed_hashes() -> None:
    assert not verify_password("pw", "")
    assert not verify_password("pw", "md5$1$salt$abc")
    assert not verify_password("pw", "pbkdf2_sha256$notanumber$salt$abc")
    assert not verify_password("pw", "pbkdf2_sha256$0$salt$abc")
    assert not verify_password("pw", "pbkdf2_sha256$1000$salt$" + "zz" * 32)


def test_hash_password_is_standard_pbkdf2_sha256() -> None:
    encoded = hash_password("pw", iterations=1_000, salt="abc")
    expected = hashlib.pbkdf2_hmac("sha256", b"pw", b"abc", 1_000).hex()

    assert encoded == f"pbkdf2_sha256$1000$abc${expected}"


def test_verify_password_rejects_tampered_digest() -> None:
    encoded = hash_password("pw", iterations=1_000, salt="abc")
    tampered = encoded[:-2] + ("00" if not encoded.endswith("00") else "11")

    assert verify_password("pw", encoded)
    assert not verify_password("pw", tampered)
    assert not verify_password("pw", encoded[:-2])


def test_identity_provider_checks_identifier_and_password() -> None:
    provider = LocalIdentityProvider("Admin@Example.com", hash_password("s3cret", iterations=1_000))

    assert provider.configured
    assert provider.verify("admin@example.com", "s3cret")
    assert not provider.verify("someone@example.com", "s3cret")
    assert not provider.verify("admin@example.com", "nope")


def test_identity_provider_without_hash_rejects_everything() -> None:
    provider = LocalIdentityProvider("admin", None)

    assert not provider.configured
    assert not provider.verify("admin", "")
