"""
Password digests for recipient access.

New digests are salted werkzeug hashes (scrypt by default). Digests written by
the earlier design, a bare hex SHA-256 of the password, still verify so that
existing recipients keep working until their password is next changed.
"""

from __future__ import annotations

import hashlib
import hmac
import re

from werkzeug.security import check_password_hash, generate_password_hash

DEFAULT_METHOD = "scrypt"
LEGACY_DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")

# Verified against when a slug is unknown so both failure paths do real work.
_DUMMY_DIGEST = generate_password_hash("not-a-real-password", method=DEFAULT_METHOD)


def hash_password(password: str, method: str = DEFAULT_METHOD) -> str:
    return generate_password_hash(password, method=method)


def legacy_digest(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def is_legacy_digest(digest: str) -> bool:
    return bool(LEGACY_DIGEST_PATTERN.match(digest or ""))


def verify_password(digest: str | None, password: str) -> bool:
    if not digest:
        return False
    if is_legacy_digest(digest):
        return hmac.compare_digest(digest, legacy_digest(password))
    try:
        return check_password_hash(digest, password)
    except ValueError:
        # Unknown hash method in the stored digest.
        return False


def burn_verification(password: str) -> None:
    """Spend the same effort as a real check, for unknown recipients."""
    check_password_hash(_DUMMY_DIGEST, password)
