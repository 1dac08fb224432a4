"""Security helpers (hashing and verification)."""

from __future__ import annotations

import hashlib
import secrets

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_password(password: str) -> str:
    """Create a modern Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(password)
    return f"{_PREFIX}{hashed}"


def _legacy_hash(password: str) -> str:
    # unsalted sha256 hex digest written by the first version of the user store
    return hashlib.sha256(password.encode()).hexdigest()


def verify_password(password: str, stored_hash: str | None) -> bool:
    """
    Check a password against a stored hash.

    Hashes with the argon2 prefix go through Argon2. Anything else is treated
    as the unsalted SHA-256 hex digest the user collection used to hold, so
    users created before the switch can still sign in.
    """
    stored = stored_hash or ""
    if stored.startswith(_PREFIX):
        hashed = stored[len(_PREFIX) :]
        try:
            return _ph.verify(hashed, password)
        except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
            return False
    legacy = _legacy_hash(password)
    return secrets.compare_digest(legacy, stored)
