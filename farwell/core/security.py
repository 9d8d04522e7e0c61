"""Security helpers (hashing, verification and random tokens)."""

from __future__ import annotations

import secrets
import string

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"
_TOKEN_ALPHABET = string.ascii_letters + string.digits


def hash_password(password: str) -> str:
    """Create an Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(password)
    return f"{_PREFIX}{hashed}"


def verify_password(password: str, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    hashed = stored[len(_PREFIX) :]
    try:
        return _ph.verify(hashed, password or "")
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def random_string(length: int = 60) -> str:
    """Alphanumeric token drawn from the OS CSPRNG."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))
