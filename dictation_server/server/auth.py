"""Password hashing and bearer-token helpers.

Passwords are stored as bcrypt hashes (``$2b$<rounds>$...``). bcrypt only
reads the first 72 bytes of a password, so longer passwords are cut to
that length before hashing and checking. Session tokens are opaque
random strings; the store maps them to user ids.
"""

from __future__ import annotations

import secrets

import bcrypt

from dictation_server.config import PASSWORD_HASH_ROUNDS

_BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = PASSWORD_HASH_ROUNDS) -> str:
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds)).decode("ascii")


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a hash produced by hash_password().

    Malformed hashes never match.
    """
    try:
        return bcrypt.checkpw(_secret(password), encoded.encode("ascii"))
    except ValueError:
        return False


def new_token() -> str:
    return secrets.token_urlsafe(32)
