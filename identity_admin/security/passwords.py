"""Password hashing and verification.

Passwords are hashed with bcrypt, which salts every hash and carries its own cost
factor, so stored hashes stay verifiable after ``rounds`` is raised. bcrypt only
considers the first 72 bytes of input; longer passwords are rejected up front
rather than silently truncated.
"""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def password_problem(plaintext: str) -> str | None:
    """Return a human readable reason why ``plaintext`` cannot be hashed, or ``None``."""
    if not plaintext:
        return "password must not be empty"
    if len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"password must be at most {MAX_PASSWORD_BYTES} bytes"
    return None


def hash_password(plaintext: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of ``plaintext``.

    Raises
    ------
    ValueError
        When the password is empty or longer than bcrypt accepts.
    """
    problem = password_problem(plaintext)
    if problem:
        raise ValueError(problem)
    return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plaintext: str, password_hash: str) -> bool:
    """Return ``True`` when ``plaintext`` matches ``password_hash``.

    ``bcrypt.checkpw`` compares digests in constant time. Malformed hashes and
    unusable input report a mismatch instead of raising.
    """
    if password_problem(plaintext) or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("stored password hash is malformed")
        return False


# Verified against when a login names an unknown account so the response time
# does not reveal whether the account exists.
DUMMY_HASH = hash_password("identity-admin-timing-dummy")
