"""Utilities for issuing and validating bearer JWTs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable

import jwt

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """Signing and validation parameters for access tokens.

    Issuer and audience checks are switches rather than hardcoded; turning one
    off weakens what a valid token proves and should be a deliberate choice.
    """

    issuer: str
    audience: str
    secret: str = field(repr=False)
    validate_issuer: bool = True
    validate_audience: bool = True
    algorithm: str = "HS256"


@dataclass(frozen=True, slots=True)
class Identity:
    """Caller identity resolved from a request's bearer token."""

    subject: str | None = None
    is_authenticated: bool = False
    role_claims: frozenset[str] = frozenset()

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls()

    @classmethod
    def authenticated(cls, subject: str, roles: Iterable[str] = ()) -> "Identity":
        return cls(subject=subject, is_authenticated=True, role_claims=frozenset(roles))


def issue_access_token(
    config: TokenConfig,
    *,
    subject: str,
    roles: list[str] | None = None,
    ttl_seconds: int = 3600,
) -> tuple[str, int]:
    """Create a signed JWT for an authenticated account.

    Parameters
    ----------
    config:
        Issuer, audience and signing secret embedded in or used for the token.
    subject:
        Account identifier stored in the ``sub`` claim.
    roles:
        Role names stored in the ``roles`` claim.
    ttl_seconds:
        Lifetime of the token.

    Returns
    -------
    tuple[str, int]
        The encoded JWT and its TTL in seconds.
    """
    now = int(time.time())
    payload: dict[str, Any] = {
        "iss": config.issuer,
        "aud": config.audience,
        "sub": subject,
        "roles": list(roles or []),
        "iat": now,
        "exp": now + ttl_seconds,
    }
    token = jwt.encode(payload, config.secret, algorithm=config.algorithm)
    return token, ttl_seconds


def decode_access_token(token: str, config: TokenConfig) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises
    ------
    jwt.PyJWTError
        When the signature, expiry, or an enabled issuer/audience check fails.
    """
    return jwt.decode(
        token,
        config.secret,
        algorithms=[config.algorithm],
        issuer=config.issuer if config.validate_issuer else None,
        audience=config.audience if config.validate_audience else None,
        options={
            "require": ["exp", "sub"],
            "verify_iss": config.validate_issuer,
            "verify_aud": config.validate_audience,
        },
    )


def validate_bearer(authorization: str | None, config: TokenConfig) -> Identity:
    """Resolve an ``Authorization`` header value into an :class:`Identity`.

    Never raises: a missing header, another scheme, or any token that fails
    validation resolves to an anonymous identity.
    """
    if not authorization:
        return Identity.anonymous()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token:
        return Identity.anonymous()

    try:
        claims = decode_access_token(token, config)
    except jwt.PyJWTError as exc:
        logger.debug("rejected bearer token: %s", exc)
        return Identity.anonymous()

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        return Identity.anonymous()
    return Identity.authenticated(subject, _role_claims(claims))


def _role_claims(claims: dict[str, Any]) -> frozenset[str]:
    roles: set[str] = set()
    for key in ("roles", "role"):
        value = claims.get(key)
        if isinstance(value, str):
            roles.add(value)
        elif isinstance(value, list):
            roles.update(item for item in value if isinstance(item, str))
    return frozenset(roles)
