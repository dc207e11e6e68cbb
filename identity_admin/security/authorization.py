"""Role-gated authorization decisions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..domain.account import ADMIN_ROLE
from ..domain.errors import AuthError, DenialReason
from .tokens import Identity


class Requirement(str, Enum):
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of an authorization check; ``reason`` is set only on denial."""

    allowed: bool
    reason: DenialReason | None = None


ALLOW = Decision(allowed=True)


def authorize(identity: Identity, requirement: Requirement) -> Decision:
    """Decide whether ``identity`` satisfies ``requirement``."""
    if not identity.is_authenticated:
        return Decision(allowed=False, reason=DenialReason.UNAUTHENTICATED)
    if requirement is Requirement.ADMIN and ADMIN_ROLE not in identity.role_claims:
        return Decision(allowed=False, reason=DenialReason.INSUFFICIENT_ROLE)
    return ALLOW


def enforce(identity: Identity, requirement: Requirement) -> None:
    """Raise :class:`AuthError` unless ``identity`` satisfies ``requirement``."""
    decision = authorize(identity, requirement)
    if not decision.allowed:
        raise AuthError(decision.reason)
