"""Error taxonomy surfaced by the account core."""

from __future__ import annotations

from enum import Enum


class DenialReason(str, Enum):
    """Why the authorization gate refused a request."""

    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT_ROLE = "insufficient_role"


class AccountError(Exception):
    """Base class for failures that may be reported to callers.

    ``message`` is always safe to echo back; driver or library detail stays in the logs.
    """

    default_message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(AccountError):
    """The caller is anonymous or lacks the role required for the operation."""

    def __init__(self, reason: DenialReason, message: str | None = None) -> None:
        self.reason = reason
        if message is None:
            message = (
                "authentication required"
                if reason is DenialReason.UNAUTHENTICATED
                else "admin privileges required"
            )
        super().__init__(message)


class NotFound(AccountError):
    default_message = "account not found"


class Conflict(AccountError):
    default_message = "an account with the same initials already exists"


class ValidationError(AccountError):
    default_message = "invalid request"


class Forbidden(AccountError):
    default_message = "the superadmin account cannot be changed"


class StoreUnavailable(AccountError):
    default_message = "account store unavailable"


class DuplicateInitialsError(Exception):
    """Raised by a store when its unique constraint on ``initials`` rejects a write."""
