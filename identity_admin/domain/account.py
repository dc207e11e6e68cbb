from __future__ import annotations

from dataclasses import dataclass

from .errors import ValidationError

SUPERADMIN_INITIALS = "ADM"
ADMIN_ROLE = "Admin"

NAME_MAX_LENGTH = 100
INITIALS_MAX_LENGTH = 3
EMAIL_MAX_LENGTH = 100


@dataclass(slots=True)
class Account:
    """Stored identity record with role and activity flags."""

    account_id: int | None
    display_name: str
    initials: str
    password_hash: str
    is_admin: bool = False
    is_active: bool = True
    email: str | None = None

    def is_superadmin(self) -> bool:
        return self.initials == SUPERADMIN_INITIALS

    def to_view(self) -> "AccountView":
        return AccountView(
            account_id=self.account_id,
            display_name=self.display_name,
            initials=self.initials,
            is_admin=self.is_admin,
            is_active=self.is_active,
            email=self.email,
        )


@dataclass(frozen=True, slots=True)
class AccountView:
    """Caller-facing projection of an account; never carries the password hash."""

    account_id: int
    display_name: str
    initials: str
    is_admin: bool
    is_active: bool
    email: str | None = None


def require_text(field: str, value: str | None, max_length: int) -> None:
    """Raise ``ValidationError`` unless ``value`` is non-blank and within ``max_length``."""
    if not value or not value.strip():
        raise ValidationError(f"{field} is required")
    if len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")


def check_email(email: str | None) -> None:
    if email is not None and len(email) > EMAIL_MAX_LENGTH:
        raise ValidationError(f"email must be at most {EMAIL_MAX_LENGTH} characters")
