"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CreateAccountInput:
    """Inputs required to create an account."""

    name: str
    initials: str
    password: str = field(repr=False)
    is_admin: bool = False
    is_active: bool = True
    email: str | None = None


@dataclass(slots=True)
class UpdateAccountInput:
    """Patch applied to an existing account.

    ``None`` leaves the stored value untouched. The role and activity flags are
    not optional and always overwrite.
    """

    is_admin: bool
    is_active: bool
    name: str | None = None
    initials: str | None = None
    password: str | None = field(default=None, repr=False)
    email: str | None = None


@dataclass(frozen=True, slots=True)
class BootstrapAdmin:
    """Administrator created at startup when no active admin exists."""

    name: str
    initials: str
    password: str = field(repr=False)
