"""Account service enforcing authorization and account invariants."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .account import (
    ADMIN_ROLE,
    INITIALS_MAX_LENGTH,
    NAME_MAX_LENGTH,
    Account,
    AccountView,
    check_email,
    require_text,
)
from .contracts import CreateAccountInput, UpdateAccountInput
from .errors import (
    AuthError,
    Conflict,
    DenialReason,
    DuplicateInitialsError,
    Forbidden,
    NotFound,
    ValidationError,
)
from ..security.authorization import Requirement, enforce
from ..security.passwords import (
    DEFAULT_ROUNDS,
    DUMMY_HASH,
    hash_password,
    password_problem,
    verify_password,
)
from ..security.tokens import Identity, TokenConfig, issue_access_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid initials or password"


class AccountStore(Protocol):
    """Persistence operations the account core depends on."""

    def find_account_by_id(self, account_id: int) -> Account | None: ...

    def find_account_by_initials(self, initials: str) -> Account | None: ...

    def list_accounts(self) -> list[Account]: ...

    def insert_account(self, account: Account) -> Account: ...

    def update_account(self, account: Account) -> None: ...

    def count_active_admins(self) -> int: ...


@dataclass(slots=True)
class TokenBundle:
    """Access token returned to API consumers after a successful login."""

    access_token: str
    expires_in: int
    account: AccountView


class AccountService:
    """Account workflows gated by caller identity."""

    def __init__(self, repository: AccountStore, *, password_rounds: int = DEFAULT_ROUNDS) -> None:
        """Store dependencies used to enforce invariants and hash passwords."""
        self._repository = repository
        self._password_rounds = password_rounds

    def list_accounts(self, identity: Identity) -> list[AccountView]:
        """Return every account ordered by identifier. Admin only."""
        enforce(identity, Requirement.ADMIN)
        return [account.to_view() for account in self._repository.list_accounts()]

    def get_account(self, identity: Identity, account_id: int) -> AccountView:
        """Return a single account to any authenticated caller."""
        enforce(identity, Requirement.AUTHENTICATED)
        account = self._repository.find_account_by_id(account_id)
        if account is None:
            raise NotFound()
        return account.to_view()

    def create_account(self, identity: Identity, payload: CreateAccountInput) -> AccountView:
        """Create an account after checking role, field rules and initials uniqueness."""
        enforce(identity, Requirement.ADMIN)
        require_text("name", payload.name, NAME_MAX_LENGTH)
        require_text("initials", payload.initials, INITIALS_MAX_LENGTH)
        check_email(payload.email)
        _check_password(payload.password)

        # The store's unique constraint is authoritative; this lookup only gives
        # the common case a clean answer before paying for a hash.
        if self._repository.find_account_by_initials(payload.initials) is not None:
            raise Conflict()

        account = Account(
            account_id=None,
            display_name=payload.name,
            initials=payload.initials,
            password_hash=hash_password(payload.password, self._password_rounds),
            is_admin=payload.is_admin,
            is_active=payload.is_active,
            email=payload.email,
        )
        try:
            created = self._repository.insert_account(account)
        except DuplicateInitialsError as exc:
            raise Conflict() from exc
        logger.info("account %s created by %s", created.account_id, identity.subject)
        return created.to_view()

    def update_account(
        self, identity: Identity, account_id: int, patch: UpdateAccountInput
    ) -> AccountView:
        """Apply a partial update to an account.

        Text fields left as ``None`` keep their stored value and the password is
        re-hashed only when supplied. ``is_admin`` and ``is_active`` always
        overwrite. The superadmin account cannot be changed by anyone.
        """
        enforce(identity, Requirement.ADMIN)
        if patch.name is not None:
            require_text("name", patch.name, NAME_MAX_LENGTH)
        if patch.initials is not None:
            require_text("initials", patch.initials, INITIALS_MAX_LENGTH)
        check_email(patch.email)
        if patch.password is not None:
            _check_password(patch.password)

        account = self._repository.find_account_by_id(account_id)
        if account is None:
            raise NotFound()
        if account.is_superadmin():
            raise Forbidden()

        if patch.initials is not None and patch.initials != account.initials:
            holder = self._repository.find_account_by_initials(patch.initials)
            if holder is not None and holder.account_id != account.account_id:
                raise Conflict()

        if (
            account.is_admin
            and account.is_active
            and not (patch.is_admin and patch.is_active)
            and self._repository.count_active_admins() <= 1
        ):
            raise Conflict("the last active administrator cannot be demoted or deactivated")

        if patch.name is not None:
            account.display_name = patch.name
        if patch.initials is not None:
            account.initials = patch.initials
        if patch.email is not None:
            account.email = patch.email
        if patch.password is not None:
            account.password_hash = hash_password(patch.password, self._password_rounds)
        account.is_admin = patch.is_admin
        account.is_active = patch.is_active

        try:
            self._repository.update_account(account)
        except DuplicateInitialsError as exc:
            raise Conflict() from exc
        logger.info("account %s updated by %s", account.account_id, identity.subject)
        return account.to_view()

    def authenticate(self, initials: str, password: str) -> Account:
        """Return the active account matching the credentials.

        Unknown initials, a wrong password and an inactive account all fail the
        same way so callers cannot tell them apart.
        """
        account = self._repository.find_account_by_initials(initials)
        if account is None:
            verify_password(password, DUMMY_HASH)
            raise AuthError(DenialReason.UNAUTHENTICATED, INVALID_CREDENTIALS)
        if not verify_password(password, account.password_hash) or not account.is_active:
            logger.info("login refused for account %s", account.account_id)
            raise AuthError(DenialReason.UNAUTHENTICATED, INVALID_CREDENTIALS)
        return account

    def issue_token(
        self, initials: str, password: str, config: TokenConfig, ttl_seconds: int
    ) -> TokenBundle:
        """Exchange valid credentials for a signed bearer token."""
        account = self.authenticate(initials, password)
        roles = [ADMIN_ROLE] if account.is_admin else []
        token, expires_in = issue_access_token(
            config,
            subject=str(account.account_id),
            roles=roles,
            ttl_seconds=ttl_seconds,
        )
        return TokenBundle(access_token=token, expires_in=expires_in, account=account.to_view())


def _check_password(password: str) -> None:
    problem = password_problem(password)
    if problem:
        raise ValidationError(problem)
