from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from identity_admin.api import routes
from identity_admin.domain.account import Account
from identity_admin.domain.errors import DuplicateInitialsError, StoreUnavailable
from identity_admin.domain.service import AccountService
from identity_admin.security.rate_limiter import SlidingWindowRateLimiter
from identity_admin.security.tokens import Identity, TokenConfig, issue_access_token

# bcrypt's minimum cost keeps the suite fast.
TEST_ROUNDS = 4

TEST_TOKEN_CONFIG = TokenConfig(
    issuer="identity-admin.test",
    audience="identity-admin.clients",
    secret="test-secret-that-is-at-least-32-bytes-long",
)

ADMIN = Identity.authenticated("1", ["Admin"])
MEMBER = Identity.authenticated("2", [])
ANONYMOUS = Identity.anonymous()


class FakeAccountRepository:
    """In-memory store mimicking the Postgres table and its unique constraint."""

    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}
        self._next_id = 1
        self.insert_calls = 0
        self.update_calls = 0
        self.available = True

    def ping(self) -> None:
        if not self.available:
            raise StoreUnavailable()

    def find_account_by_id(self, account_id: int) -> Account | None:
        account = self._accounts.get(account_id)
        return replace(account) if account else None

    def find_account_by_initials(self, initials: str) -> Account | None:
        for account in self._accounts.values():
            if account.initials == initials:
                return replace(account)
        return None

    def list_accounts(self) -> list[Account]:
        return [replace(self._accounts[key]) for key in sorted(self._accounts)]

    def insert_account(self, account: Account) -> Account:
        self.insert_calls += 1
        self._check_unique(account.initials, None)
        stored = replace(account, account_id=self._next_id)
        self._next_id += 1
        self._accounts[stored.account_id] = stored
        return replace(stored)

    def update_account(self, account: Account) -> None:
        self.update_calls += 1
        self._check_unique(account.initials, account.account_id)
        if account.account_id in self._accounts:
            self._accounts[account.account_id] = replace(account)

    def count_active_admins(self) -> int:
        return sum(1 for a in self._accounts.values() if a.is_admin and a.is_active)

    def stored(self, account_id: int) -> Account:
        return self._accounts[account_id]

    def all(self) -> list[Account]:
        return list(self._accounts.values())

    def _check_unique(self, initials: str, account_id: int | None) -> None:
        for existing in self._accounts.values():
            if existing.initials == initials and existing.account_id != account_id:
                raise DuplicateInitialsError(f"duplicate key value violates unique constraint: {initials}")


class RacingRepository(FakeAccountRepository):
    """Hides existing accounts from lookups by initials, as a concurrent writer would."""

    def find_account_by_initials(self, initials: str) -> Account | None:
        return None


def bearer(subject: str, roles: list[str] | None = None, config: TokenConfig = TEST_TOKEN_CONFIG) -> dict[str, str]:
    token, _ = issue_access_token(config, subject=subject, roles=roles)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def repository() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def service(repository: FakeAccountRepository) -> AccountService:
    return AccountService(repository, password_rounds=TEST_ROUNDS)


@pytest.fixture
def api_client(service: AccountService):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    app.state.account_service = service
    app.state.token_config = TEST_TOKEN_CONFIG
    app.state.token_ttl_seconds = 600
    app.state.rate_limiter = SlidingWindowRateLimiter(max_requests=3, window_seconds=60)

    with TestClient(app) as client:
        yield client
