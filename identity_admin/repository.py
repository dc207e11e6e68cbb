"""Database repository for account data."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.errors import DuplicateInitialsError, StoreUnavailable, ValidationError

logger = logging.getLogger(__name__)

_COLUMNS = "account_id, display_name, initials, password_hash, is_admin, is_active, email"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
    display_name VARCHAR(100) NOT NULL,
    initials VARCHAR(3) NOT NULL,
    password_hash VARCHAR(200) NOT NULL,
    is_admin BOOLEAN NOT NULL DEFAULT FALSE,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    email VARCHAR(100),
    CONSTRAINT accounts_initials_key UNIQUE (initials)
)
"""


class AccountRepository:
    """Postgres-backed account persistence.

    The ``UNIQUE`` constraint on ``initials`` is the source of truth for
    uniqueness; a violation surfaces as :class:`DuplicateInitialsError`. Values
    the schema rejects become :class:`ValidationError`, and every
    other driver failure becomes :class:`StoreUnavailable`.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor]:
        """Yield a cursor inside a transaction, translating driver errors."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    yield cur
        except pg_errors.UniqueViolation as exc:
            logger.info("account write rejected by unique constraint: %s", exc)
            raise DuplicateInitialsError(str(exc)) from exc
        except (psycopg.DataError, psycopg.IntegrityError) as exc:
            logger.warning("account write rejected by the database: %s", exc)
            raise ValidationError("account values rejected by the store") from exc
        except psycopg.Error as exc:
            logger.error("account store failure: %s", exc)
            raise StoreUnavailable() from exc

    def ensure_schema(self) -> None:
        """Create the accounts table if it does not exist yet."""
        with self._cursor() as cur:
            cur.execute(SCHEMA_SQL)

    def ping(self) -> None:
        """Round-trip a trivial query, raising ``StoreUnavailable`` on failure."""
        with self._cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()

    def find_account_by_id(self, account_id: int) -> Account | None:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM accounts WHERE account_id = %s", (account_id,))
            row = cur.fetchone()
        return self._map_record(row) if row else None

    def find_account_by_initials(self, initials: str) -> Account | None:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM accounts WHERE initials = %s", (initials,))
            row = cur.fetchone()
        return self._map_record(row) if row else None

    def list_accounts(self) -> list[Account]:
        """Return every account ordered by identifier."""
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM accounts ORDER BY account_id")
            rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def insert_account(self, account: Account) -> Account:
        """Persist a new account and return it with the assigned identifier."""
        with self._cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO accounts (display_name, initials, password_hash, is_admin, is_active, email)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {_COLUMNS}
                """,
                (
                    account.display_name,
                    account.initials,
                    account.password_hash,
                    account.is_admin,
                    account.is_active,
                    account.email,
                ),
            )
            row = cur.fetchone()
        return self._map_record(row)

    def update_account(self, account: Account) -> None:
        """Overwrite every mutable column of an existing account."""
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE accounts
                SET display_name = %s, initials = %s, password_hash = %s,
                    is_admin = %s, is_active = %s, email = %s
                WHERE account_id = %s
                """,
                (
                    account.display_name,
                    account.initials,
                    account.password_hash,
                    account.is_admin,
                    account.is_active,
                    account.email,
                    account.account_id,
                ),
            )

    def count_active_admins(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM accounts WHERE is_admin AND is_active")
            row = cur.fetchone()
        return int(row[0]) if row else 0

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            display_name=row[1],
            initials=row[2],
            password_hash=row[3],
            is_admin=row[4],
            is_active=row[5],
            email=row[6],
        )
