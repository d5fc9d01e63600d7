"""SQLite-backed user store."""

from __future__ import annotations

import asyncio
import contextlib
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING

from accounts.auth.errors import StoreUnavailable, UniqueConstraintViolation
from accounts.auth.models import Account
from accounts.dal.user_store import UserStore

if TYPE_CHECKING:
    from collections.abc import Iterator

    from accounts.auth.models import NewAccount
    from accounts.db.connection import Database

_COLUMNS = "id, username, email, password_hash, enabled, description, created_at"


@contextlib.contextmanager
def _storage_errors() -> Iterator[None]:
    """Translate non-integrity sqlite3 failures into StoreUnavailable."""
    try:
        yield
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as exc:
        raise StoreUnavailable(f"User store failure: {exc}") from exc


class SqliteUserStore(UserStore):
    """SQLite implementation of UserStore.

    Inserts run under an asyncio lock and rely on the UNIQUE indexes on
    username and email as the final authority; IntegrityError is mapped to
    UniqueConstraintViolation naming the offending field.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def insert(self, account: NewAccount) -> Account:
        """Insert an account and return it with its assigned id."""
        async with self._lock:
            conn = self._db.connection
            try:
                with _storage_errors():
                    cursor = conn.execute(
                        "INSERT INTO accounts (username, email, password_hash, enabled, description, created_at)"
                        " VALUES (?, ?, ?, ?, ?, ?)",
                        (
                            account.username,
                            account.email,
                            account.password_hash,
                            int(account.enabled),
                            account.description,
                            account.created_at.isoformat(),
                        ),
                    )
                    conn.commit()
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                error_msg = str(exc).lower()
                if "accounts.username" in error_msg or "idx_accounts_username" in error_msg:
                    raise UniqueConstraintViolation("username") from exc
                if "accounts.email" in error_msg or "idx_accounts_email" in error_msg:
                    raise UniqueConstraintViolation("email") from exc
                raise StoreUnavailable(f"User store rejected insert: {exc}") from exc  # pragma: no cover

        account_id = cursor.lastrowid
        if account_id is None:  # pragma: no cover
            raise StoreUnavailable("User store did not assign an id")
        return Account(id=account_id, **account.model_dump())

    async def find_by_username(self, username: str) -> Account | None:
        """Look up an account by exact (case-sensitive) username."""
        return self._fetch_one("username", username)

    async def find_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email."""
        return self._fetch_one("email", email)

    async def exists_by_username(self, username: str) -> bool:
        return self._exists("username", username)

    async def exists_by_email(self, email: str) -> bool:
        return self._exists("email", email)

    def _fetch_one(self, column: str, value: str) -> Account | None:
        with _storage_errors():
            row = self._db.connection.execute(
                f"SELECT {_COLUMNS} FROM accounts WHERE {column} = ?",  # noqa: S608
                (value,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_account(row)

    def _exists(self, column: str, value: str) -> bool:
        with _storage_errors():
            row = self._db.connection.execute(
                f"SELECT 1 FROM accounts WHERE {column} = ? LIMIT 1",  # noqa: S608
                (value,),
            ).fetchone()
        return row is not None


def _row_to_account(row: tuple) -> Account:
    return Account(
        id=row[0],
        username=row[1],
        email=row[2],
        password_hash=row[3],
        enabled=bool(row[4]),
        description=row[5],
        created_at=datetime.fromisoformat(row[6]),
    )
