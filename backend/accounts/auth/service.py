"""Credential service coordinating registration and login."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from accounts.auth.errors import (
    DuplicateEmail,
    DuplicateUsername,
    EmptyField,
    InvalidCredentials,
    InvalidFormat,
    UniqueConstraintViolation,
)
from accounts.auth.models import DEFAULT_ENABLED, NewAccount
from accounts.auth.validation import require_utf8, validate_registration

if TYPE_CHECKING:
    from accounts.auth.models import Account
    from accounts.auth.password import PasswordHasher
    from accounts.dal.user_store import UserStore

logger = structlog.get_logger()

# Hashed once per service; an unknown username is checked against it like a real account.
_TIMING_DUMMY_PASSWORD = "timing-dummy-password"


class CredentialService:
    """Validate, create, and verify username/password accounts.

    Holds no account state of its own; the user store is the only shared
    resource and has the final say on uniqueness.
    """

    def __init__(self, user_store: UserStore, *, password_hasher: PasswordHasher) -> None:
        self._user_store = user_store
        self._hasher = password_hasher
        self._dummy_hash: str | None = None

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        description: str | None = None,
    ) -> Account:
        """Register a new account and return it with its assigned id."""
        username, email = validate_registration(username, email, password, description)

        if await self._user_store.exists_by_username(username):
            raise DuplicateUsername
        if await self._user_store.exists_by_email(email):
            raise DuplicateEmail

        new_account = NewAccount(
            username=username,
            email=email,
            password_hash=await self._hasher.hash(password),
            enabled=DEFAULT_ENABLED,
            description=description,
            created_at=datetime.now(UTC),
        )
        try:
            account = await self._user_store.insert(new_account)
        except UniqueConstraintViolation as e:
            # lost a race against a concurrent registration
            if e.field == "email":
                raise DuplicateEmail from e
            raise DuplicateUsername from e

        logger.info("account registered", account_id=account.id, username=account.username)
        return account

    async def find_by_username(self, username: str | None) -> Account | None:
        """Return the account with this (trimmed) username, or None."""
        trimmed = (username or "").strip()
        if not trimmed:
            return None
        try:
            require_utf8("username", trimmed)
        except InvalidFormat:
            # registration rejects such names, so no account can match
            return None
        return await self._user_store.find_by_username(trimmed)

    async def verify_password(self, plain: str, stored_hash: str) -> bool:
        """Check a plaintext password against a stored hash."""
        try:
            require_utf8("password", plain)
        except InvalidFormat:
            return False
        return await self._hasher.verify(plain, stored_hash)

    async def login(self, username: str | None, password: str | None) -> Account:
        """Return the account for valid credentials.

        Unknown usernames, wrong passwords, and disabled accounts all raise
        the same InvalidCredentials error, and each costs one password hash
        check.
        """
        if not (username or "").strip():
            raise EmptyField("username", "Username is required")
        if not password:
            raise EmptyField("password", "Password is required")
        require_utf8("username", username.strip())
        require_utf8("password", password)

        account = await self.find_by_username(username)
        if account is None:
            await self.verify_password(password, await self._get_dummy_hash())
            raise InvalidCredentials
        if not await self.verify_password(password, account.password_hash):
            raise InvalidCredentials
        if not account.enabled:
            raise InvalidCredentials
        return account

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await self._hasher.hash(_TIMING_DUMMY_PASSWORD)
        return self._dummy_hash
