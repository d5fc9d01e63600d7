"""Account and session models for authentication."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

DEFAULT_ENABLED = True


class NewAccount(BaseModel, frozen=True):
    """Validated account fields ready to be inserted by a user store."""

    username: str
    email: str
    password_hash: str
    enabled: bool = DEFAULT_ENABLED
    description: str | None = None  # None and "" are distinct values
    created_at: datetime


class Account(NewAccount, frozen=True):
    """Account record as stored, including the store-assigned id."""

    id: int


@dataclass(frozen=True)
class Identity:
    """Who a live session is authenticated as."""

    account_id: int
    username: str


@dataclass
class AuthSession:
    """Server-side session for an authenticated account."""

    session_id: str  # opaque token, stored in cookie
    account_id: int
    username: str
    created_at: float  # time.time()
    expires_at: float  # time.time() + TTL

    @property
    def identity(self) -> Identity:
        return Identity(account_id=self.account_id, username=self.username)
