"""Abstract interface for account persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from accounts.auth.models import Account, NewAccount


class UserStore(ABC):
    """Abstract interface for account persistence.

    Implementations must enforce username and email uniqueness atomically
    (e.g. UNIQUE constraints) and raise UniqueConstraintViolation for the
    losing insert. Storage failures surface as StoreUnavailable.
    """

    @abstractmethod
    async def insert(self, account: NewAccount) -> Account: ...

    @abstractmethod
    async def find_by_username(self, username: str) -> Account | None: ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Account | None: ...

    @abstractmethod
    async def exists_by_username(self, username: str) -> bool: ...

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool: ...
