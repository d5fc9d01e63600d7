"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import BaseUser

if TYPE_CHECKING:
    from accounts.auth.models import Identity


class AuthenticatedAccount(BaseUser):
    """Authenticated account for Starlette's request.user.

    Built by the auth backend from the identity behind a live session.
    """

    def __init__(self, identity: Identity) -> None:
        self._identity = identity

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self._identity.username

    @property
    def identity(self) -> str:
        return str(self._identity.account_id)

    @property
    def account_id(self) -> int:
        return self._identity.account_id

    @property
    def username(self) -> str:
        return self._identity.username
