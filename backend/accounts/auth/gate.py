"""Session gate: binds logins to opaque session tokens and checks them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from accounts.auth.errors import AccessDenied

if TYPE_CHECKING:
    from accounts.auth.models import Account, AuthSession, Identity
    from accounts.auth.session_store import AuthSessionStore


class SessionGate:
    """Decide whether a request carrying a session token may proceed.

    The gate never authenticates anyone by itself. The front end calls
    ``open`` only after CredentialService.login succeeded.
    """

    def __init__(self, session_store: AuthSessionStore) -> None:
        self._session_store = session_store

    def open(self, account: Account) -> AuthSession:
        """Create a session bound to the account's id and username."""
        return self._session_store.create_session(account.id, account.username)

    def check_authenticated(self, session_id: str | None) -> Identity | None:
        """Return the identity behind a live session, or None."""
        if not session_id:
            return None
        session = self._session_store.get_session(session_id)
        if session is None:
            return None
        return session.identity

    def authorize(self, session_id: str | None) -> Identity:
        """Return the session identity or raise AccessDenied."""
        identity = self.check_authenticated(session_id)
        if identity is None:
            raise AccessDenied
        return identity

    def terminate(self, session_id: str | None) -> None:
        """Invalidate a session. Unknown or empty tokens are ignored."""
        if session_id:
            self._session_store.delete_session(session_id)
