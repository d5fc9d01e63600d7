"""Starlette AuthenticationBackend that validates session cookies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend

from portal.auth.models import AuthenticatedAccount

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from accounts.auth.gate import SessionGate


class SessionCookieBackend(AuthenticationBackend):
    """Authenticate requests by the opaque session token in a cookie.

    A missing, unknown, or expired token leaves the request anonymous;
    route policies decide what anonymous requests may reach.
    """

    def __init__(self, gate: SessionGate, cookie_name: str = "session_id") -> None:
        self._gate = gate
        self._cookie_name = cookie_name

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedAccount] | None:
        identity = self._gate.check_authenticated(conn.cookies.get(self._cookie_name))
        if identity is None:
            return None
        return AuthCredentials(["authenticated"]), AuthenticatedAccount(identity)
