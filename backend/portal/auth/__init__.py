"""Portal authentication: Starlette backend, user model, and route policy."""

from portal.auth.backend import SessionCookieBackend
from portal.auth.models import AuthenticatedAccount
from portal.auth.policy import protected_api, public_route, validate_route_auth_policy

__all__ = [
    "AuthenticatedAccount",
    "SessionCookieBackend",
    "protected_api",
    "public_route",
    "validate_route_auth_policy",
]
