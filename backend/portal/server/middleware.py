"""ASGI middleware for the portal server."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

# The portal only serves JSON, so nothing may be embedded, framed, or executed.
SECURITY_HEADERS: list[tuple[bytes, bytes]] = [
    (b"x-content-type-options", b"nosniff"),
    (b"x-frame-options", b"DENY"),
    (b"referrer-policy", b"no-referrer"),
    (b"content-security-policy", b"default-src 'none'; frame-ancestors 'none'; base-uri 'none'"),
]

# Responses carrying account data or session cookies must not be cached.
NO_STORE_HEADER = (b"cache-control", b"no-store")

_CACHEABLE_PATHS = {"/health"}


class SecurityHeadersMiddleware:
    """Inject standard security headers into every HTTP response.

    Every path except the health check also gets ``Cache-Control: no-store``.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    def _headers_for(self, path: str) -> list[tuple[bytes, bytes]]:
        normalized = path.rstrip("/") or "/"
        if normalized in _CACHEABLE_PATHS:
            return SECURITY_HEADERS
        return [*SECURITY_HEADERS, NO_STORE_HEADER]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra_headers = self._headers_for(scope["path"])

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [(k, v) for k, v in message.get("headers", []) if k != NO_STORE_HEADER[0]]
                headers.extend(extra_headers)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_headers)


class SlashNormalizationMiddleware:
    """Strip trailing slashes so that /path/ is handled the same as /path.

    Starlette's default ``redirect_slashes=True`` answers the trailing-slash
    variant with a 307 redirect before authentication runs, so an anonymous
    ``GET /dashboard/`` would see a redirect instead of a 401. Rewriting the
    path before routing avoids that and the need for duplicate routes.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            path: str = scope["path"]
            if len(path) > 1 and path.endswith("/"):
                scope["path"] = path.rstrip("/")
        await self.app(scope, receive, send)
