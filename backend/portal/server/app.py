from __future__ import annotations

import contextlib
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from accounts.auth import AuthSessionStore, CredentialService, SessionGate
from accounts.auth.password import get_hasher
from accounts.auth.settings import AuthSettings
from accounts.db import Database, SqliteUserStore
from accounts.logging import setup_logging
from portal.auth.backend import SessionCookieBackend
from portal.auth.policy import (
    collect_protected_api_paths,
    protected_api,
    public_route,
    validate_route_auth_policy,
)
from portal.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from portal.server.settings import PortalServerSettings
from portal.views.auth_handlers import dashboard, login, logout, signup

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request


def _make_auth_error_handler(
    protected_api_paths: set[str],
) -> Callable[[Request, Exception], Awaitable[Response]]:
    """Build an HTTPException handler that rewrites 401s on protected JSON endpoints."""

    async def _auth_error_handler(request: Request, exc: Exception) -> Response:
        """Rewrite 401 errors on protected endpoints to JSON responses.

        All other HTTP exceptions delegate to Starlette's default behavior
        (plain-text response with the exception detail).
        """
        http_exc = cast("HTTPException", exc)
        if http_exc.status_code == HTTPStatus.UNAUTHORIZED and request.url.path in protected_api_paths:
            return JSONResponse(
                {"error": "Authentication required", "code": "unauthenticated"},
                status_code=HTTPStatus.UNAUTHORIZED,
            )
        if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
            return Response(status_code=http_exc.status_code, headers=http_exc.headers)
        return PlainTextResponse(http_exc.detail or "", status_code=http_exc.status_code, headers=http_exc.headers)

    return _auth_error_handler


async def health(request: Request) -> JSONResponse:
    settings: PortalServerSettings = request.app.state.settings
    return JSONResponse({"status": "ok", "version": settings.app_version})


def create_app(
    settings: PortalServerSettings | None = None,
    auth_settings: AuthSettings | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = PortalServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()

    routes = [
        # Protected JSON routes (return 401 JSON when unauthenticated)
        Route("/dashboard", protected_api(dashboard), methods=["GET"], name="dashboard"),
        # Public routes
        Route("/health", public_route(health), methods=["GET"], name="health"),
        Route("/signup", public_route(signup), methods=["POST"], name="signup"),
        Route("/login", public_route(login), methods=["POST"], name="login"),
        Route("/logout", public_route(logout), methods=["POST"], name="logout"),
    ]

    validate_route_auth_policy(routes)
    protected_api_paths = collect_protected_api_paths(routes)

    # Initialize database and account components
    db = Database(auth_settings.database_path)
    db.connect()
    user_store = SqliteUserStore(db)
    hasher = get_hasher(auth_settings.password_hasher, bcrypt_rounds=auth_settings.bcrypt_rounds)
    credential_service = CredentialService(user_store, password_hasher=hasher)
    session_store = AuthSessionStore(ttl_seconds=auth_settings.session_ttl_seconds)
    session_gate = SessionGate(session_store)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:  # pragma: no cover
        session_store.start_cleanup()
        yield
        await session_store.stop_cleanup()
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={HTTPException: _make_auth_error_handler(protected_api_paths)},
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(
        AuthenticationMiddleware,  # type: ignore[arg-type]
        backend=SessionCookieBackend(session_gate, auth_settings.session_cookie_name),
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        allow_credentials=True,
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)  # type: ignore[arg-type]

    app.state.db = db
    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.credential_service = credential_service
    app.state.session_store = session_store
    app.state.session_gate = session_gate

    logger.info("portal server ready", version=settings.app_version)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory portal.server.app:get_app."""
    s = PortalServerSettings()
    auth = AuthSettings()
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, auth_settings=auth)
