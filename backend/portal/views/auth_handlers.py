"""Account endpoints: signup, login, logout, and the dashboard."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError
from starlette.responses import JSONResponse, Response

from accounts.auth.errors import (
    AccountError,
    ConflictError,
    CorruptPasswordHash,
    InputValidationError,
    InvalidCredentials,
    StoreUnavailable,
)
from portal.views.types import LoginRequest, SignupRequest

if TYPE_CHECKING:
    from starlette.requests import Request

    from accounts.auth.models import Account, AuthSession
    from accounts.auth.settings import AuthSettings

logger = structlog.get_logger()

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_ERROR_STATUS: list[tuple[type[AccountError], HTTPStatus]] = [
    (InputValidationError, HTTPStatus.BAD_REQUEST),
    (ConflictError, HTTPStatus.CONFLICT),
    (InvalidCredentials, HTTPStatus.UNAUTHORIZED),
    (StoreUnavailable, HTTPStatus.SERVICE_UNAVAILABLE),
    (CorruptPasswordHash, HTTPStatus.INTERNAL_SERVER_ERROR),
]


class MalformedBody(Exception):
    """The request body could not be read as a JSON object or form."""


async def _read_body(request: Request) -> dict[str, Any]:
    """Return the request body as a dict from JSON or form encoding."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw_body = await request.body()
    if not raw_body.strip():
        return {}
    try:
        body = json.loads(raw_body)
    except ValueError as exc:
        raise MalformedBody("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise MalformedBody("JSON body must be an object")
    return body


def _invalid_body(message: str) -> JSONResponse:
    return JSONResponse({"error": message, "code": "malformed_body"}, status_code=HTTPStatus.UNPROCESSABLE_ENTITY)


def error_response(exc: AccountError) -> JSONResponse:
    """Render an account error as a JSON body with the matching status."""
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    for error_type, error_status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            status = error_status
            break
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("account operation failed", error=exc.message, code=exc.code)
    body: dict[str, str] = {"error": exc.message, "code": exc.code}
    if isinstance(exc, InputValidationError):
        body["field"] = exc.field
    return JSONResponse(body, status_code=status)


def serialize_account(account: Account) -> dict[str, Any]:
    """Public view of an account. The password hash never leaves the server."""
    return account.model_dump(mode="json", exclude={"password_hash"})


def _set_session_cookie(response: Response, session: AuthSession, auth_settings: AuthSettings) -> None:
    response.set_cookie(
        key=auth_settings.session_cookie_name,
        value=session.session_id,
        httponly=True,
        samesite="lax",
        secure=auth_settings.cookie_secure,
        max_age=auth_settings.session_ttl_seconds,
        path="/",
    )


async def signup(request: Request) -> Response:
    """POST /signup - create an account. Does not log the caller in."""
    credential_service = request.app.state.credential_service
    try:
        payload = SignupRequest(**await _read_body(request))
    except MalformedBody as e:
        return _invalid_body(str(e))
    except ValidationError:
        return _invalid_body("Signup fields must be strings")

    try:
        account = await credential_service.register(
            payload.username,
            payload.email,
            payload.password,
            payload.description,
        )
    except AccountError as e:
        return error_response(e)

    return JSONResponse(serialize_account(account), status_code=HTTPStatus.CREATED)


async def login(request: Request) -> Response:
    """POST /login - verify credentials and open a session."""
    credential_service = request.app.state.credential_service
    gate = request.app.state.session_gate
    auth_settings = request.app.state.auth_settings
    try:
        payload = LoginRequest(**await _read_body(request))
    except MalformedBody as e:
        return _invalid_body(str(e))
    except ValidationError:
        return _invalid_body("Login fields must be strings")

    try:
        account = await credential_service.login(payload.username, payload.password)
    except AccountError as e:
        if isinstance(e, InvalidCredentials):
            logger.info("login rejected", username=payload.username.strip())
        return error_response(e)

    # a fresh token on every login; any session the client already held is dropped
    gate.terminate(request.cookies.get(auth_settings.session_cookie_name))
    session = gate.open(account)
    logger.info("session opened", account_id=account.id, username=account.username)

    response = JSONResponse(serialize_account(account))
    _set_session_cookie(response, session, auth_settings)
    return response


async def logout(request: Request) -> Response:
    """POST /logout - end the session and clear the cookie."""
    gate = request.app.state.session_gate
    auth_settings = request.app.state.auth_settings
    cookie_name = auth_settings.session_cookie_name

    session_id = request.cookies.get(cookie_name)
    if session_id:
        identity = gate.check_authenticated(session_id)
        gate.terminate(session_id)
        if identity is not None:
            logger.info("session closed", account_id=identity.account_id, username=identity.username)

    response = JSONResponse({"status": "logged_out"})
    response.delete_cookie(
        cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=auth_settings.cookie_secure,
    )
    return response


async def dashboard(request: Request) -> Response:
    """GET /dashboard - identity of the logged-in account."""
    user = request.user
    return JSONResponse({"account_id": user.account_id, "username": user.username})
