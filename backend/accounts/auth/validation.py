"""Registration input rules.

Checks run in a fixed order and stop at the first failure, so the same input
always produces the same error.
"""

from __future__ import annotations

import re

from accounts.auth.errors import EmptyField, InvalidFormat, TooLong, TooShort

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 500

# non-empty local part without "@", then "@", then a non-empty remainder
EMAIL_PATTERN = re.compile(r"^[^@]+@(.+)$")


def validate_registration(
    username: str,
    email: str,
    password: str,
    description: str | None = None,
) -> tuple[str, str]:
    """Validate registration input and return the trimmed (username, email)."""
    username = validate_username(username)
    email = validate_email(email)
    validate_password(password)
    validate_description(description)
    return username, email


def require_utf8(field: str, value: str) -> None:
    """Reject text that cannot be stored or hashed, such as lone surrogates."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidFormat(field, f"{field.capitalize()} contains invalid characters") from exc


def validate_username(username: str | None) -> str:
    """Username: non-empty after trim, 3-100 chars."""
    trimmed = (username or "").strip()
    if not trimmed:
        raise EmptyField("username", "Username cannot be empty")
    require_utf8("username", trimmed)
    if len(trimmed) < USERNAME_MIN_LENGTH:
        raise TooShort("username", f"Username must be at least {USERNAME_MIN_LENGTH} characters")
    if len(trimmed) > USERNAME_MAX_LENGTH:
        raise TooLong("username", f"Username must not exceed {USERNAME_MAX_LENGTH} characters")
    return trimmed


def validate_email(email: str | None) -> str:
    """Email: non-empty after trim, at most 255 chars, ``local@domain`` shape."""
    trimmed = (email or "").strip()
    if not trimmed:
        raise EmptyField("email", "Email cannot be empty")
    require_utf8("email", trimmed)
    if len(trimmed) > EMAIL_MAX_LENGTH:
        raise TooLong("email", f"Email must not exceed {EMAIL_MAX_LENGTH} characters")
    if not EMAIL_PATTERN.match(trimmed):
        raise InvalidFormat("email", "Invalid email format")
    return trimmed


def validate_password(password: str | None) -> None:
    """Password: 6-255 chars, not trimmed."""
    if not password:
        raise EmptyField("password", "Password cannot be empty")
    require_utf8("password", password)
    if len(password) < PASSWORD_MIN_LENGTH:
        raise TooShort("password", f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise TooLong("password", f"Password must not exceed {PASSWORD_MAX_LENGTH} characters")


def validate_description(description: str | None) -> None:
    if description is None:
        return
    require_utf8("description", description)
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise TooLong("description", f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters")
