"""Error taxonomy for account registration, login, and session checks.

Every error carries a human-readable message suitable for showing to the
person filling in the form. The ``code`` class attribute is a stable
machine-readable kind used by the HTTP layer.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for all account errors."""

    code = "account_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(AccountError):
    """A registration or login field failed validation."""

    code = "invalid_input"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class EmptyField(InputValidationError):
    code = "empty_field"


class TooShort(InputValidationError):
    code = "too_short"


class TooLong(InputValidationError):
    code = "too_long"


class InvalidFormat(InputValidationError):
    code = "invalid_format"


class ConflictError(AccountError):
    """The account would duplicate a unique key of an existing account."""

    code = "conflict"


class DuplicateUsername(ConflictError):
    code = "duplicate_username"

    def __init__(self, message: str = "Username already exists") -> None:
        super().__init__(message)


class DuplicateEmail(ConflictError):
    code = "duplicate_email"

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class InvalidCredentials(AccountError):
    """Login failed. The message never reveals which part was wrong."""

    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class AccessDenied(AccountError):
    """No live session backs the request."""

    code = "unauthenticated"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class StoreUnavailable(AccountError):
    """The user store could not be reached or failed mid-operation."""

    code = "store_unavailable"


class CorruptPasswordHash(AccountError):
    """A stored password hash is malformed and cannot be verified."""

    code = "corrupt_password_hash"


class UniqueConstraintViolation(Exception):
    """Raised by a user store when an insert would duplicate a unique key.

    ``field`` is ``"username"`` or ``"email"``. The credential service
    translates this into DuplicateUsername / DuplicateEmail.
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"Unique constraint violated on {field!r}")
        self.field = field
