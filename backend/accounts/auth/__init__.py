"""Account registration, credential checks, and session gating."""

from accounts.auth.errors import (
    AccessDenied,
    AccountError,
    ConflictError,
    CorruptPasswordHash,
    DuplicateEmail,
    DuplicateUsername,
    EmptyField,
    InputValidationError,
    InvalidCredentials,
    InvalidFormat,
    StoreUnavailable,
    TooLong,
    TooShort,
    UniqueConstraintViolation,
)
from accounts.auth.gate import SessionGate
from accounts.auth.models import Account, AuthSession, Identity, NewAccount
from accounts.auth.password import BcryptHasher, PasswordHasher, SimpleHasher, get_hasher
from accounts.auth.service import CredentialService
from accounts.auth.session_store import AuthSessionStore
from accounts.auth.settings import AuthSettings

__all__ = [
    "AccessDenied",
    "Account",
    "AccountError",
    "AuthSession",
    "AuthSessionStore",
    "AuthSettings",
    "BcryptHasher",
    "ConflictError",
    "CorruptPasswordHash",
    "CredentialService",
    "DuplicateEmail",
    "DuplicateUsername",
    "EmptyField",
    "Identity",
    "InputValidationError",
    "InvalidCredentials",
    "InvalidFormat",
    "NewAccount",
    "PasswordHasher",
    "SessionGate",
    "SimpleHasher",
    "StoreUnavailable",
    "TooLong",
    "TooShort",
    "UniqueConstraintViolation",
    "get_hasher",
]
