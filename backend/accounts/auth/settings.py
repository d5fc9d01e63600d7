"""Auth settings for the credential service and session handling."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from accounts.auth.password import DEFAULT_BCRYPT_ROUNDS
from accounts.auth.session_store import DEFAULT_SESSION_TTL_SECONDS


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_"}

    # SQLite database file path
    database_path: str = "backend/accounts.db"

    # "simple" is for tests only
    password_hasher: Literal["bcrypt", "simple"] = "bcrypt"
    bcrypt_rounds: int = Field(default=DEFAULT_BCRYPT_ROUNDS, ge=4, le=31)

    session_ttl_seconds: int = Field(default=DEFAULT_SESSION_TTL_SECONDS, gt=0)
    session_cookie_name: str = Field(default="session_id", min_length=1)

    # Cookie Secure flag -- True in production, False for local dev (HTTP)
    cookie_secure: bool = False
