"""Request payload models for the account endpoints."""

from pydantic import BaseModel, ConfigDict


class SignupRequest(BaseModel):
    """POST /signup body.

    Missing fields default to empty strings so that the credential service
    reports them with its own messages.
    """

    model_config = ConfigDict(extra="ignore", strict=True)

    username: str = ""
    email: str = ""
    password: str = ""
    description: str | None = None


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    username: str = ""
    password: str = ""
