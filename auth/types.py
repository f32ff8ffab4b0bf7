"""Pydantic models for the auth domain."""

from pydantic import EmailStr, Field

from core.models.wire import WireModel


class LoginRequest(WireModel):
    """Credentials for POST /auth/login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(WireModel):
    """New account for POST /auth/register."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    company_name: str = Field(..., min_length=1, max_length=200)
    company_slug: str = Field(..., min_length=1, max_length=100, pattern="^[a-z0-9-]+$")


class AuthTokens(WireModel):
    """Tokens issued by the backend."""

    access_token: str
    refresh_token: str | None = None
