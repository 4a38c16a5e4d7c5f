"""Request/response schemas for auth endpoints."""

from pydantic import EmailStr, Field, field_validator

from accounts.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from accounts.schemas.base import CamelModel


def _strip(v: object) -> object:
    return v.strip() if isinstance(v, str) else v


class RegisterRequest(CamelModel):
    """New account details."""

    first_name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    last_name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("first_name", "last_name", "password", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v: object) -> object:
        return _strip(v)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: object) -> object:
        v = _strip(v)
        return v.lower() if isinstance(v, str) else v


class LoginRequest(CamelModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: object) -> object:
        v = _strip(v)
        return v.lower() if isinstance(v, str) else v

    @field_validator("password", mode="before")
    @classmethod
    def strip_password(cls, v: object) -> object:
        return _strip(v)


class PublicUser(CamelModel):
    """User profile safe to return to clients (no hashes or tokens)."""

    id: str
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str
    is_email_verified: bool
    login_type: str


class LoginData(CamelModel):
    access_token: str = Field(..., description="JWT access token (send as Bearer)")
    user: PublicUser


class AccessTokenData(CamelModel):
    access_token: str = Field(..., description="Newly minted JWT access token")
