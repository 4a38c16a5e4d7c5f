"""Request schemas for the users endpoints (password flows)."""

from pydantic import EmailStr, Field, field_validator

from accounts.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from accounts.schemas.base import CamelModel


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class _PasswordPair(CamelModel):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("new_password", "confirm_password", mode="before")
    @classmethod
    def strip_passwords(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class ResetPasswordRequest(_PasswordPair):
    """New password for the reset link; the token travels in the path."""


class ChangePasswordRequest(_PasswordPair):
    old_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("old_password", mode="before")
    @classmethod
    def strip_old_password(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v
