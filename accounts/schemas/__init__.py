"""Pydantic request/response schemas."""

from accounts.schemas.admin import ChangeRoleRequest
from accounts.schemas.auth import (
    AccessTokenData,
    LoginData,
    LoginRequest,
    PublicUser,
    RegisterRequest,
)
from accounts.schemas.envelope import ApiResponse, ErrorResponse
from accounts.schemas.health import HealthResponse
from accounts.schemas.users import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)

__all__ = [
    "AccessTokenData",
    "ApiResponse",
    "ChangePasswordRequest",
    "ChangeRoleRequest",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginData",
    "LoginRequest",
    "PublicUser",
    "RegisterRequest",
    "ResetPasswordRequest",
]
