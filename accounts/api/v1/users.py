"""User endpoints: email verification and password flows."""

from typing import Annotated

from fastapi import APIRouter, Depends

from accounts.api.v1.deps import (
    Principal,
    get_account_service,
    get_verification_base_url,
    require_principal,
)
from accounts.schemas.envelope import ApiResponse, ok
from accounts.schemas.users import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from accounts.services.accounts import AccountService

router = APIRouter()


# Registered twice so a missing token reaches the service (400) instead of a 404.
@router.get("/verify-email", response_model=ApiResponse[None], include_in_schema=False)
@router.get("/verify-email/{token}", response_model=ApiResponse[None])
def verify_email(
    accounts: Annotated[AccountService, Depends(get_account_service)],
    token: str | None = None,
) -> ApiResponse:
    """Consume an email verification token. 489 if it is unknown or expired."""
    accounts.verify_email(token)
    return ok(200, "Email verified successfully!")


@router.post("/resend-verification-email", response_model=ApiResponse[None])
def resend_verification_email(
    principal: Annotated[Principal, Depends(require_principal)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
    verification_base_url: Annotated[str, Depends(get_verification_base_url)],
) -> ApiResponse:
    """Issue a fresh verification link; earlier links stop working."""
    accounts.resend_verification_email(principal.username, verification_base_url)
    return ok(200, "Verification email sent successfully!")


@router.post("/forgot-password", response_model=ApiResponse[None])
def forgot_password(
    body: ForgotPasswordRequest,
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> ApiResponse:
    accounts.forgot_password(body.email)
    return ok(200, "Password reset email sent successfully!")


@router.post("/reset-password", response_model=ApiResponse[None], include_in_schema=False)
@router.post("/reset-password/{token}", response_model=ApiResponse[None])
def reset_password(
    body: ResetPasswordRequest,
    accounts: Annotated[AccountService, Depends(get_account_service)],
    token: str | None = None,
) -> ApiResponse:
    """Set a new password with a reset token. 489 if the token is unknown or expired."""
    accounts.reset_password(token, body.new_password, body.confirm_password)
    return ok(200, "Password reset successfully!")


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    body: ChangePasswordRequest,
    principal: Annotated[Principal, Depends(require_principal)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> ApiResponse:
    accounts.change_password(
        principal.username,
        body.old_password,
        body.new_password,
        body.confirm_password,
    )
    return ok(200, "Password changed successfully!")
