"""Auth endpoints: register, login, logout, refresh."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from accounts.api.v1.deps import (
    get_account_service,
    get_session_manager,
    get_verification_base_url,
)
from accounts.core.config import Settings, get_settings
from accounts.schemas.auth import (
    AccessTokenData,
    LoginData,
    LoginRequest,
    PublicUser,
    RegisterRequest,
)
from accounts.schemas.envelope import ApiResponse, ok
from accounts.services.accounts import AccountService
from accounts.services.sessions import SessionManager

router = APIRouter()


def _set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        max_age=settings.REFRESH_COOKIE_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


@router.post("/register", response_model=ApiResponse[None], status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    accounts: Annotated[AccountService, Depends(get_account_service)],
    verification_base_url: Annotated[str, Depends(get_verification_base_url)],
) -> ApiResponse:
    """
    Create an account and send its email verification link.

    The verification mail is sent in the background; a delivery failure
    does not fail registration.
    """
    accounts.register(
        first_name=body.first_name,
        last_name=body.last_name,
        username=body.username,
        email=body.email,
        password=body.password,
        verification_base_url=verification_base_url,
    )
    return ok(status.HTTP_201_CREATED, "User created successfully!")


@router.post("/login", response_model=ApiResponse[LoginData], status_code=status.HTTP_201_CREATED)
def login(
    body: LoginRequest,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ApiResponse:
    """
    Authenticate with username and password.

    Returns an access token in the body (send it as `Authorization: Bearer
    <token>`) and sets the refresh token as an HTTP-only cookie. A new login
    ends any earlier session of the same user.
    """
    result = sessions.login(body.username, body.password)
    _set_refresh_cookie(response, result.refresh_token, settings)
    data = LoginData(
        access_token=result.access_token,
        user=PublicUser.model_validate(result.user),
    )
    return ok(status.HTTP_201_CREATED, "Login successful!", data)


@router.get("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """End the session identified by the refresh cookie. Always 204."""
    result = sessions.logout(request.cookies.get(settings.REFRESH_COOKIE_NAME))
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    if result.clear_cookie:
        _clear_refresh_cookie(response, settings)
    return response


@router.get("/refresh", response_model=ApiResponse[AccessTokenData], status_code=status.HTTP_201_CREATED)
def refresh(
    request: Request,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ApiResponse:
    """Mint a new access token from the refresh cookie (401 if absent, 403 if rejected)."""
    access_token = sessions.refresh(request.cookies.get(settings.REFRESH_COOKIE_NAME))
    return ok(status.HTTP_201_CREATED, "Success!", AccessTokenData(access_token=access_token))
