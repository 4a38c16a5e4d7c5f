"""
Session lifecycle: login, logout, and access-token refresh.

A user has at most one live refresh token, stored on the user row. Login
overwrites it (so a new login ends any earlier session), logout clears it,
and refresh only accepts the value currently stored. Refresh does not rotate
the refresh token: it stays valid until logout, a newer login, a password
reset, or its own expiry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from accounts.core.config import settings as default_settings
from accounts.core.errors import (
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    UnauthenticatedError,
)
from accounts.core.security import burn_password_check, verify_password
from accounts.core.tokens import (
    AccessClaims,
    RefreshClaims,
    issue_access_token,
    issue_refresh_token,
    verify_refresh_token,
)
from accounts.models import User

if TYPE_CHECKING:
    from accounts.core.config import Settings
    from accounts.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Invalid username or password."


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: User


@dataclass(frozen=True)
class LogoutResult:
    """clear_cookie tells the HTTP layer to expire the refresh cookie."""

    clear_cookie: bool


def access_claims_for(user: User) -> AccessClaims:
    return AccessClaims(user_id=user.id, username=user.username, role=user.role)


class SessionManager:
    def __init__(self, store: CredentialStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or default_settings

    def login(self, username: str, password: str) -> LoginResult:
        """
        Verify credentials and open a session.

        Unknown username and wrong password fail the same way, and an unknown
        username still costs one bcrypt compare.
        """
        user = self.store.get_by_username(username)
        if user is None:
            burn_password_check(password)
            logger.info("Login failed: unknown username=%s", username)
            raise InvalidCredentialsError(LOGIN_FAILED_MESSAGE)
        if not verify_password(password, user.password_hash):
            logger.info("Login failed: bad password for user_id=%s", user.id)
            raise InvalidCredentialsError(LOGIN_FAILED_MESSAGE)

        access_token = issue_access_token(access_claims_for(user), self.settings)
        refresh_token = issue_refresh_token(
            RefreshClaims(user_id=user.id, username=user.username), self.settings
        )
        # Overwrites any previous refresh token: single active session per user.
        updated = self.store.update(user.id, refresh_token=refresh_token)
        if updated is None:
            raise InvalidCredentialsError(LOGIN_FAILED_MESSAGE)
        logger.info("Login succeeded: user_id=%s", user.id)
        return LoginResult(access_token=access_token, refresh_token=refresh_token, user=updated)

    def logout(self, presented_refresh_token: str | None) -> LogoutResult:
        """Idempotent: an absent or already-invalidated token still succeeds."""
        if not presented_refresh_token:
            return LogoutResult(clear_cookie=False)
        user = self.store.get_by_refresh_token(presented_refresh_token)
        if user is None:
            logger.info("Logout with unknown refresh token; clearing cookie only")
            return LogoutResult(clear_cookie=True)
        # A login that landed after the lookup keeps its new token.
        if self.store.clear_refresh_token(user.id, presented_refresh_token):
            logger.info("Logout: user_id=%s", user.id)
        else:
            logger.info("Logout: user_id=%s already holds a newer session", user.id)
        return LogoutResult(clear_cookie=True)

    def refresh(self, presented_refresh_token: str | None) -> str:
        """Mint a new access token from the stored refresh token."""
        if not presented_refresh_token:
            raise UnauthenticatedError("Refresh token is missing")
        user = self.store.get_by_refresh_token(presented_refresh_token)
        if user is None:
            logger.warning("Refresh rejected: token is not the user's current session")
            raise ForbiddenError("Invalid refresh token")
        try:
            claims = verify_refresh_token(presented_refresh_token, self.settings)
        except InvalidTokenError as e:
            logger.warning("Refresh rejected for user_id=%s: %s", user.id, e.message)
            raise ForbiddenError("Invalid refresh token") from e
        if claims.user_id != user.id or claims.username != user.username:
            logger.warning("Refresh rejected for user_id=%s: claims mismatch", user.id)
            raise ForbiddenError("Invalid refresh token")
        return issue_access_token(access_claims_for(user), self.settings)
