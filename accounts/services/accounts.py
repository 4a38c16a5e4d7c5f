"""
Account lifecycle: registration, email verification, password reset and change.

Verification and reset links carry a one-time token. A token is accepted
only while its SHA-256 digest matches the stored one and its expiry has not
passed; consuming it clears the stored pair, so each link works once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from accounts.core.config import settings as default_settings
from accounts.core.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    ValidationError,
)
from accounts.core.security import hash_password, verify_password
from accounts.core.tokens import hash_one_time_token, issue_one_time_token
from accounts.models import LoginType, Role, User
from accounts.services.credential_store import OneTimeTokenKind, token_pair
from accounts.services.mailer import build_password_reset_email, build_verification_email

if TYPE_CHECKING:
    from accounts.core.config import Settings
    from accounts.services.credential_store import CredentialStore
    from accounts.services.mailer import MailDispatcher

logger = logging.getLogger(__name__)

PASSWORD_MISMATCH = {"path": "confirmPassword", "message": "Passwords do not match"}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def display_name(user: User) -> str:
    return user.first_name or user.username


class AccountService:
    def __init__(
        self,
        store: CredentialStore,
        mail: MailDispatcher,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.mail = mail
        self.settings = settings or default_settings
        self.clock = clock

    def _send_verification(self, user: User, plain_token: str, verification_base_url: str) -> None:
        url = f"{verification_base_url.rstrip('/')}/{plain_token}"
        self.mail.dispatch(
            build_verification_email(user.email, display_name(user), url, self.settings)
        )

    def register(
        self,
        first_name: str,
        last_name: str,
        username: str,
        email: str,
        password: str,
        verification_base_url: str,
    ) -> User:
        """Create an unverified email-login account and mail its verification link."""
        if self.store.find_existing(username, email) is not None:
            raise ConflictError("User with email or username already exists!")

        token = issue_one_time_token(self.settings, now=self.clock())
        user = self.store.create(
            first_name=first_name,
            last_name=last_name,
            username=username,
            email=email,
            password_hash=hash_password(password),
            login_type=LoginType.EMAIL.value,
            role=Role.BASIC.value,
            is_email_verified=False,
            **token_pair(OneTimeTokenKind.EMAIL_VERIFICATION, token.hash, token.expiry),
        )
        logger.info("Registered user_id=%s", user.id)
        self._send_verification(user, token.plain, verification_base_url)
        return user

    def _consume(self, kind: OneTimeTokenKind, plain_token: str, **fields) -> User:
        """Spend a one-time token and apply fields in the same conditional write."""
        token_hash = hash_one_time_token(plain_token)
        now = self.clock()
        user = self.store.find_by_one_time_token(kind, token_hash, now)
        if user is None:
            logger.info("Rejected %s token (unknown or expired)", kind.value)
            raise InvalidTokenError("Invalid or expired token")
        user_id = user.id
        if not self.store.consume_one_time_token(user_id, kind, token_hash, now, **fields):
            logger.info("Rejected %s token for user_id=%s (already used)", kind.value, user_id)
            raise InvalidTokenError("Invalid or expired token")
        return self.store.get_by_id(user_id) or user

    def verify_email(self, plain_token: str | None) -> User:
        if not plain_token:
            raise MissingTokenError("Email verification token is missing")
        user = self._consume(
            OneTimeTokenKind.EMAIL_VERIFICATION, plain_token, is_email_verified=True
        )
        logger.info("Email verified for user_id=%s", user.id)
        return user

    def resend_verification_email(self, username: str, verification_base_url: str) -> None:
        """Replace the verification token (old links stop working) and mail it again."""
        user = self.store.get_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_email_verified:
            raise ConflictError("Email is already verified!")
        token = issue_one_time_token(self.settings, now=self.clock())
        self.store.update(
            user.id,
            **token_pair(OneTimeTokenKind.EMAIL_VERIFICATION, token.hash, token.expiry),
        )
        self._send_verification(user, token.plain, verification_base_url)

    def forgot_password(self, email: str) -> None:
        user = self.store.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found with this email address!")
        token = issue_one_time_token(self.settings, now=self.clock())
        self.store.update(
            user.id,
            **token_pair(OneTimeTokenKind.PASSWORD_RESET, token.hash, token.expiry),
        )
        reset_url = f"{self.settings.FORGOT_PASSWORD_REDIRECT_URL}/{token.plain}"
        self.mail.dispatch(
            build_password_reset_email(user.email, display_name(user), reset_url, self.settings)
        )
        logger.info("Password reset requested for user_id=%s", user.id)

    def reset_password(
        self, plain_token: str | None, new_password: str, confirm_password: str
    ) -> None:
        if not plain_token:
            raise MissingTokenError("Password reset token is missing")
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match", [PASSWORD_MISMATCH])
        # Also end the current session: it was opened with the old password.
        user = self._consume(
            OneTimeTokenKind.PASSWORD_RESET,
            plain_token,
            password_hash=hash_password(new_password),
            refresh_token=None,
        )
        logger.info("Password reset for user_id=%s", user.id)

    def change_password(
        self,
        username: str,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        user = self.store.get_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(old_password, user.password_hash):
            raise InvalidCredentialsError("Old password is incorrect")
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match", [PASSWORD_MISMATCH])
        self.store.update(user.id, password_hash=hash_password(new_password))
        logger.info("Password changed for user_id=%s", user.id)
