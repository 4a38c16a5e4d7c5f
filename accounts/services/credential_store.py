"""
Persistence contract for user credentials and its SQLAlchemy implementation.

Services depend on the CredentialStore protocol only; the HTTP layer wires in
SqlAlchemyCredentialStore bound to the request's DB session.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from accounts.core.errors import ConflictError
from accounts.models import User

logger = logging.getLogger(__name__)


class OneTimeTokenKind(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "reset_password"


# One-time token kind -> (digest column, expiry column) on User.
TOKEN_COLUMNS: dict[OneTimeTokenKind, tuple[str, str]] = {
    OneTimeTokenKind.EMAIL_VERIFICATION: (
        "email_verification_token",
        "email_verification_expiry",
    ),
    OneTimeTokenKind.PASSWORD_RESET: ("reset_password_token", "reset_password_expiry"),
}


def normalize_username(username: str) -> str:
    return username.strip().lower()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def token_pair(kind: OneTimeTokenKind, token_hash: str | None, expiry: datetime | None) -> dict[str, Any]:
    """Update fields that set (or, with None/None, clear) one token pair."""
    token_attr, expiry_attr = TOKEN_COLUMNS[kind]
    return {token_attr: token_hash, expiry_attr: expiry}


def _check_token_pairs(fields: dict[str, Any]) -> None:
    for token_attr, expiry_attr in TOKEN_COLUMNS.values():
        if (token_attr in fields) != (expiry_attr in fields):
            raise ValueError(f"{token_attr} and {expiry_attr} must be updated together")
        if token_attr in fields and (fields[token_attr] is None) != (fields[expiry_attr] is None):
            raise ValueError(f"{token_attr} and {expiry_attr} must both be set or both be cleared")


class CredentialStore(Protocol):
    """Lookup and update of user records by identity fields."""

    def get_by_id(self, user_id: str) -> User | None: ...

    def get_by_username(self, username: str) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def get_by_refresh_token(self, refresh_token: str) -> User | None: ...

    def find_existing(self, username: str, email: str) -> User | None: ...

    def find_by_one_time_token(
        self, kind: OneTimeTokenKind, token_hash: str, now: datetime
    ) -> User | None: ...

    def list_users(self) -> list[User]: ...

    def consume_one_time_token(
        self, user_id: str, kind: OneTimeTokenKind, token_hash: str, now: datetime, **fields: Any
    ) -> int: ...

    def clear_refresh_token(self, user_id: str, refresh_token: str) -> int: ...

    def create(self, **fields: Any) -> User: ...

    def update(self, user_id: str, **fields: Any) -> User | None: ...


class SqlAlchemyCredentialStore:
    """CredentialStore backed by the users table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, user_id: str) -> User | None:
        return self.session.query(User).filter(User.id == user_id).first()

    def get_by_username(self, username: str) -> User | None:
        return (
            self.session.query(User)
            .filter(User.username == normalize_username(username))
            .first()
        )

    def get_by_email(self, email: str) -> User | None:
        return self.session.query(User).filter(User.email == normalize_email(email)).first()

    def get_by_refresh_token(self, refresh_token: str) -> User | None:
        return self.session.query(User).filter(User.refresh_token == refresh_token).first()

    def find_existing(self, username: str, email: str) -> User | None:
        """First user holding either the username or the email."""
        return (
            self.session.query(User)
            .filter(
                or_(
                    User.username == normalize_username(username),
                    User.email == normalize_email(email),
                )
            )
            .first()
        )

    def find_by_one_time_token(
        self, kind: OneTimeTokenKind, token_hash: str, now: datetime
    ) -> User | None:
        """User whose stored digest matches and whose expiry has not passed."""
        token_attr, expiry_attr = TOKEN_COLUMNS[kind]
        token_col = getattr(User, token_attr)
        expiry_col = getattr(User, expiry_attr)
        return (
            self.session.query(User)
            .filter(token_col == token_hash, expiry_col >= now)
            .first()
        )

    def list_users(self) -> list[User]:
        return self.session.query(User).order_by(User.created_at, User.username).all()

    def create(self, **fields: Any) -> User:
        _check_token_pairs(fields)
        fields["username"] = normalize_username(fields["username"])
        fields["email"] = normalize_email(fields["email"])
        user = User(**fields)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same identity.
            self.session.rollback()
            logger.warning("User insert rejected by unique constraint: %s", e.orig)
            raise ConflictError("User with email or username already exists!") from e
        self.session.refresh(user)
        return user

    def update(self, user_id: str, **fields: Any) -> User | None:
        """Single UPDATE keyed by id; returns the fresh row or None if absent."""
        _check_token_pairs(fields)
        count = (
            self.session.query(User)
            .filter(User.id == user_id)
            .update(fields, synchronize_session="fetch")
        )
        self.session.commit()
        if not count:
            return None
        return self.session.get(User, user_id)

    def consume_one_time_token(
        self, user_id: str, kind: OneTimeTokenKind, token_hash: str, now: datetime, **fields: Any
    ) -> int:
        """
        Clear one token pair and apply fields, only while the pair still matches.

        The digest and expiry are re-checked in the UPDATE itself, so of two
        requests holding the same token at most one gets a row back. Returns
        the number of rows written (0 or 1).
        """
        fields.update(token_pair(kind, None, None))
        _check_token_pairs(fields)
        token_attr, expiry_attr = TOKEN_COLUMNS[kind]
        count = (
            self.session.query(User)
            .filter(
                User.id == user_id,
                getattr(User, token_attr) == token_hash,
                getattr(User, expiry_attr) >= now,
            )
            .update(fields, synchronize_session="fetch")
        )
        self.session.commit()
        return count

    def clear_refresh_token(self, user_id: str, refresh_token: str) -> int:
        """Null the stored refresh token if it is still the one presented; 0 if superseded."""
        count = (
            self.session.query(User)
            .filter(User.id == user_id, User.refresh_token == refresh_token)
            .update({"refresh_token": None}, synchronize_session="fetch")
        )
        self.session.commit()
        return count
