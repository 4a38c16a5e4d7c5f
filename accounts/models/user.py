"""ORM model for user accounts: credentials, session token, one-time token pairs."""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, func

from accounts.models.base import Base


class Role(str, enum.Enum):
    BASIC = "basic"
    ADMIN = "admin"


class LoginType(str, enum.Enum):
    EMAIL = "email"
    EXTERNAL = "external"


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    refresh_token holds the single live refresh token (null when logged out).
    Each one-time token is stored as a (SHA-256 digest, expiry) pair; both
    columns are set and cleared together.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.BASIC.value)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    login_type = Column(String(32), nullable=False, default=LoginType.EMAIL.value)

    refresh_token = Column(String(1024), nullable=True, index=True)

    email_verification_token = Column(String(64), nullable=True, index=True)
    email_verification_expiry = Column(DateTime(timezone=True), nullable=True)
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
