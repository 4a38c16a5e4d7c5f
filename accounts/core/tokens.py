"""
Token codec: signed access/refresh JWTs and hashed one-time tokens.

Access and refresh tokens are signed with separate secrets, so a token of one
kind never verifies as the other. One-time tokens (email verification,
password reset) are random values; only their SHA-256 digest and an expiry
are persisted, the plain value goes out by mail.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Literal

import jwt

from accounts.core.config import settings as default_settings
from accounts.core.errors import InvalidTokenError, SigningError

if TYPE_CHECKING:
    from accounts.core.config import Settings

TokenKind = Literal["access", "refresh"]

ONE_TIME_TOKEN_BYTES = 20

# Claims each token kind must carry after decoding.
REQUIRED_CLAIMS: dict[str, tuple[str, ...]] = {
    "access": ("sub", "username", "role", "exp"),
    "refresh": ("sub", "username", "exp"),
}


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    username: str
    role: str


@dataclass(frozen=True)
class RefreshClaims:
    user_id: str
    username: str


@dataclass(frozen=True)
class OneTimeToken:
    """plain goes to the user; hash and expiry are persisted."""

    plain: str
    hash: str
    expiry: datetime


def _secret_for(kind: TokenKind, settings: Settings) -> str:
    if kind == "access":
        return settings.JWT_ACCESS_SECRET.get_secret_value()
    if kind == "refresh":
        return settings.JWT_REFRESH_SECRET.get_secret_value()
    raise ValueError(f"Unknown token kind: {kind!r}")


def _sign(payload: dict[str, Any], kind: TokenKind, expire_minutes: int, settings: Settings) -> str:
    now = datetime.now(UTC)
    payload = {
        **payload,
        "iat": now,
        "exp": now + timedelta(minutes=expire_minutes),
        # Random jti keeps two tokens issued in the same second distinct.
        "jti": secrets.token_hex(16),
    }
    try:
        return jwt.encode(payload, _secret_for(kind, settings), algorithm=settings.JWT_ALGORITHM)
    except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
        raise SigningError(f"Could not sign {kind} token") from e


def issue_access_token(claims: AccessClaims, settings: Settings | None = None) -> str:
    """Sign {sub, username, role} with the access secret and access expiry."""
    settings = settings or default_settings
    return _sign(
        {"sub": claims.user_id, "username": claims.username, "role": claims.role},
        "access",
        settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        settings,
    )


def issue_refresh_token(claims: RefreshClaims, settings: Settings | None = None) -> str:
    """Sign {sub, username} with the refresh secret and refresh expiry."""
    settings = settings or default_settings
    return _sign(
        {"sub": claims.user_id, "username": claims.username},
        "refresh",
        settings.REFRESH_TOKEN_EXPIRE_MINUTES,
        settings,
    )


def decode_token(token: str, kind: TokenKind, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT of the given kind; return the raw payload.

    Bad signature, expiry, malformed input and missing claims all raise
    InvalidTokenError; callers do not need to tell them apart.
    """
    settings = settings or default_settings
    try:
        payload = jwt.decode(
            token,
            _secret_for(kind, settings),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid or expired token") from e
    for claim in REQUIRED_CLAIMS[kind]:
        if not payload.get(claim):
            raise InvalidTokenError("Invalid token payload")
    return payload


def verify_access_token(token: str, settings: Settings | None = None) -> AccessClaims:
    payload = decode_token(token, "access", settings)
    return AccessClaims(
        user_id=str(payload["sub"]),
        username=str(payload["username"]),
        role=str(payload["role"]),
    )


def verify_refresh_token(token: str, settings: Settings | None = None) -> RefreshClaims:
    payload = decode_token(token, "refresh", settings)
    return RefreshClaims(user_id=str(payload["sub"]), username=str(payload["username"]))


def hash_one_time_token(plain: str) -> str:
    """SHA-256 hex digest; used both when issuing and when looking a token up."""
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


def issue_one_time_token(
    settings: Settings | None = None,
    now: datetime | None = None,
) -> OneTimeToken:
    """Generate a random one-time token with its digest and expiry."""
    settings = settings or default_settings
    now = now or datetime.now(UTC)
    plain = secrets.token_hex(ONE_TIME_TOKEN_BYTES)
    return OneTimeToken(
        plain=plain,
        hash=hash_one_time_token(plain),
        expiry=now + timedelta(minutes=settings.ONE_TIME_TOKEN_EXPIRE_MINUTES),
    )
