"""Password hashing and verification (bcrypt)."""

import bcrypt

from accounts.core.config import settings

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 12
NAME_MIN_LEN = 3
NAME_MAX_LEN = 12
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare)."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Built at import so the first unknown-username login costs one compare, like the rest.
DUMMY_PASSWORD_HASH = hash_password("not-a-real-password")


def burn_password_check(plain_password: str) -> None:
    """Spend one bcrypt compare when there is no user, so timing does not reveal it."""
    verify_password(plain_password, DUMMY_PASSWORD_HASH)
