"""Typed application errors; accounts.api.errors renders them as the error envelope."""

from typing import Any

# Nonstandard status for one-time tokens that are well-formed but rejected
# (wrong or expired). Clients treat it as "request a new link".
HTTP_489_INVALID_TOKEN = 489


class AppError(Exception):
    """Base for all domain failures: carries HTTP status, message and error details."""

    status_code: int = 500
    default_message: str = "Something went wrong!"

    def __init__(
        self,
        message: str | None = None,
        errors: list[Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input; errors lists the offending fields."""

    status_code = 400
    default_message = "Validation Error"


class MissingTokenError(ValidationError):
    """A one-time token was expected in the path but not supplied."""

    default_message = "Token is missing"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidCredentialsError(AppError):
    status_code = 400
    default_message = "Invalid username or password"


class UnauthenticatedError(AppError):
    """No credential was presented."""

    status_code = 401
    default_message = "Unauthorized!"


class ForbiddenError(AppError):
    """A credential was presented but is invalid, superseded, or lacks the role."""

    status_code = 403
    default_message = "Forbidden!"


class InvalidTokenError(AppError):
    """Token-shaped input that was rejected (bad signature, expired, unknown hash)."""

    status_code = HTTP_489_INVALID_TOKEN
    default_message = "Invalid token"


class InternalError(AppError):
    status_code = 500
    default_message = "Something went wrong!"


class SigningError(InternalError):
    """Raised when a JWT cannot be signed (bad key or algorithm)."""

    default_message = "Could not sign token"
