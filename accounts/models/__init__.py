"""SQLAlchemy ORM models."""

from accounts.models.base import Base
from accounts.models.user import LoginType, Role, User

__all__ = ["Base", "LoginType", "Role", "User"]
