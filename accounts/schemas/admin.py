"""Request schemas for admin endpoints."""

from pydantic import Field, field_validator

from accounts.models import Role
from accounts.schemas.base import CamelModel


class ChangeRoleRequest(CamelModel):
    user_id: str = Field(..., min_length=1, description="Id of the user to update")
    role: Role

    @field_validator("user_id", mode="before")
    @classmethod
    def strip_user_id(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v
