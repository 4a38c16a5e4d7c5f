"""Uniform response envelope for success and error bodies."""

from typing import Any, Generic, TypeVar

from pydantic import Field

from accounts.schemas.base import CamelModel

DataT = TypeVar("DataT")


class ApiResponse(CamelModel, Generic[DataT]):
    """Success body: {statusCode, status: true, message, data?}."""

    status_code: int = Field(..., description="HTTP status of the response.")
    status: bool = Field(default=True, description="True for success responses.")
    message: str = Field(default="success")
    data: DataT | None = None


class ErrorResponse(CamelModel):
    """Error body: {statusCode, status: false, message, errors, stack?}."""

    status_code: int
    status: bool = False
    message: str
    errors: list[Any] = Field(default_factory=list)
    stack: str | None = None


def ok(status_code: int, message: str, data: Any = None) -> ApiResponse:
    return ApiResponse(status_code=status_code, status=status_code < 400, message=message, data=data)
