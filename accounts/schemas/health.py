"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    version: str = Field(description="Running service version")
    environment: Literal["dev", "prod"] = Field(description="APP_ENV of this instance")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Users database reachability when the check is performed",
    )
