"""Pydantic models for the status API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


class CycleStatusResponse(BaseModel):
    """Response model for scrape cycle status."""

    model_config = ConfigDict(from_attributes=True)

    cycles: int
    failures: int
    last_success: datetime | None
    last_duration: float | None
    last_error: str | None
    ready: bool = False


def status_to_response(status: Any, ready: bool) -> CycleStatusResponse:
    """Convert a CycleStatus to CycleStatusResponse."""
    response = CycleStatusResponse.model_validate(status)
    response.ready = ready
    return response
