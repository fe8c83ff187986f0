"""Pydantic request and response models for API endpoints."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from models.events import EventFilters


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    request_log_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EXPORT_FAILED = "EXPORT_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FilterParams(BaseModel):
    """Quick and advanced calendar filters."""

    category: str | None = None  # "Blood Drive", "Training", "Advocacy", "Other"
    start_date: date | None = None
    coordinator: str | None = None
    title: str | None = None
    requester: str | None = None

    def to_filters(self) -> EventFilters:
        return EventFilters(**self.model_dump())


class MonthExportRequest(BaseModel):
    """Visual grid / workbook export for one month of raw backend events."""

    year: int = Field(ge=1900, le=9999)
    month_index: int = Field(ge=0, le=11, description="Zero-based month (0 = January)")
    organization_name: str | None = None
    filters: FilterParams | None = None
    payload: Any = Field(default=None, description="Raw backend events payload")


class OrganizedExportRequest(BaseModel):
    """Organized list export for a period of raw backend events."""

    label: str = Field(min_length=1, description="Period label, e.g. 'March 2025'")
    filename: str = Field(min_length=1, pattern=r"^[\w.\- ]+$", description="Output base name")
    start_date: date | None = None
    end_date: date | None = None
    filters: FilterParams | None = None
    payload: Any = Field(default=None, description="Raw backend events payload")
