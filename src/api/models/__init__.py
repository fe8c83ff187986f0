"""API Pydantic models."""

from .responses import (
    ErrorCodes,
    ErrorResponse,
    FilterParams,
    HealthResponse,
    MonthExportRequest,
    OrganizedExportRequest,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "FilterParams",
    "MonthExportRequest",
    "OrganizedExportRequest",
]
