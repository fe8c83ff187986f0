"""Health check endpoint."""

import os
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core.config import API_VERSION, DB_PATH

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Report whether the request log database is reachable (200) or not (503)."""
    request_log_available = DB_PATH.is_file() and os.access(DB_PATH, os.W_OK)
    health = HealthResponse(
        status="healthy" if request_log_available else "unhealthy",
        version=API_VERSION,
        request_log_available=request_log_available,
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=None if request_log_available else f"Request log database missing at {DB_PATH}",
    )
    if request_log_available:
        return health
    return JSONResponse(status_code=503, content=health.model_dump())
