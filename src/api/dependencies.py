"""FastAPI dependencies for authentication."""

import logging
import secrets

from fastapi import Header, HTTPException, Request, status

from api.models.responses import ErrorCodes
from core.config import EXPORT_API_KEY

logger = logging.getLogger(__name__)


def _auth_error(status_code: int, message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": message, "code": code, "details": []},
    )


async def verify_api_key(
    request: Request,
    x_api_key: str = Header(..., alias="X-API-Key"),
) -> str:
    """
    Check the X-API-Key header against EXPORT_API_KEY.

    Raises:
        HTTPException: 500 if no key is configured, 401 if the key does not match
    """
    if not EXPORT_API_KEY:
        raise _auth_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "API key not configured on server",
            ErrorCodes.INTERNAL_ERROR,
        )

    if not secrets.compare_digest(x_api_key.encode(), EXPORT_API_KEY.encode()):
        client = request.client.host if request.client else "unknown"
        logger.warning("Rejected export request from %s: invalid API key", client)
        raise _auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid or missing API key",
            ErrorCodes.UNAUTHORIZED,
        )

    return x_api_key
