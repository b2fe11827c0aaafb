"""
Helpers shared by route modules.
"""

from typing import Optional
import hmac
from fastapi.responses import JSONResponse
import structlog

from config import settings
from exceptions import AppError, UnauthorizedError

logger = structlog.get_logger(__name__)


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def require_api_key(provided: Optional[str]) -> None:
    """
    Check the X-API-Key header on internal trigger endpoints.

    Open when no API key is configured (local development).
    """
    if not settings.api_key:
        return
    if not provided or not hmac.compare_digest(provided, settings.api_key):
        raise UnauthorizedError()
