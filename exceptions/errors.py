"""
Custom exception classes for the application.

Every error that reaches a route is an AppError subclass carrying an
error code and HTTP status.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SYNC_JOB_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class UnauthorizedError(AppError):
    """Request could not be authenticated (401)."""

    def __init__(
        self,
        message: str = "Invalid or missing credentials",
        code: str = "UNAUTHORIZED",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=401,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# SYNC JOB ERRORS
# ===================

class SyncJobNotFoundError(NotFoundError):
    """Sync job not found."""

    def __init__(self, job_id: str):
        super().__init__(
            resource="Sync job",
            identifier=job_id,
            code="SYNC_JOB_NOT_FOUND"
        )


class StoreNotFoundError(NotFoundError):
    """Connected store not found (by id or shop domain)."""

    def __init__(self, identifier: str):
        super().__init__(
            resource="Store",
            identifier=identifier,
            code="STORE_NOT_FOUND"
        )


class InvalidStatusTransitionError(ValidationError):
    """Invalid sync job status transition."""

    def __init__(self, current_status: str, new_status: str):
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            message=f"Cannot transition from {current_status} to {new_status}",
            details={
                "current_status": current_status,
                "new_status": new_status,
                "reason": "Status can only move forward, and completed/failed are terminal"
            }
        )


# ===================
# UPSTREAM ERRORS
# ===================

class UpstreamFetchError(ExternalServiceError):
    """Shopify catalog request failed (non-2xx or transport error)."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.upstream_status = status
        super().__init__(
            service="shopify",
            message=message,
            details={"upstream_status": status, **(details or {})}
        )


class CardLookupError(ExternalServiceError):
    """YGOProDeck lookup failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="ygoprodeck",
            message=message,
            details=details
        )


# ===================
# WEBHOOK ERRORS
# ===================

class WebhookSignatureError(UnauthorizedError):
    """Webhook HMAC did not verify."""

    def __init__(self, topic: Optional[str] = None):
        super().__init__(
            code="WEBHOOK_SIGNATURE_INVALID",
            message="Webhook signature verification failed",
            details={"topic": topic}
        )


class WebhookNotConfiguredError(AppError):
    """No webhook secret configured, so nothing can be verified."""

    def __init__(self):
        super().__init__(
            code="WEBHOOK_NOT_CONFIGURED",
            message="SHOPIFY_WEBHOOK_SECRET is not configured",
            status_code=500
        )


class WebhookPayloadError(ValidationError):
    """Webhook body could not be parsed."""

    def __init__(self, topic: Optional[str], reason: str):
        super().__init__(
            code="WEBHOOK_PAYLOAD_INVALID",
            message=f"Invalid webhook payload: {reason}",
            details={"topic": topic}
        )
