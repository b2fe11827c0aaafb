"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    UnauthorizedError,
    ExternalServiceError,
    DatabaseError,

    # Sync jobs
    SyncJobNotFoundError,
    StoreNotFoundError,
    InvalidStatusTransitionError,

    # Upstream
    UpstreamFetchError,
    CardLookupError,

    # Webhooks
    WebhookSignatureError,
    WebhookNotConfiguredError,
    WebhookPayloadError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "UnauthorizedError",
    "ExternalServiceError",
    "DatabaseError",

    # Sync jobs
    "SyncJobNotFoundError",
    "StoreNotFoundError",
    "InvalidStatusTransitionError",

    # Upstream
    "UpstreamFetchError",
    "CardLookupError",

    # Webhooks
    "WebhookSignatureError",
    "WebhookNotConfiguredError",
    "WebhookPayloadError",
]
