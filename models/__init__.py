"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.sync_job import (
    SyncStatus,
    TERMINAL_STATUSES,
    is_terminal,
    is_valid_sync_status_transition,
    SyncJobResponse,
    StartSyncRequest,
    StartSyncResponse,
    BatchResult,
)
from models.card import CanonicalCard
from models.match import (
    MatchTier,
    MatchSource,
    CardMatch,
    NoMatch,
    MatchResult,
)
from models.catalog_item import (
    CatalogItemRow,
    CATALOG_CONFLICT_KEY,
    rows_from_shopify_product,
    InventorySearchRequest,
    InventoryHit,
    InventorySearchResponse,
    SweepResult,
)
from models.webhook import (
    WebhookTopic,
    WebhookResult,
    StoreCredentials,
)

__all__ = [
    # Base
    "BaseSchema",

    # Sync jobs
    "SyncStatus",
    "TERMINAL_STATUSES",
    "is_terminal",
    "is_valid_sync_status_transition",
    "SyncJobResponse",
    "StartSyncRequest",
    "StartSyncResponse",
    "BatchResult",

    # Cards
    "CanonicalCard",
    "MatchTier",
    "MatchSource",
    "CardMatch",
    "NoMatch",
    "MatchResult",

    # Catalog
    "CatalogItemRow",
    "CATALOG_CONFLICT_KEY",
    "rows_from_shopify_product",
    "InventorySearchRequest",
    "InventoryHit",
    "InventorySearchResponse",
    "SweepResult",

    # Webhooks / stores
    "WebhookTopic",
    "WebhookResult",
    "StoreCredentials",
]
