"""
Webhook and store schemas.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema


class WebhookTopic(str, Enum):
    """Shopify webhook topics this service handles."""
    PRODUCT_CREATE = "products/create"
    PRODUCT_UPDATE = "products/update"
    PRODUCT_DELETE = "products/delete"
    INVENTORY_UPDATE = "inventory_levels/update"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["WebhookTopic"]:
        """Return the topic, or None for topics we don't subscribe to."""
        try:
            return cls(value)
        except ValueError:
            return None


class WebhookResult(BaseSchema):
    """What a webhook delivery changed."""

    topic: str
    store_id: Optional[str] = None
    handled: bool = True
    rows_written: int = 0
    rows_deleted: int = 0


class StoreCredentials(BaseSchema):
    """Per-store Shopify access (from connected_stores)."""

    store_id: str
    shop_domain: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1, repr=False)
