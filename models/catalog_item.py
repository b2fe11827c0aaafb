"""
Catalog item schemas (mirrored Shopify variants).

One row per variant, unique on (store_id, external_variant_id).
"""

from pydantic import Field, ValidationError, field_validator
from typing import Any, Optional
from datetime import datetime, timezone
import structlog

from models.base import BaseSchema
from models.match import MatchResult
from utils.text_utils import extract_candidate_name, normalize_card_name

logger = structlog.get_logger(__name__)

CATALOG_CONFLICT_KEY = "store_id,external_variant_id"

# Shopify's placeholder for products without options
DEFAULT_VARIANT_TITLE = "Default Title"

MATCH_FIELDS = (
    "matched_card_id",
    "matched_card_name",
    "normalized_card_name",
    "match_confidence",
)


class CatalogItemRow(BaseSchema):
    """A row of the catalog_items table."""

    store_id: str
    external_product_id: str
    external_variant_id: str
    title: str
    variant_title: Optional[str] = None
    price: float = Field(0.0, ge=0)
    inventory_qty: int = 0
    sku: Optional[str] = None
    images: list[dict[str, Any]] = Field(default_factory=list)
    matched_card_id: Optional[int] = None
    matched_card_name: Optional[str] = None
    normalized_card_name: str = ""
    match_confidence: Optional[float] = None
    updated_at: Optional[datetime] = None

    @field_validator("sku", "variant_title", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Shopify sends "" for unset strings."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("inventory_qty", mode="before")
    @classmethod
    def missing_inventory_is_zero(cls, v):
        return v or 0

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


def match_fields(match: MatchResult, title: str) -> dict:
    """
    Columns describing a match outcome.

    Unmatched rows still get a normalized_card_name (from the extracted
    candidate) so inventory search can find them by name.
    """
    if match.found:
        return {
            "matched_card_id": match.card_id,
            "matched_card_name": match.name,
            "normalized_card_name": normalize_card_name(match.name),
            "match_confidence": match.confidence,
        }
    return {
        "matched_card_id": None,
        "matched_card_name": None,
        "normalized_card_name": normalize_card_name(extract_candidate_name(title)),
        "match_confidence": None,
    }


def rows_from_shopify_product(
    store_id: str,
    product: dict,
    match: MatchResult,
    existing: Optional[dict[str, dict]] = None,
) -> tuple[list[dict], int]:
    """
    Transform one Shopify product into catalog rows.

    Args:
        store_id: Connected store UUID
        product: Shopify product payload (with variants and images)
        match: Matcher outcome for the product title
        existing: Optional {variant_id: match columns} to carry forward
            instead of the new match (used by webhook updates)

    Returns:
        Tuple of (rows ready for upsert, number of variants skipped)
    """
    title = product.get("title") or ""
    images = product.get("images") or []
    if not images and match.found and match.image_url:
        images = [{"src": match.image_url}]

    new_match = match_fields(match, title)
    now = datetime.now(timezone.utc)

    rows = []
    skipped = 0
    for variant in product.get("variants") or []:
        try:
            variant_id = str(variant["id"])
            variant_title = variant.get("title")
            carried = (existing or {}).get(variant_id)
            row = CatalogItemRow(
                store_id=store_id,
                external_product_id=str(product["id"]),
                external_variant_id=variant_id,
                title=title,
                variant_title=None if variant_title == DEFAULT_VARIANT_TITLE else variant_title,
                price=float(variant.get("price") or 0),
                inventory_qty=variant.get("inventory_quantity"),
                sku=variant.get("sku"),
                images=images,
                updated_at=now,
                **(carried if carried is not None else new_match),
            )
            rows.append(row.to_row())
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            skipped += 1
            logger.warning(
                "catalog_variant_skipped",
                product_id=product.get("id"),
                variant_id=variant.get("id") if isinstance(variant, dict) else None,
                error=str(e)
            )

    return rows, skipped


# ===================
# INVENTORY SEARCH
# ===================

class InventorySearchRequest(BaseSchema):
    """Lookup of several card names in one store's inventory."""

    shop_domain: str = Field(..., min_length=1, examples=["my-shop.myshopify.com"])
    card_names: list[str] = Field(..., min_length=1, max_length=200)


class InventoryHit(BaseSchema):
    """One stocked variant answering a card name."""

    product_id: str
    variant_id: str
    title: str
    matched_card_name: Optional[str] = None
    price: float = 0.0
    inventory_qty: int = 0
    available: bool = False
    sku: Optional[str] = None
    image: Optional[str] = None
    set_code: Optional[str] = None
    rarity: Optional[str] = None
    condition: Optional[str] = None
    edition: Optional[str] = None


class InventorySearchResponse(BaseSchema):
    results: dict[str, list[InventoryHit]]


class SweepResult(BaseSchema):
    """Outcome of one unmatched-item sweep page."""

    store_id: str
    examined: int = 0
    matched: int = 0
    unmatched: int = 0
    last_id: Optional[int] = None
    has_more: bool = False
