"""
Inventory search: which stocked variants answer a list of card names.

Used by the deck-list lookup widget. Names are compared on the same
normalized form the sync pipeline stores in normalized_card_name.
"""

from typing import Optional
import structlog

from exceptions import StoreNotFoundError
from models.catalog_item import InventoryHit
from repositories import CatalogItemRepository, StoreRepository
from utils.text_utils import (
    extract_condition,
    extract_edition,
    extract_rarity,
    extract_set_code,
    normalize_card_name,
)

logger = structlog.get_logger(__name__)


def to_hit(row: dict) -> InventoryHit:
    """Present a catalog row with attributes read off its title and SKU."""
    title = row.get("title") or ""
    images = row.get("images") or []
    quantity = row.get("inventory_qty") or 0

    return InventoryHit(
        product_id=str(row["external_product_id"]),
        variant_id=str(row["external_variant_id"]),
        title=title,
        matched_card_name=row.get("matched_card_name"),
        price=float(row.get("price") or 0),
        inventory_qty=quantity,
        available=quantity > 0,
        sku=row.get("sku"),
        image=images[0].get("src") if images else None,
        set_code=extract_set_code(title, row.get("sku")),
        rarity=extract_rarity(title) or "Common",
        condition=extract_condition(title),
        edition=extract_edition(title),
    )


class InventorySearchService:
    def __init__(
        self,
        stores: Optional[StoreRepository] = None,
        catalog: Optional[CatalogItemRepository] = None
    ):
        self.stores = stores or StoreRepository()
        self.catalog = catalog or CatalogItemRepository()

    def search(self, shop_domain: str, card_names: list[str]) -> dict[str, list[InventoryHit]]:
        """
        Look up card names in one store.

        Returns:
            {requested name: hits}; names with no stock map to []

        Raises:
            StoreNotFoundError: Shop is not connected
        """
        store = self.stores.get_by_domain(shop_domain)
        if store is None:
            raise StoreNotFoundError(shop_domain)

        wanted = {name: normalize_card_name(name) for name in card_names}
        rows = self.catalog.find_by_normalized_names(
            store.store_id,
            sorted({n for n in wanted.values() if n})
        )

        by_name: dict[str, list[dict]] = {}
        for row in rows:
            by_name.setdefault(row.get("normalized_card_name"), []).append(row)

        results = {
            name: [to_hit(row) for row in by_name.get(normalized, [])]
            for name, normalized in wanted.items()
        }

        logger.info(
            "inventory_searched",
            store_id=store.store_id,
            names=len(card_names),
            found=sum(1 for hits in results.values() if hits)
        )
        return results


_inventory_search_service: Optional[InventorySearchService] = None


def get_inventory_search_service() -> InventorySearchService:
    """Get or create InventorySearchService instance."""
    global _inventory_search_service
    if _inventory_search_service is None:
        _inventory_search_service = InventorySearchService()
    return _inventory_search_service
