"""
catalog_items table access.

Every write that creates rows is an upsert on (store_id, external_variant_id),
so replaying a page or a webhook never duplicates rows.
"""

from typing import Optional
import structlog
from supabase import Client

from config import get_supabase_client
from exceptions import DatabaseError
from models.catalog_item import CATALOG_CONFLICT_KEY, MATCH_FIELDS

logger = structlog.get_logger(__name__)


class CatalogItemRepository:
    """Catalog item persistence for the sync and webhook paths."""

    def __init__(self, client: Optional[Client] = None):
        self.db = client or get_supabase_client()
        self.table = "catalog_items"

    # ===================
    # WRITES
    # ===================

    def upsert_many(self, rows: list[dict]) -> int:
        """
        Bulk upsert rows in a single request.

        Returns:
            Number of rows sent
        """
        if not rows:
            return 0

        try:
            self.db.table(self.table).upsert(
                rows,
                on_conflict=CATALOG_CONFLICT_KEY,
                ignore_duplicates=False
            ).execute()
        except Exception as e:
            logger.error("catalog_upsert_failed", rows=len(rows), error=str(e))
            raise DatabaseError("upsert", str(e), {"rows": len(rows)})

        logger.debug("catalog_upserted", rows=len(rows))
        return len(rows)

    def delete_by_product(self, store_id: str, product_id: str) -> int:
        """Delete every variant row of a product within one store."""
        try:
            result = (
                self.db.table(self.table)
                .delete()
                .eq("store_id", store_id)
                .eq("external_product_id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "catalog_delete_failed",
                store_id=store_id,
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("delete", str(e))

        return len(result.data or [])

    def update_inventory(self, store_id: str, variant_id: str, quantity: int) -> int:
        """Patch inventory_qty only. Returns rows touched."""
        try:
            result = (
                self.db.table(self.table)
                .update({"inventory_qty": quantity})
                .eq("store_id", store_id)
                .eq("external_variant_id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "catalog_inventory_update_failed",
                store_id=store_id,
                variant_id=variant_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        return len(result.data or [])

    def set_match(self, item_id: int, fields: dict) -> None:
        """Write match columns onto an existing row."""
        patch = {k: v for k, v in fields.items() if k in MATCH_FIELDS}
        try:
            self.db.table(self.table).update(patch).eq("id", item_id).execute()
        except Exception as e:
            logger.error("catalog_set_match_failed", item_id=item_id, error=str(e))
            raise DatabaseError("update", str(e))

    # ===================
    # READS
    # ===================

    def get_by_variant_ids(self, store_id: str, variant_ids: list[str]) -> dict[str, dict]:
        """
        Existing rows keyed by external_variant_id.

        Only the columns the webhook update path compares are selected.
        """
        if not variant_ids:
            return {}

        try:
            result = (
                self.db.table(self.table)
                .select("external_variant_id, title, " + ", ".join(MATCH_FIELDS))
                .eq("store_id", store_id)
                .in_("external_variant_id", variant_ids)
                .execute()
            )
        except Exception as e:
            logger.error("catalog_lookup_failed", store_id=store_id, error=str(e))
            raise DatabaseError("select", str(e))

        return {row["external_variant_id"]: row for row in result.data or []}

    def list_unmatched(
        self,
        store_id: str,
        after_id: Optional[int] = None,
        limit: int = 100
    ) -> list[dict]:
        """
        Unmatched rows of a store in id order, starting after `after_id`.

        Keyset pagination so rows that stay unmatched are not revisited.
        """
        try:
            query = (
                self.db.table(self.table)
                .select("id, title")
                .eq("store_id", store_id)
                .is_("matched_card_id", "null")
            )
            if after_id is not None:
                query = query.gt("id", after_id)
            result = query.order("id").limit(limit).execute()
        except Exception as e:
            logger.error("catalog_list_unmatched_failed", store_id=store_id, error=str(e))
            raise DatabaseError("select", str(e))

        return result.data or []

    def find_by_normalized_names(self, store_id: str, names: list[str]) -> list[dict]:
        """Rows whose normalized_card_name is one of `names`."""
        if not names:
            return []

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("store_id", store_id)
                .in_("normalized_card_name", names)
                .execute()
            )
        except Exception as e:
            logger.error("catalog_search_failed", store_id=store_id, error=str(e))
            raise DatabaseError("select", str(e))

        return result.data or []
