"""
connected_stores table access (read-only here; rows come from the OAuth flow).
"""

from typing import Optional
import structlog
from supabase import Client

from config import get_supabase_client
from exceptions import DatabaseError
from models.webhook import StoreCredentials

logger = structlog.get_logger(__name__)


class StoreRepository:
    def __init__(self, client: Optional[Client] = None):
        self.db = client or get_supabase_client()
        self.table = "connected_stores"

    def _first(self, column: str, value: str) -> Optional[StoreCredentials]:
        try:
            result = (
                self.db.table(self.table)
                .select("id, shop_domain, access_token")
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_store_failed", column=column, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None

        row = result.data[0]
        return StoreCredentials(
            store_id=str(row["id"]),
            shop_domain=row["shop_domain"],
            access_token=row["access_token"],
        )

    def get_by_id(self, store_id: str) -> Optional[StoreCredentials]:
        return self._first("id", store_id)

    def get_by_domain(self, shop_domain: str) -> Optional[StoreCredentials]:
        return self._first("shop_domain", shop_domain.lower())
