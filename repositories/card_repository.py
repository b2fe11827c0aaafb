"""
canonical_cards table access: the local card cache.
"""

from typing import Optional
import structlog
from supabase import Client

from config import get_supabase_client
from exceptions import DatabaseError
from models.card import CanonicalCard

logger = structlog.get_logger(__name__)


class CardRepository:
    """
    Cache-aside store for canonical cards.

    Read by the matcher before any remote lookup; written with every card
    the remote lookup returns.
    """

    def __init__(self, client: Optional[Client] = None):
        self.db = client or get_supabase_client()
        self.table = "canonical_cards"

    def search_normalized(self, normalized: str, limit: int = 10) -> list[CanonicalCard]:
        """
        Cards whose normalized_name contains `normalized`.

        `normalized` is already stripped of punctuation, so it is safe to
        embed in an ilike pattern.
        """
        if not normalized:
            return []

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .ilike("normalized_name", f"%{normalized}%")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("card_cache_search_failed", query=normalized, error=str(e))
            raise DatabaseError("select", str(e))

        return [CanonicalCard(**row) for row in result.data or []]

    def upsert_many(self, cards: list[CanonicalCard]) -> int:
        """Upsert cards by id. Duplicate ids in one call are collapsed."""
        rows = list({card.id: card.to_row() for card in cards}.values())
        if not rows:
            return 0

        try:
            self.db.table(self.table).upsert(rows, on_conflict="id").execute()
        except Exception as e:
            logger.error("card_cache_upsert_failed", cards=len(rows), error=str(e))
            raise DatabaseError("upsert", str(e))

        logger.debug("card_cache_upserted", cards=len(rows))
        return len(rows)
