"""
Deferred sweep over catalog items that are still unmatched.

Queued when a sync job completes. Walks the store's unmatched rows in id
order, one page per invocation, and re-enqueues itself until the end.
Idempotent: rows that match drop out of the unmatched set; rows that
don't are passed by the keyset cursor.
"""

from typing import Optional
import structlog

from config import settings
from models.catalog_item import SweepResult, match_fields
from repositories import CatalogItemRepository
from services.matcher_service import CardMatcher, MatchSession
from services.task_queue import TaskQueue, get_task_queue

logger = structlog.get_logger(__name__)


class MatchSweepService:
    def __init__(
        self,
        catalog: Optional[CatalogItemRepository] = None,
        matcher: Optional[CardMatcher] = None,
        task_queue: Optional[TaskQueue] = None,
        batch_size: Optional[int] = None
    ):
        self.catalog = catalog or CatalogItemRepository()
        self.matcher = matcher or CardMatcher()
        self.task_queue = task_queue or get_task_queue()
        self.batch_size = batch_size or settings.sweep_batch_size

    def sweep_unmatched(
        self,
        store_id: str,
        after_id: Optional[int] = None,
        batch_size: Optional[int] = None,
        continue_in_background: bool = True
    ) -> SweepResult:
        """
        Try to match one page of unmatched items.

        Args:
            store_id: Connected store UUID
            after_id: Resume after this catalog item id
            batch_size: Rows to examine (defaults to settings.sweep_batch_size)
            continue_in_background: Enqueue the next page when one exists

        Returns:
            SweepResult with counts and the cursor for the next page
        """
        limit = batch_size or self.batch_size
        items = self.catalog.list_unmatched(store_id, after_id=after_id, limit=limit)

        session = MatchSession()
        matched = 0
        for item in items:
            match = self.matcher.resolve(item.get("title") or "", session)
            if not match.found:
                continue
            self.catalog.set_match(item["id"], match_fields(match, item.get("title") or ""))
            matched += 1

        last_id = items[-1]["id"] if items else after_id
        has_more = len(items) == limit

        logger.info(
            "match_sweep_page_done",
            store_id=store_id,
            examined=len(items),
            matched=matched,
            last_id=last_id,
            has_more=has_more
        )

        if has_more and continue_in_background:
            self.task_queue.enqueue_match_sweep(store_id, after_id=last_id)

        return SweepResult(
            store_id=store_id,
            examined=len(items),
            matched=matched,
            unmatched=len(items) - matched,
            last_id=last_id,
            has_more=has_more
        )


_match_sweep_service: Optional[MatchSweepService] = None


def get_match_sweep_service() -> MatchSweepService:
    """Get or create MatchSweepService instance."""
    global _match_sweep_service
    if _match_sweep_service is None:
        _match_sweep_service = MatchSweepService()
    return _match_sweep_service
