"""
Batch processor: one page of a sync job per invocation.

Each call loads the job, fetches the page at the stored cursor, matches
titles to cards, upserts the page in one write, records progress and then
enqueues itself for the next page. All state between calls lives in the
sync_jobs row.

Note: progress is persisted after the page upsert. If the process dies in
between, the retry re-fetches the same page. The upsert makes that
harmless for catalog rows, but processed_items can then overcount.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Optional
import structlog

from config import settings
from exceptions import (
    AppError,
    InvalidStatusTransitionError,
    StoreNotFoundError,
    SyncJobNotFoundError,
)
from integrations.shopify import ShopifyClient
from models.catalog_item import rows_from_shopify_product
from models.match import MatchResult
from models.sync_job import (
    BatchResult,
    SyncJobResponse,
    SyncStatus,
    is_valid_sync_status_transition,
)
from models.webhook import StoreCredentials
from repositories import CatalogItemRepository, StoreRepository, SyncJobRepository
from services.matcher_service import CardMatcher, MatchSession
from services.task_queue import TaskQueue, get_task_queue

logger = structlog.get_logger(__name__)


class BatchProcessor:
    """
    Processes sync jobs one page at a time.

    Dependencies are injected; defaults build them from the shared
    Supabase client and settings.
    """

    def __init__(
        self,
        jobs: Optional[SyncJobRepository] = None,
        stores: Optional[StoreRepository] = None,
        catalog: Optional[CatalogItemRepository] = None,
        matcher: Optional[CardMatcher] = None,
        task_queue: Optional[TaskQueue] = None,
        shopify_factory: Optional[Callable[[StoreCredentials], ShopifyClient]] = None,
        page_size: Optional[int] = None,
        match_workers: Optional[int] = None,
        auto_match: Optional[bool] = None
    ):
        self.jobs = jobs or SyncJobRepository()
        self.stores = stores or StoreRepository()
        self.catalog = catalog or CatalogItemRepository()
        self.matcher = matcher or CardMatcher()
        self.task_queue = task_queue or get_task_queue()
        self.shopify_factory = shopify_factory or ShopifyClient
        self.page_size = page_size or settings.sync_page_size
        self.match_workers = match_workers or settings.match_workers
        self.auto_match = settings.auto_match_after_sync if auto_match is None else auto_match

    # ===================
    # ENTRY POINT
    # ===================

    def process_batch(self, job_id: str) -> BatchResult:
        """
        Process the next page of a sync job.

        Safe to call repeatedly: terminal jobs return immediately.

        Args:
            job_id: Sync job UUID

        Returns:
            BatchResult with progress and whether more pages remain

        Raises:
            SyncJobNotFoundError: Unknown job
            StoreNotFoundError: Job's store no longer connected
            UpstreamFetchError: Shopify fetch failed (job marked failed)
            DatabaseError: Catalog upsert failed (job marked failed)
        """
        job = self.jobs.get(job_id)
        if job is None:
            raise SyncJobNotFoundError(job_id)

        logger.info(
            "batch_started",
            job_id=job_id,
            status=job.status.value,
            processed=job.processed_items,
            total=job.total_items
        )

        if job.is_terminal:
            logger.info("batch_skipped_terminal_job", job_id=job_id, status=job.status.value)
            return self._result(job, job.processed_items, done=True, has_more=False)

        store = self.stores.get_by_id(job.store_id)
        if store is None:
            raise StoreNotFoundError(job.store_id)

        if job.status == SyncStatus.PENDING:
            self._set_status(job, SyncStatus.PROCESSING)

        try:
            page = self.shopify_factory(store).list_products(
                page_info=job.cursor,
                limit=self.page_size
            )
            matches = self._match_titles(page.products)

            rows = []
            skipped = 0
            for product, match in zip(page.products, matches):
                product_rows, product_skipped = rows_from_shopify_product(store.store_id, product, match)
                rows.extend(product_rows)
                skipped += product_skipped

            self.catalog.upsert_many(rows)
        except AppError as e:
            self._fail(job, e.message)
            raise
        except Exception as e:
            self._fail(job, str(e) or type(e).__name__)
            raise

        new_processed = job.processed_items + len(page.products)
        has_more = page.has_more
        done = not has_more or new_processed >= job.total_items

        update = {
            "processed_items": new_processed,
            "failed_items": job.failed_items + skipped,
            "cursor": page.next_page_info,
        }
        if done:
            self._check_transition(job, SyncStatus.COMPLETED)
            update["status"] = SyncStatus.COMPLETED.value
            update["completed_at"] = datetime.now(timezone.utc).isoformat()
        self.jobs.update(job.id, update)

        logger.info(
            "batch_completed",
            job_id=job_id,
            products=len(page.products),
            rows=len(rows),
            skipped=skipped,
            processed=new_processed,
            total=job.total_items,
            done=done
        )

        if done:
            if self.auto_match:
                self.task_queue.enqueue_match_sweep(job.store_id)
        else:
            self.task_queue.enqueue_batch(job.id)

        job.processed_items = new_processed
        job.failed_items += skipped
        job.status = SyncStatus.COMPLETED if done else SyncStatus.PROCESSING
        return self._result(job, new_processed, done=done, has_more=has_more)

    # ===================
    # HELPERS
    # ===================

    def _match_titles(self, products: list[dict]) -> list[MatchResult]:
        """
        Resolve every product title with bounded concurrency.

        One MatchSession per batch, so repeated titles on a page cost one
        lookup and nothing leaks into other jobs.
        """
        if not products:
            return []

        session = MatchSession()
        workers = min(self.match_workers, len(products))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="match") as executor:
            matches = list(executor.map(
                lambda product: self.matcher.resolve(product.get("title") or "", session),
                products
            ))

        logger.debug(
            "batch_titles_matched",
            products=len(products),
            matched=sum(1 for m in matches if m.found),
            session_hits=session.hits
        )
        return matches

    @staticmethod
    def _check_transition(job: SyncJobResponse, new: SyncStatus) -> None:
        if not is_valid_sync_status_transition(job.status, new):
            raise InvalidStatusTransitionError(job.status.value, new.value)

    def _set_status(self, job: SyncJobResponse, new: SyncStatus) -> None:
        self._check_transition(job, new)
        self.jobs.update(job.id, {"status": new.value})
        job.status = new

    def _fail(self, job: SyncJobResponse, message: str) -> None:
        """Mark the job failed. Errors writing the failure are logged, not raised."""
        logger.error("batch_failed", job_id=job.id, error=message)
        try:
            self.jobs.update(job.id, {
                "status": SyncStatus.FAILED.value,
                "error_message": message,
            })
            job.status = SyncStatus.FAILED
        except Exception as e:
            logger.warning("batch_failure_not_recorded", job_id=job.id, error=str(e))

    @staticmethod
    def _result(job: SyncJobResponse, processed: int, done: bool, has_more: bool) -> BatchResult:
        return BatchResult(
            job_id=job.id,
            status=job.status,
            processed=processed,
            total=job.total_items,
            done=done,
            has_more=has_more,
            failed=job.failed_items,
        )


# Singleton instance for convenience
_batch_processor: Optional[BatchProcessor] = None


def get_batch_processor() -> BatchProcessor:
    """Get or create BatchProcessor instance."""
    global _batch_processor
    if _batch_processor is None:
        _batch_processor = BatchProcessor()
    return _batch_processor
