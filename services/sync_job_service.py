"""
Sync job coordinator.

Creates a sync job for a connected store and queues its first batch.
The caller gets the job id back immediately and polls get_job() for
progress.
"""

from typing import Callable, Optional
import structlog

from exceptions import StoreNotFoundError, SyncJobNotFoundError
from integrations.shopify import ShopifyClient
from models.sync_job import StartSyncResponse, SyncJobResponse
from models.webhook import StoreCredentials
from repositories import StoreRepository, SyncJobRepository
from services.task_queue import TaskQueue, get_task_queue

logger = structlog.get_logger(__name__)


class SyncJobService:
    """Starts and reports on catalog sync jobs."""

    def __init__(
        self,
        jobs: Optional[SyncJobRepository] = None,
        stores: Optional[StoreRepository] = None,
        task_queue: Optional[TaskQueue] = None,
        shopify_factory: Optional[Callable[[StoreCredentials], ShopifyClient]] = None
    ):
        self.jobs = jobs or SyncJobRepository()
        self.stores = stores or StoreRepository()
        self.task_queue = task_queue or get_task_queue()
        self.shopify_factory = shopify_factory or ShopifyClient

    def start_sync(
        self,
        store_id: str,
        credentials: Optional[StoreCredentials] = None
    ) -> StartSyncResponse:
        """
        Start a full catalog sync.

        The upstream count is fetched before anything is written, so a
        count failure leaves no job behind.

        Args:
            store_id: Connected store UUID
            credentials: Store access; loaded from connected_stores if omitted

        Returns:
            StartSyncResponse with the new job id and total item count

        Raises:
            StoreNotFoundError: Store is not connected
            UpstreamFetchError: Count request failed (no job created)
            DatabaseError: Job row could not be written
        """
        if credentials is None:
            credentials = self.stores.get_by_id(store_id)
            if credentials is None:
                raise StoreNotFoundError(store_id)

        logger.info("sync_starting", store_id=store_id, shop=credentials.shop_domain)

        total = self.shopify_factory(credentials).count_products()

        job = self.jobs.create(store_id=store_id, total_items=total)
        logger.info("sync_job_created", job_id=job.id, store_id=store_id, total=total)

        self.task_queue.enqueue_batch(job.id)

        return StartSyncResponse(
            job_id=job.id,
            total_items=total,
            message=f"Sync started! Processing {total} products in background."
        )

    def get_job(self, job_id: str) -> SyncJobResponse:
        """
        Get a sync job by id.

        Raises:
            SyncJobNotFoundError: If the job doesn't exist
        """
        job = self.jobs.get(job_id)
        if job is None:
            raise SyncJobNotFoundError(job_id)
        return job


_sync_job_service: Optional[SyncJobService] = None


def get_sync_job_service() -> SyncJobService:
    """Get or create SyncJobService instance."""
    global _sync_job_service
    if _sync_job_service is None:
        _sync_job_service = SyncJobService()
    return _sync_job_service
