"""
Unit tests for SyncJobService.

Run: pytest tests/unit/test_sync_job_service.py -v
"""

import pytest

from exceptions import StoreNotFoundError, SyncJobNotFoundError, UpstreamFetchError
from models.sync_job import SyncStatus
from services.sync_job_service import SyncJobService
from tests.conftest import STORE_ID, FakeShopifyClient
from tests.factories import ShopifyProductFactory


def make_service(job_repo, store_repo, task_queue, shopify) -> SyncJobService:
    return SyncJobService(
        jobs=job_repo,
        stores=store_repo,
        task_queue=task_queue,
        shopify_factory=lambda credentials: shopify
    )


class TestStartSync:
    """Tests for SyncJobService.start_sync()"""

    def test_creates_pending_job_and_queues_first_batch(self, fake_db, job_repo, store_repo, task_queue):
        # Arrange
        shopify = FakeShopifyClient(ShopifyProductFactory.create_batch(7))
        service = make_service(job_repo, store_repo, task_queue, shopify)

        # Act
        response = service.start_sync(STORE_ID)

        # Assert
        assert response.total_items == 7
        [row] = fake_db.rows("sync_jobs")
        assert row["id"] == response.job_id
        assert row["status"] == "pending"
        assert row["processed_items"] == 0
        assert row["cursor"] is None
        assert task_queue.batches == [response.job_id]
        assert shopify.list_calls == []

    def test_unknown_store(self, fake_db, job_repo, store_repo, task_queue):
        service = make_service(job_repo, store_repo, task_queue, FakeShopifyClient())

        with pytest.raises(StoreNotFoundError):
            service.start_sync("no-such-store")

        assert fake_db.rows("sync_jobs") == []

    def test_count_failure_creates_no_job(self, fake_db, job_repo, store_repo, task_queue, upstream_error):
        """An upstream count failure should leave no job row behind."""
        shopify = FakeShopifyClient(fail_with=upstream_error)
        service = make_service(job_repo, store_repo, task_queue, shopify)

        with pytest.raises(UpstreamFetchError):
            service.start_sync(STORE_ID)

        assert fake_db.rows("sync_jobs") == []
        assert task_queue.batches == []


class TestGetJob:
    """Tests for SyncJobService.get_job()"""

    def test_returns_job(self, job_repo, store_repo, task_queue):
        service = make_service(job_repo, store_repo, task_queue, FakeShopifyClient())
        created = job_repo.create(STORE_ID, total_items=12)

        job = service.get_job(created.id)

        assert job.status == SyncStatus.PENDING
        assert job.total_items == 12
        assert job.progress_percent == 0.0

    def test_missing_job(self, job_repo, store_repo, task_queue):
        service = make_service(job_repo, store_repo, task_queue, FakeShopifyClient())

        with pytest.raises(SyncJobNotFoundError):
            service.get_job("missing")
