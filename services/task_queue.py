"""
Continuation scheduling for the sync pipeline.

A batch never loops over every page in-process. It processes one page and
enqueues "process job X" again, so each invocation finishes inside its own
execution budget. Where that continuation runs is decided here, not in the
batch processor.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
import threading
from typing import Optional
import requests
import structlog

from config import settings

logger = structlog.get_logger(__name__)


class TaskQueue(ABC):
    """Where "continue this work" requests go."""

    @abstractmethod
    def enqueue_batch(self, job_id: str) -> None:
        """Schedule the next batch of a sync job."""

    @abstractmethod
    def enqueue_match_sweep(self, store_id: str, after_id: Optional[int] = None) -> None:
        """Schedule a sweep of a store's unmatched catalog items."""


class HttpTaskQueue(TaskQueue):
    """
    Fire-and-forget POSTs to this service's trigger endpoints.

    Each continuation lands as a fresh request, so it gets a fresh
    execution budget on serverless hosts. The POST runs on a daemon thread;
    the caller returns without waiting for the next batch.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0
    ):
        self.base_url = (base_url or settings.app_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.api_key
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _post(self, path: str, params: Optional[dict] = None) -> None:
        url = f"{self.base_url}{path}"
        try:
            response = requests.post(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.timeout
            )
            if not response.ok:
                logger.error("continuation_rejected", url=url, status=response.status_code)
        except requests.exceptions.ReadTimeout:
            # Request was delivered; the handler is still working on it
            logger.debug("continuation_dispatched", url=url)
        except requests.exceptions.RequestException as e:
            logger.error("continuation_dispatch_failed", url=url, error=str(e))

    def _dispatch(self, path: str, params: Optional[dict] = None) -> None:
        thread = threading.Thread(target=self._post, args=(path, params), daemon=True)
        thread.start()

    def enqueue_batch(self, job_id: str) -> None:
        logger.info("batch_enqueued", job_id=job_id, backend="http")
        self._dispatch(f"/api/sync/jobs/{job_id}/process")

    def enqueue_match_sweep(self, store_id: str, after_id: Optional[int] = None) -> None:
        logger.info("match_sweep_enqueued", store_id=store_id, after_id=after_id, backend="http")
        params = {"after_id": after_id} if after_id is not None else None
        self._dispatch(f"/api/sync/stores/{store_id}/match", params)


class ThreadTaskQueue(TaskQueue):
    """
    Runs continuations on a small in-process executor.

    For single-process deployments and local development, where there is
    no per-request time limit to work around.
    """

    def __init__(self, max_workers: int = 2):
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sync")

    def enqueue_batch(self, job_id: str) -> None:
        logger.info("batch_enqueued", job_id=job_id, backend="thread")
        self.executor.submit(self._run_batch, job_id)

    def enqueue_match_sweep(self, store_id: str, after_id: Optional[int] = None) -> None:
        logger.info("match_sweep_enqueued", store_id=store_id, after_id=after_id, backend="thread")
        self.executor.submit(self._run_sweep, store_id, after_id)

    @staticmethod
    def _run_batch(job_id: str) -> None:
        from services.batch_processor_service import get_batch_processor

        try:
            get_batch_processor().process_batch(job_id)
        except Exception as e:
            # The processor already marked the job failed; nothing awaits this future
            logger.error("queued_batch_failed", job_id=job_id, error=str(e))

    @staticmethod
    def _run_sweep(store_id: str, after_id: Optional[int]) -> None:
        from services.match_sweep_service import get_match_sweep_service

        try:
            get_match_sweep_service().sweep_unmatched(store_id, after_id=after_id)
        except Exception as e:
            logger.error("queued_sweep_failed", store_id=store_id, error=str(e))


_task_queue: Optional[TaskQueue] = None


def get_task_queue() -> TaskQueue:
    """Get or create the configured TaskQueue."""
    global _task_queue
    if _task_queue is None:
        if settings.task_queue_backend == "thread":
            _task_queue = ThreadTaskQueue()
        else:
            _task_queue = HttpTaskQueue()
    return _task_queue
