"""
Business logic services.

Each service handles one stage of the sync pipeline.
"""

from services.matcher_service import CardMatcher, MatchSession, get_card_matcher
from services.task_queue import TaskQueue, HttpTaskQueue, ThreadTaskQueue, get_task_queue
from services.batch_processor_service import BatchProcessor, get_batch_processor
from services.sync_job_service import SyncJobService, get_sync_job_service
from services.webhook_service import WebhookService, get_webhook_service
from services.match_sweep_service import MatchSweepService, get_match_sweep_service
from services.inventory_search_service import InventorySearchService, get_inventory_search_service

__all__ = [
    "CardMatcher",
    "MatchSession",
    "get_card_matcher",
    "TaskQueue",
    "HttpTaskQueue",
    "ThreadTaskQueue",
    "get_task_queue",
    "BatchProcessor",
    "get_batch_processor",
    "SyncJobService",
    "get_sync_job_service",
    "WebhookService",
    "get_webhook_service",
    "MatchSweepService",
    "get_match_sweep_service",
    "InventorySearchService",
    "get_inventory_search_service",
]
