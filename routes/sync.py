"""
Catalog sync routes.

POST /api/sync/start                      start a full sync for a store
GET  /api/sync/jobs/{job_id}              poll job progress
POST /api/sync/jobs/{job_id}/process      process the next page (trigger endpoint)
POST /api/sync/stores/{store_id}/match    sweep unmatched items
"""

from fastapi import APIRouter, Header, Query
from typing import Optional
import structlog

from models.catalog_item import SweepResult
from models.sync_job import BatchResult, StartSyncRequest, StartSyncResponse, SyncJobResponse
from routes.common import handle_error, require_api_key
from services.batch_processor_service import get_batch_processor
from services.match_sweep_service import get_match_sweep_service
from services.sync_job_service import get_sync_job_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/start", response_model=StartSyncResponse, status_code=202)
async def start_sync(data: StartSyncRequest):
    """
    Start a full catalog sync.

    Returns as soon as the job exists; batches run in the background.

    Raises:
        404: Store not connected
        503: Shopify count request failed (no job created)
    """
    try:
        service = get_sync_job_service()
        return service.start_sync(data.store_id)

    except Exception as e:
        return handle_error(e)


@router.get("/jobs/{job_id}", response_model=SyncJobResponse)
async def get_job(job_id: str):
    """
    Get sync job progress.

    Raises:
        404: Job not found
    """
    try:
        service = get_sync_job_service()
        return service.get_job(job_id)

    except Exception as e:
        return handle_error(e)


@router.post("/jobs/{job_id}/process", response_model=BatchResult)
def process_batch(
    job_id: str,
    x_api_key: Optional[str] = Header(None)
):
    """
    Process the next page of a sync job.

    Idempotent for finished jobs. Declared sync so the blocking batch runs
    in FastAPI's threadpool.

    Raises:
        401: Missing/invalid API key (when configured)
        404: Job or store not found
        503: Shopify fetch failed (job is now failed)
    """
    try:
        require_api_key(x_api_key)
        return get_batch_processor().process_batch(job_id)

    except Exception as e:
        return handle_error(e)


@router.post("/stores/{store_id}/match", response_model=SweepResult)
def sweep_unmatched(
    store_id: str,
    after_id: Optional[int] = Query(None, ge=0, description="Resume after this catalog item id"),
    x_api_key: Optional[str] = Header(None)
):
    """
    Try to match one page of the store's unmatched catalog items.

    Queues the next page itself when more remain.
    """
    try:
        require_api_key(x_api_key)
        return get_match_sweep_service().sweep_unmatched(store_id, after_id=after_id)

    except Exception as e:
        return handle_error(e)
