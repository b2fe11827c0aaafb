"""
sync_jobs table access.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog
from supabase import Client

from config import get_supabase_client
from exceptions import DatabaseError
from models.sync_job import SyncJobResponse, SyncStatus

logger = structlog.get_logger(__name__)


class SyncJobRepository:
    """Reads and writes sync job rows."""

    def __init__(self, client: Optional[Client] = None):
        self.db = client or get_supabase_client()
        self.table = "sync_jobs"

    def get(self, job_id: str) -> Optional[SyncJobResponse]:
        """
        Get a job by id.

        Returns:
            SyncJobResponse or None if no such job
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", job_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_sync_job_failed", job_id=job_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return SyncJobResponse(**result.data[0])

    def create(self, store_id: str, total_items: int) -> SyncJobResponse:
        """Insert a pending job with zeroed counters."""
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "store_id": store_id,
                    "status": SyncStatus.PENDING.value,
                    "total_items": total_items,
                    "processed_items": 0,
                    "failed_items": 0,
                    "cursor": None,
                    "started_at": datetime.now(timezone.utc).isoformat(),
                })
                .execute()
            )
        except Exception as e:
            logger.error("create_sync_job_failed", store_id=store_id, error=str(e))
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", "No data returned")
        return SyncJobResponse(**result.data[0])

    def update(self, job_id: str, fields: dict) -> None:
        """Patch a job row."""
        try:
            self.db.table(self.table).update(fields).eq("id", job_id).execute()
        except Exception as e:
            logger.error(
                "update_sync_job_failed",
                job_id=job_id,
                fields=sorted(fields),
                error=str(e)
            )
            raise DatabaseError("update", str(e))
