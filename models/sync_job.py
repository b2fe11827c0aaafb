"""
Sync job schemas and status rules.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema


class SyncStatus(str, Enum):
    """Lifecycle of a catalog sync job."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({SyncStatus.COMPLETED, SyncStatus.FAILED})

# Allowed forward moves. A first batch can fail before it ever starts
# processing, hence PENDING → FAILED.
ALLOWED_TRANSITIONS = {
    SyncStatus.PENDING: {SyncStatus.PROCESSING, SyncStatus.FAILED},
    SyncStatus.PROCESSING: {SyncStatus.PROCESSING, SyncStatus.COMPLETED, SyncStatus.FAILED},
    SyncStatus.COMPLETED: set(),
    SyncStatus.FAILED: set(),
}


def is_terminal(status: SyncStatus) -> bool:
    """Completed and failed jobs never change again."""
    return status in TERMINAL_STATUSES


def is_valid_sync_status_transition(current: SyncStatus, new: SyncStatus) -> bool:
    """
    Check if a sync job status transition is valid.

    Rules:
    - pending → processing → {completed | failed}
    - pending → failed
    - processing → processing (progress update between pages)
    - completed and failed are terminal
    """
    return new in ALLOWED_TRANSITIONS[current]


# ===================
# SCHEMAS
# ===================

class SyncJobResponse(BaseSchema):
    """A sync job row."""

    id: str = Field(..., description="Job UUID")
    store_id: str = Field(..., description="Connected store UUID")
    status: SyncStatus
    total_items: int = Field(0, ge=0, description="Products reported by the upstream count")
    processed_items: int = Field(0, ge=0, description="Products fetched so far")
    failed_items: int = Field(0, ge=0, description="Products skipped as malformed")
    cursor: Optional[str] = Field(None, description="Opaque page_info for the next page")
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def progress_percent(self) -> float:
        if not self.total_items:
            return 100.0 if self.status == SyncStatus.COMPLETED else 0.0
        return round(min(self.processed_items / self.total_items, 1.0) * 100, 1)


class StartSyncRequest(BaseSchema):
    """Request body for starting a sync."""

    store_id: str = Field(..., min_length=1, description="Connected store UUID")


class StartSyncResponse(BaseSchema):
    """Returned as soon as the job row exists and the first batch is queued."""

    job_id: str
    total_items: int
    message: str = ""


class BatchResult(BaseSchema):
    """Outcome of one batch invocation."""

    job_id: str
    status: SyncStatus
    processed: int
    total: int
    done: bool
    has_more: bool
    failed: int = 0
