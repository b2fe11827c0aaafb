"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.sync import router as sync_router
from routes.webhooks import router as webhooks_router
from routes.cards import router as cards_router

__all__ = [
    "sync_router",
    "webhooks_router",
    "cards_router",
]
