"""
Persistence layer.

Each repository wraps one table and takes its Supabase client in the
constructor, so services receive them explicitly and tests can hand in
an in-memory client.
"""

from repositories.sync_job_repository import SyncJobRepository
from repositories.store_repository import StoreRepository
from repositories.catalog_repository import CatalogItemRepository
from repositories.card_repository import CardRepository

__all__ = [
    "SyncJobRepository",
    "StoreRepository",
    "CatalogItemRepository",
    "CardRepository",
]
