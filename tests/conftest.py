"""
Shared test fixtures.

The Supabase fake keeps rows in memory and applies the filters the
repositories use, so services can be tested end to end without a
database.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require these at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import re
import threading
from copy import deepcopy
from datetime import datetime
from typing import Optional
from uuid import uuid4

import pytest

from exceptions import CardLookupError, UpstreamFetchError
from integrations.shopify import ProductPage
from repositories import CardRepository, CatalogItemRepository, StoreRepository, SyncJobRepository
from services.matcher_service import CardMatcher
from services.task_queue import TaskQueue

# ===================
# IN-MEMORY SUPABASE
# ===================

STRING_ID_TABLES = {"sync_jobs", "connected_stores"}


class FakeSupabaseResponse:
    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count


class FakeSupabaseQuery:
    """Chainable query that runs against FakeSupabaseClient's tables on execute()."""

    def __init__(self, client: "FakeSupabaseClient", table: str, op: str, payload=None, **options):
        self.client = client
        self.table = table
        self.op = op
        self.payload = payload
        self.options = options
        self.filters = []
        self._order = None
        self._limit = None
        self._range = None

    # Filters

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def gt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] > value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column, value):
        if value == "null":
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) is not None)
        return self

    def ilike(self, column, pattern):
        regex = re.compile(
            "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$",
            re.IGNORECASE
        )
        self.filters.append(lambda row: bool(regex.match(str(row.get(column) or ""))))
        return self

    # Modifiers

    def order(self, column, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def _matches(self, row: dict) -> bool:
        return all(check(row) for check in self.filters)

    def execute(self) -> FakeSupabaseResponse:
        return self.client._execute(self)


class FakeSupabaseTable:
    def __init__(self, client: "FakeSupabaseClient", name: str):
        self.client = client
        self.name = name

    def select(self, *columns, count: Optional[str] = None):
        return FakeSupabaseQuery(self.client, self.name, "select", count=count)

    def insert(self, data):
        return FakeSupabaseQuery(self.client, self.name, "insert", data)

    def upsert(self, data, on_conflict: str = "", ignore_duplicates: bool = False):
        return FakeSupabaseQuery(
            self.client, self.name, "upsert", data,
            on_conflict=on_conflict, ignore_duplicates=ignore_duplicates
        )

    def update(self, data):
        return FakeSupabaseQuery(self.client, self.name, "update", data)

    def delete(self):
        return FakeSupabaseQuery(self.client, self.name, "delete")


class FakeSupabaseClient:
    """
    Stateful stand-in for supabase.Client.

    Usage:
        def test_something(fake_db):
            fake_db.seed("catalog_items", [{...}])
            fake_db.fail_on("catalog_items", "upsert")
            ...
            assert len(fake_db.rows("catalog_items")) == 1
    """

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._next_id = 0
        self._failures: set[tuple[str, str]] = set()
        self._lock = threading.RLock()
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> FakeSupabaseTable:
        return FakeSupabaseTable(self, name)

    # Test helpers

    def seed(self, table: str, rows: list[dict]) -> list[dict]:
        with self._lock:
            stored = [self._with_id(table, dict(row)) for row in rows]
            self._tables.setdefault(table, []).extend(stored)
            return deepcopy(stored)

    def rows(self, table: str) -> list[dict]:
        with self._lock:
            return deepcopy(self._tables.get(table, []))

    def fail_on(self, table: str, op: str) -> None:
        self._failures.add((table, op))

    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[1] != "select"]

    # Execution

    def _with_id(self, table: str, row: dict) -> dict:
        if row.get("id") is None:
            self._next_id += 1
            row["id"] = str(uuid4()) if table in STRING_ID_TABLES else self._next_id
        return row

    def _execute(self, query: FakeSupabaseQuery) -> FakeSupabaseResponse:
        with self._lock:
            self.calls.append((query.table, query.op))
            if (query.table, query.op) in self._failures:
                raise Exception(f"simulated {query.op} failure on {query.table}")

            rows = self._tables.setdefault(query.table, [])
            handler = getattr(self, f"_{query.op}")
            return handler(query, rows)

    def _select(self, query, rows):
        found = [row for row in rows if query._matches(row)]
        total = len(found)
        if query._order:
            column, desc = query._order
            found.sort(key=lambda row: row.get(column), reverse=desc)
        if query._range:
            start, end = query._range
            found = found[start:end + 1]
        if query._limit is not None:
            found = found[:query._limit]
        count = total if query.options.get("count") else None
        return FakeSupabaseResponse(deepcopy(found), count)

    def _insert(self, query, rows):
        payload = query.payload if isinstance(query.payload, list) else [query.payload]
        inserted = []
        for item in payload:
            row = self._with_id(query.table, dict(item))
            row.setdefault("created_at", datetime.utcnow().isoformat() + "Z")
            rows.append(row)
            inserted.append(row)
        return FakeSupabaseResponse(deepcopy(inserted))

    def _upsert(self, query, rows):
        payload = query.payload if isinstance(query.payload, list) else [query.payload]
        keys = [k.strip() for k in (query.options.get("on_conflict") or "id").split(",")]
        written = []
        for item in payload:
            existing = next(
                (row for row in rows if all(row.get(k) == item.get(k) for k in keys)),
                None
            )
            if existing is None:
                row = self._with_id(query.table, dict(item))
                rows.append(row)
                written.append(row)
            elif not query.options.get("ignore_duplicates"):
                existing.update(item)
                written.append(existing)
        return FakeSupabaseResponse(deepcopy(written))

    def _update(self, query, rows):
        updated = []
        for row in rows:
            if query._matches(row):
                row.update(query.payload)
                updated.append(row)
        return FakeSupabaseResponse(deepcopy(updated))

    def _delete(self, query, rows):
        removed = [row for row in rows if query._matches(row)]
        rows[:] = [row for row in rows if not query._matches(row)]
        return FakeSupabaseResponse(deepcopy(removed))


# ===================
# UPSTREAM FAKES
# ===================

class FakeShopifyClient:
    """
    Serves a fixed product list in pages.

    Page n (n > 0) is addressed by the cursor "page-n", mirroring Shopify's
    opaque page_info.
    """

    def __init__(self, products: list[dict] = None, page_size: int = 250, fail_with: Exception = None):
        self.products = products or []
        self.page_size = page_size
        self.fail_with = fail_with
        self.count_calls = 0
        self.list_calls: list[Optional[str]] = []

    def count_products(self) -> int:
        self.count_calls += 1
        if self.fail_with:
            raise self.fail_with
        return len(self.products)

    def list_products(self, page_info: Optional[str] = None, limit: int = 250) -> ProductPage:
        self.list_calls.append(page_info)
        if self.fail_with:
            raise self.fail_with

        index = int(page_info.split("-")[1]) if page_info else 0
        start = index * self.page_size
        chunk = self.products[start:start + self.page_size]
        has_next = start + self.page_size < len(self.products)
        return ProductPage(
            products=deepcopy(chunk),
            next_page_info=f"page-{index + 1}" if has_next else None
        )


class FakeCardLookup:
    """Stand-in for YGOProDeckClient with canned answers."""

    def __init__(self, exact: dict = None, fuzzy: dict = None, fail: bool = False):
        self.exact = {k.lower(): v for k, v in (exact or {}).items()}
        self.fuzzy = {k.lower(): v for k, v in (fuzzy or {}).items()}
        self.fail = fail
        self.exact_calls: list[str] = []
        self.fuzzy_calls: list[str] = []

    @property
    def total_calls(self) -> int:
        return len(self.exact_calls) + len(self.fuzzy_calls)

    def search_exact(self, name: str) -> list[dict]:
        self.exact_calls.append(name)
        if self.fail:
            raise CardLookupError("lookup unavailable")
        return deepcopy(self.exact.get(name.lower(), []))

    def search_fuzzy(self, fragment: str, limit: int = 10) -> list[dict]:
        self.fuzzy_calls.append(fragment)
        if self.fail:
            raise CardLookupError("lookup unavailable")
        return deepcopy(self.fuzzy.get(fragment.lower(), []))[:limit]


class RecordingTaskQueue(TaskQueue):
    """Records continuations instead of running them."""

    def __init__(self):
        self.batches: list[str] = []
        self.sweeps: list[tuple[str, Optional[int]]] = []

    def enqueue_batch(self, job_id: str) -> None:
        self.batches.append(job_id)

    def enqueue_match_sweep(self, store_id: str, after_id: Optional[int] = None) -> None:
        self.sweeps.append((store_id, after_id))


# ===================
# FIXTURES
# ===================

STORE_ID = "store-1"
SHOP_DOMAIN = "duel-cards.myshopify.com"
WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def fake_db() -> FakeSupabaseClient:
    """In-memory Supabase client with one connected store."""
    client = FakeSupabaseClient()
    client.seed("connected_stores", [
        {"id": STORE_ID, "shop_domain": SHOP_DOMAIN, "access_token": "shpat_test_token"},
        {"id": "store-2", "shop_domain": "other-shop.myshopify.com", "access_token": "shpat_other"},
    ])
    return client


@pytest.fixture
def card_lookup() -> FakeCardLookup:
    return FakeCardLookup()


@pytest.fixture
def task_queue() -> RecordingTaskQueue:
    return RecordingTaskQueue()


@pytest.fixture
def card_repo(fake_db) -> CardRepository:
    return CardRepository(fake_db)


@pytest.fixture
def catalog_repo(fake_db) -> CatalogItemRepository:
    return CatalogItemRepository(fake_db)


@pytest.fixture
def job_repo(fake_db) -> SyncJobRepository:
    return SyncJobRepository(fake_db)


@pytest.fixture
def store_repo(fake_db) -> StoreRepository:
    return StoreRepository(fake_db)


@pytest.fixture
def matcher(card_repo, card_lookup) -> CardMatcher:
    return CardMatcher(cards=card_repo, lookup=card_lookup, min_score=50)


@pytest.fixture
def upstream_error() -> UpstreamFetchError:
    return UpstreamFetchError("Shopify API error: 500", status=500)
