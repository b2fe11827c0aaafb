"""
Unit tests for the repositories against the in-memory Supabase client.

Run: pytest tests/unit/test_repositories.py -v
"""

import pytest

from exceptions import DatabaseError
from models.card import CanonicalCard
from models.catalog_item import rows_from_shopify_product
from models.match import NoMatch
from models.sync_job import SyncStatus
from tests.conftest import SHOP_DOMAIN, STORE_ID
from tests.factories import CardFactory, ShopifyProductFactory


def product_rows(product, store_id=STORE_ID):
    rows, _ = rows_from_shopify_product(store_id, product, NoMatch())
    return rows


class TestCatalogItemRepository:
    """Tests for CatalogItemRepository"""

    def test_upsert_twice_keeps_one_row(self, fake_db, catalog_repo):
        """Should update in place on (store_id, external_variant_id)."""
        # Arrange
        product = ShopifyProductFactory.create(price="1.00")
        catalog_repo.upsert_many(product_rows(product))
        product["variants"][0]["price"] = "2.00"

        # Act
        catalog_repo.upsert_many(product_rows(product))

        # Assert
        [row] = fake_db.rows("catalog_items")
        assert row["price"] == 2.0

    def test_same_variant_in_two_stores(self, fake_db, catalog_repo):
        product = ShopifyProductFactory.create()
        catalog_repo.upsert_many(product_rows(product))
        catalog_repo.upsert_many(product_rows(product, store_id="store-2"))

        assert len(fake_db.rows("catalog_items")) == 2

    def test_upsert_empty_is_noop(self, fake_db, catalog_repo):
        assert catalog_repo.upsert_many([]) == 0
        assert fake_db.writes() == []

    def test_upsert_failure(self, fake_db, catalog_repo):
        fake_db.fail_on("catalog_items", "upsert")

        with pytest.raises(DatabaseError):
            catalog_repo.upsert_many(product_rows(ShopifyProductFactory.create()))

    def test_list_unmatched_keyset(self, fake_db, catalog_repo):
        """Should page unmatched rows in id order after the cursor."""
        for product in ShopifyProductFactory.create_batch(3):
            catalog_repo.upsert_many(product_rows(product))
        rows = fake_db.rows("catalog_items")
        catalog_repo.set_match(rows[1]["id"], {"matched_card_id": 1, "match_confidence": 1.0})

        first = catalog_repo.list_unmatched(STORE_ID, limit=1)
        rest = catalog_repo.list_unmatched(STORE_ID, after_id=first[0]["id"], limit=10)

        assert [r["id"] for r in first] == [rows[0]["id"]]
        assert [r["id"] for r in rest] == [rows[2]["id"]]

    def test_set_match_ignores_other_columns(self, fake_db, catalog_repo):
        catalog_repo.upsert_many(product_rows(ShopifyProductFactory.create(price="3.00")))
        [row] = fake_db.rows("catalog_items")

        catalog_repo.set_match(row["id"], {"matched_card_id": 5, "price": 0})

        [row] = fake_db.rows("catalog_items")
        assert row["matched_card_id"] == 5
        assert row["price"] == 3.0

    def test_get_by_variant_ids(self, catalog_repo):
        product = ShopifyProductFactory.create(variant_count=2)
        catalog_repo.upsert_many(product_rows(product))
        wanted = str(product["variants"][1]["id"])

        found = catalog_repo.get_by_variant_ids(STORE_ID, [wanted, "404"])

        assert list(found) == [wanted]


class TestCardRepository:
    """Tests for CardRepository"""

    def test_upsert_dedupes_by_id(self, fake_db, card_repo):
        card = CanonicalCard.from_api(CardFactory.dark_magician())

        written = card_repo.upsert_many([card, card])
        card_repo.upsert_many([card])

        assert written == 1
        assert len(fake_db.rows("canonical_cards")) == 1

    def test_row_uses_def_column(self, fake_db, card_repo):
        card_repo.upsert_many([CanonicalCard.from_api(CardFactory.dark_magician())])

        [row] = fake_db.rows("canonical_cards")
        assert row["def"] == 2100
        assert row["image_url"].endswith("/46986414.jpg")

    def test_search_normalized_contains(self, card_repo):
        card_repo.upsert_many([
            CanonicalCard.from_api(CardFactory.dark_magician()),
            CanonicalCard.from_api(CardFactory.blue_eyes()),
        ])

        found = card_repo.search_normalized("magician")

        assert [card.id for card in found] == [46986414]
        assert found[0].def_ == 2100


class TestStoreAndJobRepositories:
    """Tests for StoreRepository and SyncJobRepository"""

    def test_store_by_domain_is_case_insensitive(self, store_repo):
        store = store_repo.get_by_domain(SHOP_DOMAIN.upper())

        assert store.store_id == STORE_ID
        assert "shpat_test_token" not in repr(store)

    def test_store_missing(self, store_repo):
        assert store_repo.get_by_id("nope") is None

    def test_job_create_and_update(self, job_repo):
        job = job_repo.create(STORE_ID, total_items=3)

        job_repo.update(job.id, {"status": "processing", "processed_items": 2})

        reloaded = job_repo.get(job.id)
        assert reloaded.status == SyncStatus.PROCESSING
        assert reloaded.processed_items == 2

    def test_job_update_failure(self, fake_db, job_repo):
        job = job_repo.create(STORE_ID, total_items=3)
        fake_db.fail_on("sync_jobs", "update")

        with pytest.raises(DatabaseError):
            job_repo.update(job.id, {"status": "failed"})
