"""
Shopify webhook handling: the incremental path next to full syncs.

Writes go to the same catalog_items rows as the batch processor and use
the same upsert key, so a webhook racing an in-flight sync converges
(last write wins) without locking.
"""

import base64
import hashlib
import hmac
import json
from typing import Optional
import structlog

from config import settings
from exceptions import (
    StoreNotFoundError,
    WebhookNotConfiguredError,
    WebhookPayloadError,
    WebhookSignatureError,
)
from models.catalog_item import MATCH_FIELDS, rows_from_shopify_product
from models.match import NoMatch
from models.webhook import StoreCredentials, WebhookResult, WebhookTopic
from repositories import CatalogItemRepository, StoreRepository
from services.matcher_service import CardMatcher, MatchSession

logger = structlog.get_logger(__name__)


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw body, as Shopify sends it."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(raw_body, secret), signature)


class WebhookService:
    """Verifies and applies one webhook delivery."""

    def __init__(
        self,
        stores: Optional[StoreRepository] = None,
        catalog: Optional[CatalogItemRepository] = None,
        matcher: Optional[CardMatcher] = None,
        secret: Optional[str] = None
    ):
        self.stores = stores or StoreRepository()
        self.catalog = catalog or CatalogItemRepository()
        self.matcher = matcher or CardMatcher()
        self.secret = secret if secret is not None else settings.shopify_webhook_secret

    def handle(
        self,
        raw_body: bytes,
        topic: Optional[str],
        signature: Optional[str],
        shop_domain: Optional[str]
    ) -> WebhookResult:
        """
        Verify and dispatch a webhook.

        The signature is checked before the body is parsed or anything is
        read from storage.

        Raises:
            WebhookNotConfiguredError: No secret configured
            WebhookSignatureError: Signature missing or wrong
            WebhookPayloadError: Body is not a JSON object
            StoreNotFoundError: Shop domain not connected
        """
        if not self.secret:
            raise WebhookNotConfiguredError()

        if not verify_signature(raw_body, signature, self.secret):
            logger.warning("webhook_signature_invalid", topic=topic, shop=shop_domain)
            raise WebhookSignatureError(topic)

        parsed_topic = WebhookTopic.parse(topic)
        if parsed_topic is None:
            logger.info("webhook_topic_ignored", topic=topic, shop=shop_domain)
            return WebhookResult(topic=topic or "", handled=False)

        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise WebhookPayloadError(topic, str(e))
        if not isinstance(payload, dict):
            raise WebhookPayloadError(topic, "expected a JSON object")

        store = self.stores.get_by_domain(shop_domain or "")
        if store is None:
            raise StoreNotFoundError(shop_domain or "")

        logger.info("webhook_received", topic=parsed_topic.value, store_id=store.store_id)

        handlers = {
            WebhookTopic.PRODUCT_CREATE: self.handle_product_create,
            WebhookTopic.PRODUCT_UPDATE: self.handle_product_update,
            WebhookTopic.PRODUCT_DELETE: self.handle_product_delete,
            WebhookTopic.INVENTORY_UPDATE: self.handle_inventory_update,
        }
        try:
            return handlers[parsed_topic](store, payload)
        except (KeyError, TypeError, ValueError) as e:
            raise WebhookPayloadError(topic, f"bad or missing field {e}")

    # ===================
    # TOPIC HANDLERS
    # ===================

    def handle_product_create(self, store: StoreCredentials, product: dict) -> WebhookResult:
        match = self.matcher.resolve(product.get("title") or "", MatchSession())
        rows, skipped = rows_from_shopify_product(store.store_id, product, match)
        written = self.catalog.upsert_many(rows)

        logger.info(
            "webhook_product_created",
            store_id=store.store_id,
            product_id=product["id"],
            rows=written,
            skipped=skipped,
            matched=match.found
        )
        return WebhookResult(
            topic=WebhookTopic.PRODUCT_CREATE.value,
            store_id=store.store_id,
            rows_written=written
        )

    def handle_product_update(self, store: StoreCredentials, product: dict) -> WebhookResult:
        """
        Refresh price, stock, images and title of every variant.

        Matching re-runs only for variants that are new, or whose title
        changed and that never matched; everything else keeps its match.
        """
        title = product.get("title") or ""
        variant_ids = [str(v["id"]) for v in product.get("variants") or [] if "id" in v]
        existing = self.catalog.get_by_variant_ids(store.store_id, variant_ids)

        carried = {}
        needs_match = False
        for variant_id in variant_ids:
            row = existing.get(variant_id)
            if row is None:
                needs_match = True
            elif row.get("title") != title and row.get("matched_card_id") is None:
                needs_match = True
            else:
                carried[variant_id] = {field: row.get(field) for field in MATCH_FIELDS}

        match = self.matcher.resolve(title, MatchSession()) if needs_match else NoMatch()
        rows, skipped = rows_from_shopify_product(store.store_id, product, match, existing=carried)
        written = self.catalog.upsert_many(rows)

        logger.info(
            "webhook_product_updated",
            store_id=store.store_id,
            product_id=product["id"],
            rows=written,
            rematched=needs_match,
            skipped=skipped
        )
        return WebhookResult(
            topic=WebhookTopic.PRODUCT_UPDATE.value,
            store_id=store.store_id,
            rows_written=written
        )

    def handle_product_delete(self, store: StoreCredentials, payload: dict) -> WebhookResult:
        product_id = str(payload["id"])
        deleted = self.catalog.delete_by_product(store.store_id, product_id)

        logger.info(
            "webhook_product_deleted",
            store_id=store.store_id,
            product_id=product_id,
            rows=deleted
        )
        return WebhookResult(
            topic=WebhookTopic.PRODUCT_DELETE.value,
            store_id=store.store_id,
            rows_deleted=deleted
        )

    def handle_inventory_update(self, store: StoreCredentials, payload: dict) -> WebhookResult:
        variant_id = payload.get("variant_id") or payload["inventory_item_id"]
        quantity = int(payload.get("available") or 0)
        updated = self.catalog.update_inventory(store.store_id, str(variant_id), quantity)

        logger.info(
            "webhook_inventory_updated",
            store_id=store.store_id,
            variant_id=variant_id,
            quantity=quantity,
            rows=updated
        )
        return WebhookResult(
            topic=WebhookTopic.INVENTORY_UPDATE.value,
            store_id=store.store_id,
            rows_written=updated
        )


_webhook_service: Optional[WebhookService] = None


def get_webhook_service() -> WebhookService:
    """Get or create WebhookService instance."""
    global _webhook_service
    if _webhook_service is None:
        _webhook_service = WebhookService()
    return _webhook_service
