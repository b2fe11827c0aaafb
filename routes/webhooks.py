"""
Shopify webhook receiver.
"""

from fastapi import APIRouter, Header, Request
from typing import Optional
import structlog

from models.webhook import WebhookResult
from routes.common import handle_error
from services.webhook_service import get_webhook_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/shopify", response_model=WebhookResult)
async def shopify_webhook(
    request: Request,
    x_shopify_topic: Optional[str] = Header(None),
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    x_shopify_shop_domain: Optional[str] = Header(None)
):
    """
    Receive a Shopify webhook.

    The HMAC is verified over the raw body, so the body is read as bytes
    and never re-serialized before verification.

    Raises:
        401: Signature invalid
        404: Shop not connected
        422: Malformed payload
    """
    raw_body = await request.body()

    try:
        service = get_webhook_service()
        return service.handle(
            raw_body,
            topic=x_shopify_topic,
            signature=x_shopify_hmac_sha256,
            shop_domain=x_shopify_shop_domain
        )

    except Exception as e:
        return handle_error(e)
