"""
Shopify Admin REST client for catalog sync.

Only the two calls the sync pipeline needs: the product count and one
cursor-paginated page of products.
"""

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import parse_qs, urlparse
import requests
import structlog

from config import settings
from exceptions import UpstreamFetchError
from models.webhook import StoreCredentials

logger = structlog.get_logger(__name__)


@dataclass
class ProductPage:
    """One page of products plus the cursor for the next one."""
    products: list[dict] = field(default_factory=list)
    next_page_info: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_page_info is not None


def parse_next_page_info(response: requests.Response) -> Optional[str]:
    """
    Read the next-page cursor from the Link header.

    Shopify sends `Link: <https://…/products.json?limit=250&page_info=abc>;
    rel="next"`; requests exposes it parsed as response.links.
    """
    next_link = response.links.get("next")
    if not next_link or not next_link.get("url"):
        return None

    values = parse_qs(urlparse(next_link["url"]).query).get("page_info")
    return values[0] if values else None


class ShopifyClient:
    """
    Catalog reads for one connected store.

    Any non-2xx answer or transport failure raises UpstreamFetchError; the
    caller decides whether that is fatal.
    """

    def __init__(
        self,
        credentials: StoreCredentials,
        session: Optional[requests.Session] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.credentials = credentials
        # Plain module-level requests calls unless a session is injected
        self.session = session or requests
        self.api_version = api_version or settings.shopify_api_version
        self.timeout = timeout or settings.http_timeout_seconds

    @property
    def base_url(self) -> str:
        return f"https://{self.credentials.shop_domain}/admin/api/{self.api_version}"

    def _get(self, path: str, params: Optional[dict] = None) -> requests.Response:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers={
                    "X-Shopify-Access-Token": self.credentials.access_token,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                "shopify_request_failed",
                shop=self.credentials.shop_domain,
                path=path,
                error=str(e)
            )
            raise UpstreamFetchError(f"Shopify request failed: {e}") from e

        if not response.ok:
            logger.error(
                "shopify_api_error",
                shop=self.credentials.shop_domain,
                path=path,
                status=response.status_code
            )
            raise UpstreamFetchError(
                f"Shopify API error: {response.status_code}",
                status=response.status_code,
                details={"path": path}
            )

        return response

    def count_products(self) -> int:
        """Total number of products in the store."""
        response = self._get("products/count.json")
        try:
            count = int(response.json()["count"])
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamFetchError(f"Unexpected count response: {e}") from e

        logger.info("shopify_product_count", shop=self.credentials.shop_domain, count=count)
        return count

    def list_products(self, page_info: Optional[str] = None, limit: int = 250) -> ProductPage:
        """
        Fetch one page of products.

        Args:
            page_info: Cursor from the previous page (None for the first page)
            limit: Page size, at most 250

        Returns:
            ProductPage with the products and the next cursor
        """
        params = {"limit": limit}
        if page_info:
            params["page_info"] = page_info

        response = self._get("products.json", params=params)
        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Unexpected products response: {e}") from e

        if not isinstance(body, dict):
            raise UpstreamFetchError("Unexpected products response: body is not an object")

        products = body.get("products") or []
        if not isinstance(products, list) or not all(isinstance(p, dict) for p in products):
            raise UpstreamFetchError("Unexpected products response: not a product list")

        page = ProductPage(products=products, next_page_info=parse_next_page_info(response))
        logger.info(
            "shopify_page_fetched",
            shop=self.credentials.shop_domain,
            products=len(products),
            has_more=page.has_more
        )
        return page
