"""
YGOProDeck card database client.

The cardinfo endpoint answers "no results" with HTTP 400 and an `error`
field; that is treated as an empty result, not a failure.
"""

from typing import Optional
import requests
import structlog

from config import settings
from exceptions import CardLookupError

logger = structlog.get_logger(__name__)


class YGOProDeckClient:
    """Exact and fuzzy card-name queries."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        # Plain module-level requests calls unless a session is injected
        self.session = session or requests
        self.base_url = (base_url or settings.ygoprodeck_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds

    def _cardinfo(self, params: dict) -> list[dict]:
        url = f"{self.base_url}/cardinfo.php"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning("ygoprodeck_request_failed", params=params, error=str(e))
            raise CardLookupError(f"YGOProDeck request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code == 400 and "error" in payload:
            return []

        if not response.ok:
            logger.warning("ygoprodeck_api_error", status=response.status_code, params=params)
            raise CardLookupError(
                f"YGOProDeck returned {response.status_code}",
                details={"status": response.status_code}
            )

        return payload.get("data") or []

    def search_exact(self, name: str) -> list[dict]:
        """Cards whose name is exactly `name` (case-insensitive on their side)."""
        if not name:
            return []
        return self._cardinfo({"name": name})

    def search_fuzzy(self, fragment: str, limit: int = 10) -> list[dict]:
        """Cards whose name contains `fragment`."""
        if not fragment:
            return []
        return self._cardinfo({"fname": fragment, "num": limit, "offset": 0})
