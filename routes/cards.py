"""
Card lookup routes.

GET  /api/cards/resolve            run the matcher on a title
POST /api/inventory/search         find stocked variants for card names
"""

from fastapi import APIRouter, Query
import structlog

from models.catalog_item import InventorySearchRequest, InventorySearchResponse
from routes.common import handle_error
from services.inventory_search_service import get_inventory_search_service
from services.matcher_service import MatchSession, get_card_matcher
from utils.text_utils import extract_candidate_name

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/cards/resolve")
def resolve_card(title: str = Query(..., min_length=1, description="Product title to resolve")):
    """
    Resolve a product title to a canonical card.

    Useful for checking why a listing did or didn't match.
    """
    try:
        match = get_card_matcher().resolve(title, MatchSession())
        return {
            "title": title,
            "candidate": extract_candidate_name(title),
            **match.to_dict()
        }

    except Exception as e:
        return handle_error(e)


@router.post("/inventory/search", response_model=InventorySearchResponse)
def search_inventory(data: InventorySearchRequest):
    """
    Find stocked variants for a list of card names.

    Raises:
        404: Shop not connected
    """
    try:
        service = get_inventory_search_service()
        results = service.search(data.shop_domain, data.card_names)
        return InventorySearchResponse(results=results)

    except Exception as e:
        return handle_error(e)
