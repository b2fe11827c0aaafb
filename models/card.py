"""
Canonical card schemas (YGOProDeck reference data).
"""

from pydantic import ConfigDict, Field
from typing import Any, Optional
from datetime import datetime, timezone

from models.base import BaseSchema
from utils.text_utils import normalize_card_name


class CanonicalCard(BaseSchema):
    """
    A row of the canonical_cards table.

    Upserted by id; populated lazily by the matcher and in bulk by the
    card importer.
    """

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: int = Field(..., description="YGOProDeck card id")
    name: str = Field(..., min_length=1)
    normalized_name: str = ""
    type: Optional[str] = None
    race: Optional[str] = None
    attribute: Optional[str] = None
    atk: Optional[int] = None
    def_: Optional[int] = Field(None, alias="def")
    level: Optional[int] = None
    scale: Optional[int] = None
    linkval: Optional[int] = None
    archetype: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    image_url_small: Optional[str] = None
    image_url_cropped: Optional[str] = None
    card_sets: Optional[list[dict[str, Any]]] = None
    card_prices: Optional[list[dict[str, Any]]] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, card: dict) -> "CanonicalCard":
        """
        Build from a YGOProDeck cardinfo entry.

        The API nests images under card_images and calls the text "desc".
        """
        images = card.get("card_images") or [{}]
        first_image = images[0] if images else {}

        return cls(
            id=card["id"],
            name=card["name"],
            normalized_name=normalize_card_name(card["name"]),
            type=card.get("type"),
            race=card.get("race"),
            attribute=card.get("attribute"),
            atk=card.get("atk"),
            def_=card.get("def"),
            level=card.get("level"),
            scale=card.get("scale"),
            linkval=card.get("linkval"),
            archetype=card.get("archetype"),
            description=card.get("desc"),
            image_url=first_image.get("image_url"),
            image_url_small=first_image.get("image_url_small"),
            image_url_cropped=first_image.get("image_url_cropped"),
            card_sets=card.get("card_sets"),
            card_prices=card.get("card_prices"),
            updated_at=datetime.now(timezone.utc),
        )

    def to_row(self) -> dict:
        """Serialize for upsert (column "def", ISO timestamps)."""
        row = self.model_dump(by_alias=True, mode="json")
        if not row["normalized_name"]:
            row["normalized_name"] = normalize_card_name(self.name)
        return row
