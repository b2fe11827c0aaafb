"""
Matcher result types.

resolve() returns either a CardMatch or NoMatch; callers branch on `found`
(or isinstance) instead of checking for None.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class MatchTier(str, Enum):
    """Strength of an accepted match."""
    STRONG = "strong"   # score >= 80: exact or containment
    WEAK = "weak"       # 50-79: shares the leading word


class MatchSource(str, Enum):
    """Where the accepted card came from."""
    SESSION = "session"
    CACHE = "cache"
    REMOTE_EXACT = "remote_exact"
    REMOTE_FUZZY = "remote_fuzzy"


STRONG_SCORE = 80


@dataclass(frozen=True)
class CardMatch:
    card_id: int
    name: str
    image_url: Optional[str]
    score: int
    source: MatchSource
    found: bool = True

    @property
    def confidence(self) -> float:
        return round(self.score / 100, 2)

    @property
    def tier(self) -> MatchTier:
        return MatchTier.STRONG if self.score >= STRONG_SCORE else MatchTier.WEAK

    def from_session(self) -> "CardMatch":
        """Same match, re-labelled as served from the per-run session."""
        return CardMatch(
            card_id=self.card_id,
            name=self.name,
            image_url=self.image_url,
            score=self.score,
            source=MatchSource.SESSION,
        )

    def to_dict(self) -> dict:
        return {
            "found": True,
            "card_id": self.card_id,
            "name": self.name,
            "image_url": self.image_url,
            "confidence": self.confidence,
            "tier": self.tier.value,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class NoMatch:
    candidate: str = ""
    found: bool = False

    def to_dict(self) -> dict:
        return {"found": False, "candidate": self.candidate}


MatchResult = Union[CardMatch, NoMatch]
