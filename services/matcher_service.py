"""
Card matcher: resolves a product title to a canonical card.

Lookup order:
1. Per-run session (results already resolved in this batch/sweep)
2. Local card cache (canonical_cards)
3. YGOProDeck exact name (known aliases spelled officially), then fuzzy on
   the first words of the name

Every card the remote lookup returns is written back to the cache.
The matcher never raises; any failure is a NoMatch.
"""

import threading
from typing import Iterable, Optional
import structlog

from config import settings
from integrations.ygoprodeck import YGOProDeckClient
from models.card import CanonicalCard
from models.match import CardMatch, MatchResult, MatchSource, NoMatch
from repositories.card_repository import CardRepository
from utils.text_utils import (
    extract_candidate_name,
    first_words,
    fix_card_name_variant,
    normalize_card_name,
)

logger = structlog.get_logger(__name__)

EXACT_SCORE = 100
CONTAINS_SCORE = 80
PREFIX_SCORE = 50
FLOOR_SCORE = 10

FUZZY_QUERY_WORDS = 3
CANDIDATE_LIMIT = 10


def score_candidate(search: str, card_name: str) -> int:
    """
    Score how well a card name answers a search.

    Both arguments must already be normalized.

    Returns:
        100 exact, 80 card name contains the search, 50 card name starts
        with the search's first word, else 10
    """
    if not search or not card_name:
        return FLOOR_SCORE
    if card_name == search:
        return EXACT_SCORE
    if search in card_name:
        return CONTAINS_SCORE
    if card_name.startswith(search.split(" ")[0]):
        return PREFIX_SCORE
    return FLOOR_SCORE


def pick_best(
    search: str,
    cards: Iterable[CanonicalCard],
    min_score: int
) -> Optional[tuple[CanonicalCard, int]]:
    """Highest-scoring card at or above min_score (first one wins ties)."""
    best = None
    for card in cards:
        score = score_candidate(search, card.normalized_name or normalize_card_name(card.name))
        if best is None or score > best[1]:
            best = (card, score)

    if best is None or best[1] < min_score:
        return None
    return best


class MatchSession:
    """
    Memo of resolved names for one invocation.

    Created by each batch, sweep or webhook call and dropped when it
    returns, so concurrent jobs never see each other's results.
    """

    def __init__(self):
        self._results: dict[str, MatchResult] = {}
        self._lock = threading.Lock()
        self.hits = 0

    def get(self, key: str) -> Optional[MatchResult]:
        with self._lock:
            result = self._results.get(key)
            if result is not None:
                self.hits += 1
            return result

    def put(self, key: str, result: MatchResult) -> None:
        with self._lock:
            self._results[key] = result

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


class CardMatcher:
    """Resolves free-text titles with normalization, scoring and caching."""

    def __init__(
        self,
        cards: Optional[CardRepository] = None,
        lookup: Optional[YGOProDeckClient] = None,
        min_score: Optional[int] = None
    ):
        self.cards = cards or CardRepository()
        self.lookup = lookup or YGOProDeckClient()
        self.min_score = min_score or settings.match_accept_score

    def resolve(self, raw_title: str, session: Optional[MatchSession] = None) -> MatchResult:
        """
        Resolve a product title to a canonical card.

        Args:
            raw_title: Title as listed in the store
            session: Per-invocation memo; pass the same one for every item
                in a batch

        Returns:
            CardMatch or NoMatch
        """
        candidate = extract_candidate_name(raw_title)
        if not candidate:
            return NoMatch(candidate="")

        key = normalize_card_name(candidate)
        if not key:
            return NoMatch(candidate=candidate)

        if session is not None:
            memo = session.get(key)
            if memo is not None:
                return memo.from_session() if memo.found else memo

        try:
            result = self._resolve_uncached(candidate, key)
        except Exception as e:
            logger.warning(
                "card_match_error",
                title=raw_title,
                candidate=candidate,
                error=str(e),
                error_type=type(e).__name__
            )
            result = NoMatch(candidate=candidate)

        if session is not None:
            session.put(key, result)

        if result.found:
            logger.debug(
                "card_match_found",
                candidate=candidate,
                card=result.name,
                score=result.score,
                source=result.source.value
            )
        else:
            logger.debug("card_match_missing", candidate=candidate)

        return result

    def _resolve_uncached(self, candidate: str, key: str) -> MatchResult:
        local = pick_best(key, self.cards.search_normalized(key, CANDIDATE_LIMIT), self.min_score)
        if local:
            return self._to_match(local, MatchSource.CACHE)

        exact = self._remote(self.lookup.search_exact(fix_card_name_variant(candidate)))
        best = pick_best(key, exact, self.min_score)
        if best:
            return self._to_match(best, MatchSource.REMOTE_EXACT)

        fragment = first_words(candidate, FUZZY_QUERY_WORDS)
        fuzzy = self._remote(self.lookup.search_fuzzy(fragment, CANDIDATE_LIMIT))
        best = pick_best(key, fuzzy, self.min_score)
        if best:
            return self._to_match(best, MatchSource.REMOTE_FUZZY)

        return NoMatch(candidate=candidate)

    def _remote(self, payload: list[dict]) -> list[CanonicalCard]:
        """Parse remote results and write them through to the cache."""
        cards = []
        for entry in payload:
            try:
                cards.append(CanonicalCard.from_api(entry))
            except (KeyError, ValueError) as e:
                logger.warning("card_payload_skipped", card_id=entry.get("id"), error=str(e))

        if cards:
            try:
                self.cards.upsert_many(cards)
            except Exception as e:
                logger.warning("card_cache_write_failed", cards=len(cards), error=str(e))
        return cards

    @staticmethod
    def _to_match(best: tuple[CanonicalCard, int], source: MatchSource) -> CardMatch:
        card, score = best
        return CardMatch(
            card_id=card.id,
            name=card.name,
            image_url=card.image_url,
            score=score,
            source=source,
        )


def get_card_matcher() -> CardMatcher:
    """Build a matcher on the shared client (matchers hold no per-run state)."""
    return CardMatcher()
