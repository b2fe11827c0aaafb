"""
Text utilities for card titles.

Used to turn noisy Shopify listing titles into searchable card names:
- normalize_card_name("Blue-Eyes White Dragon") → "blue eyes white dragon"
- extract_candidate_name("Dark Magician - SDY-006 NM") → "Dark Magician"
"""

import re
import unicodedata
from typing import Optional


# Apostrophes and quotes are dropped outright ("Collector's" → "collectors")
_QUOTES_RE = re.compile(r"[\"'`´‘’‛“”‟]")

# Minus sign and bullet-like separators count as dashes, as does every Unicode "Pd" char
_BULLETS = "−∙•·"

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

SET_CODE_PATTERN = r"\b[A-Z]{2,5}-[A-Z]?\d{3,4}\b"
_SET_CODE_RE = re.compile(SET_CODE_PATTERN, re.IGNORECASE)

CONDITIONS = {
    "Near Mint": "Near Mint",
    "Lightly Played": "Lightly Played",
    "Moderately Played": "Moderately Played",
    "Heavily Played": "Heavily Played",
    "Damaged": "Damaged",
    "Mint": "Mint",
    "NM": "Near Mint",
    "LP": "Lightly Played",
    "MP": "Moderately Played",
    "HP": "Heavily Played",
    "DMG": "Damaged",
}

EDITIONS = {
    "1st Edition": "1st Edition",
    "Limited Edition": "Limited Edition",
    "Unlimited Edition": "Unlimited",
    "Unlimited": "Unlimited",
    "1st": "1st Edition",
}

RARITIES = [
    "Quarter Century Secret Rare",
    "Prismatic Secret Rare",
    "Platinum Secret Rare",
    "Starlight Rare",
    "Ghost Rare",
    "Ultimate Rare",
    "Ultra Rare",
    "Super Rare",
    "Secret Rare",
    "Gold Rare",
    "Collector's Rare",
    "Prismatic Secret",
    "Quarter Century",
    "Rare",
    "Common",
]

DEFAULT_CONDITION = "Near Mint"


def _longest_first(phrases) -> list[str]:
    return sorted(phrases, key=len, reverse=True)


def _token_pattern(phrases) -> re.Pattern:
    """
    Build a word-bounded alternation that also eats a leading " - " separator.

    Phrases are tried longest first so "Ultimate Rare" is removed as a whole
    instead of leaving "Ultimate" behind after "Rare" matches.
    """
    alternation = "|".join(re.escape(p) for p in _longest_first(phrases))
    return re.compile(rf"\s*-?\s*\b(?:{alternation})\b\s*", re.IGNORECASE)


_CONDITION_RE = _token_pattern(CONDITIONS)
_EDITION_RE = _token_pattern(EDITIONS)
_RARITY_RE = _token_pattern(RARITIES)

# Separators left dangling at either end once tokens are gone
_EDGE_CHARS = " -–—|/,:;"


def _is_dash(ch: str) -> bool:
    return ch in _BULLETS or unicodedata.category(ch) == "Pd"


def _dashes_to_spaces(text: str) -> str:
    return "".join(" " if _is_dash(ch) else ch for ch in text)


def normalize_card_name(text: Optional[str]) -> str:
    """
    Normalize a card name for comparison.

    Lowercases, drops quotes/apostrophes, turns dash-like characters into
    spaces, strips remaining punctuation and collapses whitespace.
    normalize_card_name(normalize_card_name(s)) == normalize_card_name(s).

    Args:
        text: Raw name (may be None)

    Returns:
        Normalized name, or "" for empty input
    """
    if not text:
        return ""

    cleaned = text.lower()
    cleaned = _QUOTES_RE.sub("", cleaned)
    cleaned = _dashes_to_spaces(cleaned)
    cleaned = _PUNCTUATION_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)

    return cleaned.strip()


def extract_candidate_name(title: Optional[str]) -> str:
    """
    Strip listing noise from a product title, leaving the likely card name.

    Removal order: set codes, conditions, editions, rarities.

    Examples:
        "Blue-Eyes White Dragon - LOB-001 Ultra Rare 1st Edition Near Mint"
            → "Blue-Eyes White Dragon"
        "Dark Magician SDY-006 NM" → "Dark Magician"

    Args:
        title: Product title as listed in the store

    Returns:
        Candidate card name ("" when nothing is left)
    """
    if not title:
        return ""

    cleaned = _SET_CODE_RE.sub(" ", title)
    cleaned = _CONDITION_RE.sub(" ", cleaned)
    cleaned = _EDITION_RE.sub(" ", cleaned)
    cleaned = _RARITY_RE.sub(" ", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)

    return cleaned.strip(_EDGE_CHARS)


# ===================
# LISTING ATTRIBUTES
# ===================

def extract_set_code(title: Optional[str], sku: Optional[str] = None) -> Optional[str]:
    """
    Find a set code such as "LOB-001".

    The SKU wins when it carries one, since merchants often put the printing
    there and leave it out of the title.
    """
    for source in (sku, title):
        if not source:
            continue
        match = _SET_CODE_RE.search(source)
        if match:
            return match.group(0).upper()
    return None


def _find_phrase(text: Optional[str], phrases) -> Optional[str]:
    if not text:
        return None
    for phrase in _longest_first(phrases):
        if re.search(rf"\b{re.escape(phrase)}\b", text, re.IGNORECASE):
            return phrase
    return None


def extract_rarity(title: Optional[str]) -> Optional[str]:
    """Rarity printed in the title, longest name first."""
    return _find_phrase(title, RARITIES)


def extract_condition(title: Optional[str]) -> str:
    """Condition in the title with abbreviations expanded (defaults to Near Mint)."""
    found = _find_phrase(title, CONDITIONS)
    if found is None:
        return DEFAULT_CONDITION
    return CONDITIONS[found]


def extract_edition(title: Optional[str]) -> Optional[str]:
    """Edition in the title, if any."""
    found = _find_phrase(title, EDITIONS)
    if found is None:
        return None
    return EDITIONS[found]


def first_words(text: str, count: int) -> str:
    """First `count` whitespace-separated words of text."""
    return " ".join(text.split()[:count])


# ===================
# NAME ALIASES
# ===================

# Common unhyphenated spellings, keyed by normalized name
CARD_NAME_ALIASES = {
    "blue eyes white dragon": "Blue-Eyes White Dragon",
    "blue eyes ultimate dragon": "Blue-Eyes Ultimate Dragon",
    "red eyes black dragon": "Red-Eyes Black Dragon",
    "red eyes b dragon": "Red-Eyes B. Dragon",
    "red eyes darkness metal dragon": "Red-Eyes Darkness Metal Dragon",
    "dark magician girl": "Dark Magician Girl",
    "cyber end dragon": "Cyber End Dragon",
    "cyber twin dragon": "Cyber Twin Dragon",
}


def fix_card_name_variant(name: str) -> str:
    """
    Official spelling for a known alias, otherwise the name unchanged.

    fix_card_name_variant("blue eyes white dragon") → "Blue-Eyes White Dragon"
    """
    return CARD_NAME_ALIASES.get(normalize_card_name(name), name)
