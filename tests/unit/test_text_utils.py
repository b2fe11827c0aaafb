"""
Unit tests for card title text utilities.

Run: pytest tests/unit/test_text_utils.py -v
"""

import pytest

from utils.text_utils import (
    extract_candidate_name,
    extract_condition,
    extract_edition,
    extract_rarity,
    extract_set_code,
    first_words,
    fix_card_name_variant,
    normalize_card_name,
)


class TestNormalizeCardName:
    """Tests for normalize_card_name()"""

    def test_dashes_become_spaces(self):
        """Should lowercase and split hyphenated names."""
        assert normalize_card_name("Blue-Eyes White Dragon") == "blue eyes white dragon"

    def test_apostrophes_are_dropped(self):
        """Should remove apostrophes without leaving a gap."""
        assert normalize_card_name("Gaia's Ritual") == "gaias ritual"

    def test_punctuation_and_whitespace(self):
        """Should strip punctuation and collapse whitespace."""
        assert normalize_card_name("  Pot   of Greed!! ") == "pot of greed"

    def test_unicode_dashes(self):
        """Should treat en/em dashes like hyphens."""
        assert normalize_card_name("Elemental HERO — Neos") == "elemental hero neos"

    @pytest.mark.parametrize("value", [
        "Blue－Eyes White Dragon",
        "Blue﹣Eyes White Dragon",
        "Blue⸺Eyes White Dragon",
        "Blue‐Eyes White Dragon",
        "Blue−Eyes White Dragon",
        "Blue•Eyes White Dragon",
    ])
    def test_every_dash_variant_splits_words(self, value):
        """Should turn any dash-like character into a space, not delete it."""
        assert normalize_card_name(value) == "blue eyes white dragon"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        """Should return empty string for missing input."""
        assert normalize_card_name(value) == ""

    @pytest.mark.parametrize("value", [
        "Blue-Eyes White Dragon",
        "Number 39: Utopia",
        "D/D/D Wave King Caesar",
        "Collector's  Edition -- Secret",
    ])
    def test_idempotent(self, value):
        """Normalizing twice should equal normalizing once."""
        once = normalize_card_name(value)
        assert normalize_card_name(once) == once


class TestExtractCandidateName:
    """Tests for extract_candidate_name()"""

    def test_full_listing_title(self):
        """Should strip set code, rarity, edition and condition."""
        title = "Blue-Eyes White Dragon - LOB-001 Ultra Rare 1st Edition Near Mint"
        assert extract_candidate_name(title) == "Blue-Eyes White Dragon"

    def test_abbreviated_condition(self):
        """Should strip short condition codes."""
        assert extract_candidate_name("Dark Magician SDY-006 NM") == "Dark Magician"

    def test_longest_rarity_first(self):
        """Should remove 'Ultimate Rare' whole, not leave 'Ultimate' behind."""
        assert extract_candidate_name("Black Luster Soldier Ultimate Rare") == "Black Luster Soldier"

    def test_quarter_century_secret_rare(self):
        """Should remove the longest rarity name."""
        title = "Ash Blossom & Joyous Spring Quarter Century Secret Rare"
        assert extract_candidate_name(title) == "Ash Blossom & Joyous Spring"

    def test_tokens_are_word_bounded(self):
        """Should not cut condition codes out of the middle of words."""
        assert extract_candidate_name("Helpoemer NM") == "Helpoemer"

    def test_set_code_with_region_letter(self):
        """Should strip set codes with a letter before the number."""
        assert extract_candidate_name("Ash Blossom SDY-E006 LP") == "Ash Blossom"

    def test_only_noise_returns_empty(self):
        """Should return empty string when nothing but noise remains."""
        assert extract_candidate_name("LOB-001 Ultra Rare NM") == ""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert extract_candidate_name(value) == ""


class TestListingAttributes:
    """Tests for set code, rarity, condition and edition extraction."""

    def test_set_code_from_title(self):
        assert extract_set_code("Dark Magician sdy-006") == "SDY-006"

    def test_set_code_prefers_sku(self):
        """SKU carries the printing when both have one."""
        assert extract_set_code("Dark Magician SDY-006", sku="lob-005") == "LOB-005"

    def test_set_code_missing(self):
        assert extract_set_code("Dark Magician", sku="") is None

    def test_rarity_longest_match(self):
        assert extract_rarity("Ash Blossom Quarter Century Secret Rare") == "Quarter Century Secret Rare"

    def test_rarity_missing(self):
        assert extract_rarity("Dark Magician") is None

    def test_condition_abbreviation_expanded(self):
        assert extract_condition("Dark Magician LP") == "Lightly Played"

    def test_condition_defaults_to_near_mint(self):
        assert extract_condition("Dark Magician") == "Near Mint"

    def test_edition(self):
        assert extract_edition("Dark Magician 1st Edition") == "1st Edition"
        assert extract_edition("Dark Magician Unlimited") == "Unlimited"
        assert extract_edition("Dark Magician") is None

    def test_first_words(self):
        assert first_words("Blue-Eyes White Dragon Alt Art", 3) == "Blue-Eyes White Dragon"


class TestFixCardNameVariant:
    """Tests for fix_card_name_variant()"""

    @pytest.mark.parametrize("name,expected", [
        ("blue eyes white dragon", "Blue-Eyes White Dragon"),
        ("Red Eyes B. Dragon", "Red-Eyes B. Dragon"),
        ("red eyes b dragon", "Red-Eyes B. Dragon"),
    ])
    def test_known_alias(self, name, expected):
        """Should return the official spelling."""
        assert fix_card_name_variant(name) == expected

    def test_unknown_name_unchanged(self):
        assert fix_card_name_variant("Pot of Greed") == "Pot of Greed"
