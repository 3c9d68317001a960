"""
Tests for the lexical pattern library.

Tests:
- HTML stripping and measurement detection
- Vague condition phrases and bruksslitage detection
- Forbidden terms, categories and lookup tables
- Keyword splitting
"""

import re

import pytest

from catalog_guard.patterns import (
    ABBREVIATIONS,
    BRAND_CORRECTIONS,
    COMPOUND_WORDS,
    CONDITION_VOCABULARY,
    category_matches,
    find_forbidden_terms,
    find_measurement_tokens,
    find_vague_phrases,
    find_whole_words,
    has_location_info,
    has_measurement,
    is_bruksslitage_only,
    lookup_first,
    MARKETING_TERMS,
    normalize_measurement,
    split_keywords,
    strip_html,
)


class TestHtmlAndMeasurements:
    """Tests for markup stripping and measurement matching."""

    def test_strip_html(self):
        assert strip_html("<p>Höjd <b>24</b> cm</p>") == "Höjd 24 cm"
        assert strip_html(None) == ""

    @pytest.mark.parametrize("text", [
        "30 x 40 cm",
        "30×40×5 cm",
        "Höjd 24 cm",
        "diam. 12,5 cm",
        "ca 20-25 cm",
        "Storlek 17",
        "Vikt 125 g",
        "bruttovikt ca 3,2 gram",
        "0,5 ct",
        "Mått: 55 x 70 cm",
    ])
    def test_detects_measurements(self, text):
        assert has_measurement(text) is True

    def test_ignores_years(self):
        """Years and periods are not measurements."""
        assert has_measurement("1900-talets mitt, signerad 1955") is False

    def test_measurement_tokens(self):
        assert find_measurement_tokens("Höjd 24 cm, vikt 310 g") == ["24 cm", "310 g"]

    def test_normalize_measurement(self):
        assert normalize_measurement("12,5 CM") == "12.5cm"
        assert normalize_measurement("30 × 40 cm") == "30x40cm"


class TestConditionPatterns:
    """Tests for condition vocabulary helpers."""

    @pytest.mark.parametrize("text", ["bruksslitage", "Bruksslitage.", "  bruksslitage  ", "<p>bruksslitage</p>"])
    def test_bruksslitage_only(self, text):
        assert is_bruksslitage_only(text) is True

    def test_bruksslitage_with_details_is_not_only(self):
        assert is_bruksslitage_only("Bruksslitage, repor på ovansidan.") is False

    def test_vague_phrases(self):
        assert find_vague_phrases("Normalt slitage samt åldersslitage.") == ["normalt slitage", "åldersslitage"]

    def test_location_info(self):
        assert has_location_info("Nagg vid foten") is True
        assert has_location_info("Nagg och repor") is False

    def test_whole_words_only(self):
        """'repor' inside a longer word does not count."""
        assert find_whole_words("Reporter och slitage", ["repor", "slitage"]) == ["slitage"]


class TestTermsAndTables:
    """Tests for forbidden terms, categories and lookup tables."""

    def test_marketing_terms(self):
        assert find_forbidden_terms("En Fantastisk och unik vas", MARKETING_TERMS) == ["fantastisk", "unik"]

    def test_category_matches(self):
        assert category_matches("Möbler, Byråer", "furniture") is True
        assert category_matches("Konst, Grafik", "art") is True
        assert category_matches("Keramik", "furniture") is False
        assert category_matches(None, "rug") is False

    def test_lookup_first_stops_at_first_hit(self):
        hit = lookup_first("Glasvas och majolikavas", COMPOUND_WORDS)
        assert hit == ("majolikavas", "VAS, majolika")

    def test_brand_lookup_matches_whole_words(self):
        assert lookup_first("VAS, Rörstrand", BRAND_CORRECTIONS, whole_word=True) is None
        assert lookup_first("vas, rörstran", BRAND_CORRECTIONS, whole_word=True) == ("rörstran", "Rörstrand")
        assert lookup_first("Svenskt Tenn", BRAND_CORRECTIONS, whole_word=True) is None

    def test_condition_vocabulary_has_singulars(self):
        assert find_whole_words("En spricka och en repa", CONDITION_VOCABULARY) == ["repa", "spricka"]

    def test_abbreviation_table(self):
        patterns = list(ABBREVIATIONS)
        assert any(re.search(p, "bl a porslin", re.IGNORECASE) for p in patterns)
        assert any(re.search(p, "t.ex. glas", re.IGNORECASE) for p in patterns)
        assert not any(re.search(p, "blanka ytor", re.IGNORECASE) for p in patterns)


class TestKeywordSplitting:
    """Tests for keyword separator handling."""

    def test_whitespace_separated(self):
        assert split_keywords("majolika jugend  grön") == ["majolika", "jugend", "grön"]

    def test_comma_separated_keeps_phrases(self):
        assert split_keywords("svensk keramik, jugend") == ["svensk keramik", "jugend"]

    def test_empty(self):
        assert split_keywords("") == []
        assert split_keywords(None) == []
