"""
Test Suite for Keyword Normalization

Tests cleaning, filtering, ordering and capping of raw keyword lists.
"""

import pytest

from src.collector.keywords import (
    MAX_KEYWORDS,
    clean_keyword,
    is_valid_keyword,
    keyword_complexity,
    normalize_keywords,
    strip_diacritics,
)


class TestCleaning:
    """Test per-keyword cleaning."""

    def test_lowercases_and_collapses_whitespace(self):
        assert clean_keyword("  Running   SHOES ") == "running shoes"

    def test_strips_diacritics(self):
        assert strip_diacritics("café crème") == "cafe creme"
        assert clean_keyword("Ängelholm Möbler") == "angelholm mobler"

    def test_empty_and_none(self):
        assert clean_keyword("") == ""
        assert clean_keyword(None) == ""

    def test_complexity_is_words_plus_length(self):
        assert keyword_complexity("buy shoes") == pytest.approx(2 + 0.9)


class TestFilters:
    """Test validity rules."""

    @pytest.mark.parametrize("keyword", ["ab", "x" * 51])
    def test_length_bounds(self, keyword):
        assert not is_valid_keyword(keyword)

    def test_length_boundaries_inclusive(self):
        assert is_valid_keyword("abc")
        assert is_valid_keyword("x" * 50)

    def test_too_many_non_word_characters(self):
        assert is_valid_keyword("c++ tips")
        assert not is_valid_keyword("c++ & tips")

    def test_spaces_are_not_counted_as_punctuation(self):
        assert is_valid_keyword("one two three four five")

    def test_too_many_words(self):
        assert not is_valid_keyword("one two three four five six")


class TestNormalizeKeywords:
    """Test the full normalization pass."""

    def test_removes_empties_and_duplicates(self):
        result = normalize_keywords(["", "Buy Shoes", "buy shoes", "   ", "BUY  SHOES"])
        assert result == ["buy shoes"]

    def test_orders_by_complexity_stably(self):
        result = normalize_keywords([
            "best trail running shoes",
            "shoes",
            "buy shoes",
            "red shoes",
        ])
        # "buy shoes" and "red shoes" tie and keep input order
        assert result == ["shoes", "buy shoes", "red shoes", "best trail running shoes"]

    def test_caps_output(self):
        raw = [f"keyword {i:02d}" for i in range(40)]
        result = normalize_keywords(raw)
        assert len(result) == MAX_KEYWORDS

    def test_custom_cap(self):
        assert len(normalize_keywords(["aaa", "bbb", "ccc"], max_keywords=2)) == 2

    def test_bounded_output_properties(self):
        raw = ["a", "ok keyword", "x" * 80, "!!!???", "fine", None, 42] + [f"kw {i}" for i in range(30)]
        result = normalize_keywords(raw)

        assert len(result) <= MAX_KEYWORDS
        assert all(3 <= len(k) <= 50 for k in result)

    def test_idempotent(self):
        raw = ["Café Latte", "buy shoes", "Running Shoes Sale", "c++ tips", "buy shoes"]
        once = normalize_keywords(raw)
        assert normalize_keywords(once) == once

    def test_degrades_to_empty(self):
        assert normalize_keywords([]) == []
        assert normalize_keywords(None) == []
        assert normalize_keywords(["", "a", "!!"]) == []
