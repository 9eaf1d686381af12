"""
Unit Tests - Cleaning and Category Normalization
"""
import math
from datetime import date, datetime

import pytest

from kuhl_analytics.transformation.categories import CANONICAL_CATEGORIES, normalize_category
from kuhl_analytics.transformation.cleaners import (
    clean_style_number,
    first_value,
    is_blank,
    parse_bool,
    parse_date,
    parse_number,
    parse_string,
)


class TestCleaners:
    """Tests for cell coercion helpers"""

    @pytest.mark.parametrize("value, expected", [
        ("$1,234.50", 1234.5),
        ("  42 ", 42.0),
        (17, 17.0),
        ("", 0.0),
        (None, 0.0),
        ("#N/A", 0.0),
        (float("nan"), 0.0),
        (math.inf, 0.0),
        (True, 0.0),
    ])
    def test_parse_number(self, value, expected):
        assert parse_number(value) == expected

    def test_parse_string(self):
        assert parse_string(5099.0) == "5099"
        assert parse_string("  Rydr  ") == "Rydr"
        assert parse_string(float("nan")) == ""

    def test_parse_bool(self):
        assert parse_bool("Y")
        assert parse_bool("yes")
        assert not parse_bool("N")
        assert not parse_bool(None)

    def test_parse_date(self):
        assert parse_date(datetime(2026, 3, 4, 10, 30)) == date(2026, 3, 4)
        assert parse_date("03/04/2026") == date(2026, 3, 4)
        assert parse_date("not a date") is None
        assert parse_date("") is None

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("   ")
        assert is_blank(float("nan"))
        assert not is_blank(0)

    def test_first_value_skips_blanks(self):
        row = {"Style": "  ", "Style #": "5099", "Style#": "6102"}
        assert first_value(row, ("Style", "Style #", "Style#")) == "5099"
        assert first_value(row, ("Missing",)) is None

    def test_clean_style_number(self):
        assert clean_style_number("5099TES") == "5099"
        assert clean_style_number(" 5099tes ") == "5099"
        assert clean_style_number("5099") == "5099"


class TestCategories:
    """Tests for category normalization"""

    @pytest.mark.parametrize("raw, expected", [
        ("MEN'S PANTS", "Pants"),
        ("Women's Jackets", "Jackets"),
        ("Outerwear", "Jackets"),
        ("SS Tops", "Short Sleeve Shirts"),
        ("L/S Shirts", "Long Sleeve Shirts"),
        ("t-shirts", "Tees"),
        ("Hats", "Headwear"),
        ("Pants", "Pants"),
    ])
    def test_known_spellings(self, raw, expected):
        assert normalize_category(raw) == expected

    def test_unmapped_passes_through_trimmed(self):
        assert normalize_category("  Snow Gear ") == "Snow Gear"

    @pytest.mark.parametrize("raw", [None, "", "  "])
    def test_blank(self, raw):
        assert normalize_category(raw) == ""

    def test_canonical_names_map_to_themselves(self):
        for category in CANONICAL_CATEGORIES:
            assert normalize_category(category) == category
