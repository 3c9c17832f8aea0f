"""Tests for distinction, price and dLayer parsing."""

import pytest

from michelin_maps.parsing.awards import (
    map_price,
    normalize_price_text,
    parse_distinction,
    parse_dlayer_value,
    parse_green_star,
    parse_price,
)


class TestParseDistinction:
    """Tests for parse_distinction."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Three Stars: Exceptional cuisine", "3 Stars"),
            ("3 Stars MICHELIN", "3 Stars"),
            ("Two Stars: Excellent cooking", "2 Stars"),
            ("2 stars", "2 Stars"),
            ("One Star: High quality cooking", "1 Star"),
            ("1 star", "1 Star"),
            ("Bib Gourmand: good quality, good value cooking", "Bib Gourmand"),
            ("The MICHELIN Plate: Good cooking", "Selected Restaurants"),
            ("Selected Restaurants", "Selected Restaurants"),
        ],
    )
    def test_known_labels(self, text: str, expected: str) -> None:
        """Test that every label generation maps to a canonical distinction."""
        assert parse_distinction(text) == expected

    def test_strips_bullets_and_punctuation(self) -> None:
        """Test that bullets and trailing punctuation are ignored."""
        assert parse_distinction("&bull; One Star &bull;") == "1 Star"
        assert parse_distinction("• Two Stars!") == "2 Stars"

    def test_unknown_defaults_to_selected(self) -> None:
        """Test that unrecognised text counts as Selected Restaurants."""
        assert parse_distinction("Something else entirely") == "Selected Restaurants"
        assert parse_distinction("") == "Selected Restaurants"


class TestParseGreenStar:
    """Tests for parse_green_star."""

    def test_detects_green_star(self) -> None:
        """Test green star detection is case-insensitive."""
        assert parse_green_star("MICHELIN Green Star") is True
        assert parse_green_star("green star") is True

    def test_no_green_star(self) -> None:
        """Test that other text is not a green star."""
        assert parse_green_star("One Star") is False


class TestParsePrice:
    """Tests for parse_price and normalize_price_text."""

    @pytest.mark.parametrize(
        "text",
        [
            "$$$$",
            "€€",
            "¥¥¥",
            "1,800 NOK",
            "300 - 2,000 MOP",
            "155 - 380",
            "Over 75 USD",
            "Under 200 SGD",
            "Between 350 and 500 HKD",
            "500 to 1500 TWD",
            "Less than 200 THB",
            "less than 12.5 EUR",
        ],
    )
    def test_known_formats_round_trip(self, text: str) -> None:
        """Test that every known format is returned unchanged."""
        assert parse_price(text) == text
        assert parse_price(parse_price(text)) == text

    def test_cuts_at_separator(self) -> None:
        """Test that text after a middle dot or bullet is dropped."""
        assert parse_price("$$$$ · French") == "$$$$"
        assert parse_price("€€ • Modern Cuisine") == "€€"

    def test_collapses_whitespace(self) -> None:
        """Test that whitespace runs are collapsed before matching."""
        assert normalize_price_text("  300   -  2,000\n MOP ") == "300 - 2,000 MOP"
        assert parse_price("  300   -  2,000\n MOP ") == "300 - 2,000 MOP"

    def test_unknown_format_is_empty(self) -> None:
        """Test that unrecognised text yields no price."""
        assert parse_price("French cuisine") == ""
        assert parse_price("") == ""


class TestMapPrice:
    """Tests for map_price."""

    def test_price_categories(self) -> None:
        """Test CAT_P01..CAT_P04 codes map to dollar signs."""
        assert map_price("CAT_P01") == "$"
        assert map_price("CAT_P02") == "$$"
        assert map_price("CAT_P03") == "$$$"
        assert map_price("CAT_P04") == "$$$$"

    def test_passthrough(self) -> None:
        """Test that other values pass through with escaped commas decoded."""
        assert map_price("€€") == "€€"
        assert map_price("1\\u002c800 NOK") == "1,800 NOK"


class TestParseDlayerValue:
    """Tests for parse_dlayer_value."""

    SCRIPT = (
        "dLayer = {};\n"
        "dLayer['distinction'] = '2 star';\n"
        "dLayer['price'] = 'CAT_P03';\n"
        "dLayer['greenstar'] = 'True';\n"
    )

    def test_reads_assignments(self) -> None:
        """Test values are read from assignment statements."""
        assert parse_dlayer_value(self.SCRIPT, "distinction") == "2 star"
        assert parse_dlayer_value(self.SCRIPT, "price") == "CAT_P03"
        assert parse_dlayer_value(self.SCRIPT, "greenstar") == "True"

    def test_missing_key(self) -> None:
        """Test that an absent key yields an empty string."""
        assert parse_dlayer_value(self.SCRIPT, "cuisine") == ""

    def test_object_literal_not_supported(self) -> None:
        """Test that object literal syntax is not recognised."""
        assert parse_dlayer_value("dLayer = {'price': 'CAT_P02'}", "price") == ""
