"""Tests for text helpers, phone numbers and coordinates."""

import pytest

from michelin_maps.parsing.geo import (
    parse_coordinate_pair,
    parse_google_maps_coordinates,
    parse_json_ld_coordinates,
    validate_coordinate,
)
from michelin_maps.parsing.phone import parse_phone_number
from michelin_maps.parsing.text import (
    join_facilities,
    location_from_address,
    normalize_address,
    split_price_and_cuisine,
    trim_whitespace,
)


class TestWhitespace:
    """Tests for whitespace helpers."""

    def test_trim_whitespace(self) -> None:
        """Test that newlines are dropped and the ends stripped."""
        assert trim_whitespace("  Les Amis\n ") == "Les Amis"
        assert trim_whitespace("") == ""

    def test_normalize_address(self) -> None:
        """Test that multi-line addresses become one line."""
        assert (
            normalize_address("Shaw Centre, #01-16,\n  1 Scotts Road, 228208, Singapore")
            == "Shaw Centre, #01-16, 1 Scotts Road, 228208, Singapore"
        )

    def test_join_facilities(self) -> None:
        """Test that facilities are comma-joined without blanks."""
        assert join_facilities(["Air conditioning", " ", "Wheelchair access "]) == (
            "Air conditioning,Wheelchair access"
        )
        assert join_facilities([]) == ""


class TestSplitPriceAndCuisine:
    """Tests for split_price_and_cuisine."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("$$$$ · French", ("$$$$", "French")),
            ("€€ • Modern Cuisine", ("€€", "Modern Cuisine")),
            ("¥¥ | Sushi", ("¥¥", "Sushi")),
            ("££ – Creative", ("££", "Creative")),
        ],
    )
    def test_delimiters(self, text: str, expected: tuple[str, str]) -> None:
        """Test splitting on each supported delimiter."""
        assert split_price_and_cuisine(text) == expected

    def test_first_delimiter_in_order_wins(self) -> None:
        """Test that the middle dot is preferred over a hyphen inside the price."""
        assert split_price_and_cuisine("300 - 2,000 MOP · Cantonese") == (
            "300 - 2,000 MOP",
            "Cantonese",
        )

    def test_no_delimiter(self) -> None:
        """Test that text without a delimiter is taken as the cuisine."""
        assert split_price_and_cuisine("French") == ("", "French")
        assert split_price_and_cuisine("") == ("", "")


class TestLocationFromAddress:
    """Tests for location_from_address."""

    def test_city_state_override(self) -> None:
        """Test that well-known city states win outright."""
        assert location_from_address("Shaw Centre, #01-16, 1 Scotts Road, 228208, Singapore") == (
            "Singapore"
        )
        assert location_from_address("Shop 1, 18 On Lan Street, Central, Hong Kong") == "Hong Kong"

    def test_four_or_more_parts(self) -> None:
        """Test that long addresses yield the last two parts."""
        assert location_from_address("12 rue du Château, Le Bourg, 03340, Préneron, France") == (
            "Préneron, France"
        )

    def test_two_or_three_parts(self) -> None:
        """Test that short addresses yield the last part."""
        assert location_from_address("Via Roma 1, Milano") == "Milano"
        assert location_from_address("1 Main Street, 10001, New York") == "New York"

    def test_single_part(self) -> None:
        """Test that an address without commas yields nothing."""
        assert location_from_address("Somewhere") == ""
        assert location_from_address("") == ""


class TestParsePhoneNumber:
    """Tests for parse_phone_number."""

    def test_tel_link(self) -> None:
        """Test that a tel: link is formatted as E.164."""
        assert parse_phone_number("tel:+65 6733 2225") == "+6567332225"

    def test_international_number(self) -> None:
        """Test formatting of a number with separators."""
        assert parse_phone_number("+33 1 42 65 85 10") == "+33142658510"

    def test_invalid_number(self) -> None:
        """Test that unparseable input yields an empty string."""
        assert parse_phone_number("not a number") == ""
        assert parse_phone_number("") == ""
        assert parse_phone_number("tel:") == ""


class TestCoordinates:
    """Tests for coordinate parsing."""

    def test_validate_coordinate(self) -> None:
        """Test the accepted coordinate range."""
        assert validate_coordinate("1.304") is True
        assert validate_coordinate("-180") is True
        assert validate_coordinate("180.1") is False
        assert validate_coordinate("abc") is False
        assert validate_coordinate("") is False

    def test_coordinate_pair(self) -> None:
        """Test that a pair is only kept when both values are valid."""
        assert parse_coordinate_pair(" 1.304", "103.83 ") == ("1.304", "103.83")
        assert parse_coordinate_pair("1.304", "") == ("", "")
        assert parse_coordinate_pair("999", "103.83") == ("", "")

    def test_json_ld_top_level(self) -> None:
        """Test that numbers keep their source precision."""
        json_ld = '{"@type":"Restaurant","latitude":1.3049000,"longitude":103.8278}'
        assert parse_json_ld_coordinates(json_ld) == ("1.3049000", "103.8278")

    def test_json_ld_geo(self) -> None:
        """Test fallback to the nested geo object."""
        json_ld = '{"geo":{"@type":"GeoCoordinates","latitude":"48.86","longitude":"2.31"}}'
        assert parse_json_ld_coordinates(json_ld) == ("48.86", "2.31")

    def test_json_ld_invalid(self) -> None:
        """Test that broken JSON yields empty coordinates."""
        assert parse_json_ld_coordinates("{not json") == ("", "")
        assert parse_json_ld_coordinates("") == ("", "")

    def test_google_maps_iframe(self) -> None:
        """Test reading coordinates from a Maps embed URL."""
        src = "https://www.google.com/maps/embed/v1/place?key=KEY&q=51.5078582,-0.7017529"
        assert parse_google_maps_coordinates(src) == ("51.5078582", "-0.7017529")

    def test_google_maps_without_coordinates(self) -> None:
        """Test that a place name query yields nothing."""
        src = "https://www.google.com/maps/embed/v1/place?key=KEY&q=Les+Amis"
        assert parse_google_maps_coordinates(src) == ("", "")
