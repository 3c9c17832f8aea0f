"""Latitude/longitude parsing."""

import json
from urllib.parse import parse_qs, urlparse


def validate_coordinate(value: str) -> bool:
    """
    Whether a value parses as a float within [-180, 180].

    We cannot tell latitude from longitude here, so both use the wider range.
    """
    try:
        coordinate = float(value)
    except (TypeError, ValueError):
        return False
    return -180.0 <= coordinate <= 180.0


def _coordinate(value: object) -> str:
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        value = repr(value)
    if not isinstance(value, str):
        return ""
    value = value.strip()
    return value if value and validate_coordinate(value) else ""


def parse_json_ld_coordinates(json_ld: str) -> tuple[str, str]:
    """
    Read latitude and longitude from a JSON-LD block.

    Numbers are kept as they appear in the source so no precision is lost.
    Values nested under ``geo`` are used when either top-level value is missing.

    Returns:
        (latitude, longitude), each "" when absent or invalid
    """
    if not json_ld:
        return "", ""
    try:
        data = json.loads(json_ld, parse_float=str, parse_int=str)
    except ValueError:
        return "", ""
    if not isinstance(data, dict):
        return "", ""

    latitude = _coordinate(data.get("latitude"))
    longitude = _coordinate(data.get("longitude"))

    geo = data.get("geo")
    if (not latitude or not longitude) and isinstance(geo, dict):
        latitude = _coordinate(geo.get("latitude"))
        longitude = _coordinate(geo.get("longitude"))

    return latitude, longitude


def parse_google_maps_coordinates(src: str) -> tuple[str, str]:
    """
    Read coordinates from the ``q`` parameter of a Google Maps embed URL.

    e.g. "https://www.google.com/maps/embed/v1/place?key=K&q=51.5078582,-0.7017529"
    """
    query = parse_qs(urlparse(src).query).get("q")
    if not query:
        return "", ""

    parts = query[0].split(",")
    if len(parts) != 2:
        return "", ""

    latitude, longitude = parts[0].strip(), parts[1].strip()
    return (
        latitude if validate_coordinate(latitude) else "",
        longitude if validate_coordinate(longitude) else "",
    )


def parse_coordinate_pair(latitude: str, longitude: str) -> tuple[str, str]:
    """Return the pair stripped if both values are valid, else empty strings."""
    latitude, longitude = (latitude or "").strip(), (longitude or "").strip()
    if validate_coordinate(latitude) and validate_coordinate(longitude):
        return latitude, longitude
    return "", ""
