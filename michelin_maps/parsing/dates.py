"""Published-year parsing from JSON-LD and free text."""

import json
import logging
import re
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
]

_TEXT_PATTERNS = [
    re.compile(r"(\d{4})\s+MICHELIN Guide"),
    re.compile(r"MICHELIN Guide.*?(\d{4})"),
    re.compile(r"(\d{4}-\d{2}-\d{2})"),
]

MIN_YEAR = 1900


def current_year() -> int:
    return datetime.now(UTC).year


def is_valid_year(year: int) -> bool:
    """Guide years run from 1900 to one year past the current one."""
    return MIN_YEAR <= year <= current_year() + 1


def _year_from_date_string(value: str) -> int:
    value = value.strip()
    if len(value) == 4 and value.isdigit():
        year = int(value)
        return year if is_valid_year(year) else 0

    for fmt in DATE_FORMATS:
        try:
            year = datetime.strptime(value, fmt).year
        except ValueError:
            continue
        return year if is_valid_year(year) else 0
    return 0


def parse_published_year(json_ld: str) -> int:
    """
    Read the guide year from a restaurant JSON-LD block.

    ``award.dateAwarded`` is preferred over ``review.datePublished``.

    Args:
        json_ld: Raw script body

    Returns:
        The year, or 0 if none could be read
    """
    try:
        data = json.loads(json_ld)
    except ValueError:
        logger.debug("JSON-LD block is not valid JSON")
        return 0
    if not isinstance(data, dict):
        return 0

    for container, key in (("award", "dateAwarded"), ("review", "datePublished")):
        node = data.get(container)
        if not isinstance(node, dict):
            continue
        value = node.get(key)
        if isinstance(value, str) and value:
            year = _year_from_date_string(value)
            if year:
                return year
    return 0


def parse_year_from_text(text: str) -> int:
    """
    Find a guide year in arbitrary text.

    e.g. "2023 MICHELIN Guide Singapore", "MICHELIN Guide Hong Kong 2019",
    "2021-06-30"
    """
    text = text.strip()
    if not text:
        return 0

    for fmt in DATE_FORMATS:
        try:
            year = datetime.strptime(text, fmt).year
        except ValueError:
            continue
        return year if is_valid_year(year) else 0

    for pattern in _TEXT_PATTERNS:
        match = pattern.search(text)
        if match:
            year = int(match.group(1)[:4])
            return year if is_valid_year(year) else 0

    if len(text) == 4 and text.isdigit():
        year = int(text)
        return year if is_valid_year(year) else 0
    return 0
