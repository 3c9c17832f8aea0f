"""Distinction, green star, price and dLayer parsing."""

import re

from michelin_maps.core.enums import Distinction

_DISTINCTION_PATTERNS: list[tuple[re.Pattern[str], Distinction]] = [
    (re.compile(r"\b(three|3)\b.*?\bstars?\b", re.IGNORECASE), Distinction.THREE_STARS),
    (re.compile(r"\b(two|2)\b.*?\bstars?\b", re.IGNORECASE), Distinction.TWO_STARS),
    (re.compile(r"\b(one|1)\b.*?\bstar\b", re.IGNORECASE), Distinction.ONE_STAR),
    (re.compile(r"\bbib\b", re.IGNORECASE), Distinction.BIB_GOURMAND),
    (
        re.compile(r"\bselected\s*restaurants?\b|\bplate\b", re.IGNORECASE),
        Distinction.SELECTED_RESTAURANTS,
    ),
]

PRICE_SEPARATORS = "·•"

_PRICE_PATTERNS = [
    # "$$$$", "€€€"
    re.compile(r"^[€$£¥₩₽₹฿₺﷼₫]+$"),
    # "1,800 NOK", "300 - 2,000 MOP"
    re.compile(r"^[0-9][0-9,.\-\s]*[0-9]\s*[A-Z]{2,4}$"),
    # "155 - 380"
    re.compile(r"^[0-9][0-9,.\-\s]*[0-9]$"),
    # "Over 75 USD", "Under 200 SGD"
    re.compile(r"^(Over|Under)\s+\d+"),
    # "Between 350 and 500 HKD"
    re.compile(r"^Between\s+\d+.*\d+\s+[A-Z]{2,4}$"),
    # "500 to 1500 TWD"
    re.compile(r"^\d+\s+to\s+\d+\s+[A-Z]{2,4}$"),
    # "Less than 200 THB"
    re.compile(r"^Less than \d+(\.\d+)?\s*[A-Z]{2,4}$", re.IGNORECASE),
]

PRICE_CATEGORIES = {
    "CAT_P01": "$",
    "CAT_P02": "$$",
    "CAT_P03": "$$$",
    "CAT_P04": "$$$$",
}


def parse_distinction(text: str) -> str:
    """
    Map raw distinction text to one of the canonical distinctions.

    Anything unrecognised counts as a Selected Restaurant.
    """
    candidate = text.lower().replace("&bull;", "").replace("•", "")
    candidate = candidate.strip(" .!?,;:-").strip()

    for pattern, distinction in _DISTINCTION_PATTERNS:
        if pattern.search(candidate):
            return distinction.value
    return Distinction.SELECTED_RESTAURANTS.value


def parse_green_star(text: str) -> bool:
    return "green star" in text.lower()


def normalize_price_text(text: str, separators: str = PRICE_SEPARATORS) -> str:
    """Collapse whitespace and keep only what comes before a separator."""
    candidate = " ".join(text.split())
    for index, char in enumerate(candidate):
        if char in separators:
            return candidate[:index].strip()
    return candidate


def parse_price(text: str) -> str:
    """
    Return the price part of a text block, or "" if it matches no known format.

    e.g. "$$$ · French cuisine" -> "$$$", "Between 350 and 500 HKD" -> itself
    """
    candidate = normalize_price_text(text)
    if not candidate:
        return ""

    for pattern in _PRICE_PATTERNS:
        if pattern.search(candidate):
            return candidate
    return ""


def map_price(price: str) -> str:
    """Translate CAT_P01..CAT_P04 price codes to dollar signs."""
    price = price.strip().replace("\\u002c", ",")
    return PRICE_CATEGORIES.get(price, price)


def parse_dlayer_value(script: str, key: str) -> str:
    """
    Read ``dLayer['key'] = 'value';`` from a script body.

    Only the assignment form is recognised, not object literals.
    """
    match = re.search(re.escape(key) + r"'\]\s*=\s*'([^']*)'", script)
    return match.group(1) if match else ""
