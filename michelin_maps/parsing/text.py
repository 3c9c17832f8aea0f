"""Whitespace and list helpers for scraped text."""

PRICE_CUISINE_DELIMITERS = ["·", "•", "-", "|", "–", "—"]

LOCATION_OVERRIDES = {
    "hong kong": "Hong Kong",
    "singapore": "Singapore",
    "dubai": "Dubai",
    "macau": "Macau",
}


def trim_whitespace(text: str) -> str:
    """Drop line breaks, fold double spaces and strip the ends."""
    if not text:
        return ""
    trimmed = text.replace("\n", "").replace("  ", " ")
    return trimmed.strip()


def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace, including newlines, to a single space."""
    return " ".join(text.split())


def normalize_address(text: str) -> str:
    """
    Flatten a multi-line address.

    e.g. "Shaw Centre, #01-16,\\n1 Scotts Road, 228208, Singapore"
    """
    return normalize_whitespace(text.replace("\n", " "))


def join_facilities(facilities: list[str]) -> str:
    """Comma-join facility names, skipping blanks."""
    return ",".join(item.strip() for item in facilities if item and item.strip())


def split_price_and_cuisine(
    text: str, delimiters: list[str] | None = None
) -> tuple[str, str]:
    """
    Split a "price · cuisine" block on the first delimiter present.

    Delimiters are tried in order. When none occurs the whole text is taken
    as the cuisine and the price is left empty.

    Returns:
        (price, cuisine)
    """
    if not text:
        return "", ""

    for delimiter in delimiters or PRICE_CUISINE_DELIMITERS:
        if delimiter in text:
            price, cuisine = text.split(delimiter, 1)
            return price.strip(), cuisine.strip()

    return "", text.strip()


def location_from_address(address: str) -> str:
    """
    Guess the city/region part of an address.

    Well-known city states win outright. Otherwise four or more comma
    separated parts give "second-to-last, last" (e.g. "Préneron, France"),
    and two or three parts give the last one.
    """
    if not address:
        return ""

    lowered = address.lower()
    for needle, location in LOCATION_OVERRIDES.items():
        if needle in lowered:
            return location

    parts = [part.strip() for part in address.split(",") if part.strip()]
    if len(parts) >= 4:
        return f"{parts[-2]}, {parts[-1]}"
    if len(parts) >= 2:
        return parts[-1]
    return ""
