"""Phone number normalization to E.164."""

import logging

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

logger = logging.getLogger(__name__)


def parse_phone_number(raw: str) -> str:
    """
    Format a click-to-call number as E.164.

    e.g. "tel:+65 6733 2225" -> "+6567332225"

    Returns:
        The E.164 number, or "" when it cannot be parsed
    """
    raw = (raw or "").strip()
    if raw.lower().startswith("tel:"):
        raw = raw[4:].strip()
    if not raw:
        return ""

    try:
        number = phonenumbers.parse(raw, None)
    except NumberParseException as e:
        logger.debug(f"Could not parse phone number {raw!r}: {e}")
        return ""
    return phonenumbers.format_number(number, PhoneNumberFormat.E164)
