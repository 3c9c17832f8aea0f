"""Guide and Wayback Machine URL helpers."""

import re
from urllib.parse import urlsplit, urlunsplit

WAYBACK_HOST = "web.archive.org"
CDX_ENDPOINT = "https://web.archive.org/cdx/search/cdx"

_SNAPSHOT_PATTERN = re.compile(r"https?://web\.archive\.org/web/\d{14}[^/]*/(.+)")


def normalize_url(url: str) -> str:
    """
    Canonical form of a restaurant URL.

    Lowercases scheme and host, drops query and fragment, and strips a
    trailing slash unless the path is the root.
    """
    url = url.strip()
    if not url:
        return ""

    parts = urlsplit(url)
    path = parts.path
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, "", ""))


def is_wayback_url(url: str) -> bool:
    return urlsplit(url).netloc.lower() == WAYBACK_HOST


def extract_original_url(snapshot_url: str) -> str:
    """
    Recover the archived page URL from a snapshot URL.

    e.g. "https://web.archive.org/web/20220101000000id_/https://guide.michelin.com/x"
    -> "https://guide.michelin.com/x"
    """
    marker = "id_/"
    index = snapshot_url.rfind(marker)
    if index != -1:
        return normalize_url(snapshot_url[index + len(marker):])

    match = _SNAPSHOT_PATTERN.match(snapshot_url)
    if match:
        return normalize_url(match.group(1))
    return normalize_url(snapshot_url)


def build_cdx_url(restaurant_url: str) -> str:
    """CDX lookup listing every capture of a restaurant page."""
    return f"{CDX_ENDPOINT}?url={restaurant_url}&output=json&fl=timestamp,original"


def build_snapshot_url(timestamp: str, restaurant_url: str) -> str:
    """Raw (``id_``) snapshot URL so the archive serves the page unmodified."""
    return f"https://{WAYBACK_HOST}/web/{timestamp}id_/{restaurant_url}"
