"""
Response Cache Module
=====================

On-disk cache of raw HTTP responses keyed by the SHA-1 of the request URL.

Directory structure:
    {cache_path}/{sha1[:2]}/{sha1}

Each file holds the response as it came off the wire: status line,
headers, a blank line, then the body.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Raised when the cache directory cannot be used."""


@dataclass
class CachedResponse:
    """A response read back from the cache."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def cache_key(url: str) -> str:
    """Hex SHA-1 of the URL."""
    return hashlib.sha1(url.encode("utf-8")).hexdigest()


def serialize_response(status_code: int, reason: str, headers: dict[str, str], body: bytes) -> bytes:
    lines = [f"HTTP/1.1 {status_code} {reason}".rstrip()]
    lines.extend(f"{name}: {value}" for name, value in headers.items())
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("latin-1", errors="replace") + body


def deserialize_response(raw: bytes) -> CachedResponse:
    """
    Parse a cached response.

    Raises:
        ValueError: If the status line is malformed
    """
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")

    status_parts = lines[0].split(" ", 2)
    if len(status_parts) < 2 or not status_parts[0].startswith("HTTP/"):
        raise ValueError(f"Malformed status line: {lines[0]!r}")
    status_code = int(status_parts[1])

    headers: dict[str, str] = {}
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip()] = value.strip()

    return CachedResponse(status_code=status_code, headers=headers, body=body)


class ResponseCache:
    """
    File-backed response cache.

    Both successful and failed responses are stored; the retry path
    deletes an entry before fetching it again.
    """

    def __init__(self, cache_path: str | Path) -> None:
        """
        Initialize the cache.

        Args:
            cache_path: Base directory for cache files

        Raises:
            CacheError: If the directory cannot be created
        """
        self.base_path = Path(cache_path).expanduser()
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"Cannot create cache directory {self.base_path}: {e}") from e
        if not os.access(self.base_path, os.W_OK):
            raise CacheError(f"Cache directory is not writable: {self.base_path}")

    def path_for(self, url: str) -> Path:
        key = cache_key(url)
        return self.base_path / key[:2] / key

    def get(self, url: str) -> CachedResponse | None:
        """Return the cached response for a URL, or None on a miss."""
        path = self.path_for(url)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            return deserialize_response(raw)
        except ValueError as e:
            logger.warning(f"Discarding corrupt cache entry {path}: {e}")
            self.delete(url)
            return None

    def put(
        self,
        url: str,
        status_code: int,
        headers: dict[str, str],
        body: bytes,
        reason: str = "",
    ) -> Path:
        """Store a response, replacing any previous entry atomically."""
        path = self.path_for(url)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = serialize_response(status_code, reason, headers, body)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path

    def delete(self, url: str) -> bool:
        """
        Remove the entry for a URL.

        Returns:
            True if a file was removed, False if there was none
        """
        try:
            self.path_for(url).unlink()
        except FileNotFoundError:
            return False
        return True
