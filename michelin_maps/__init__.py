"""MICHELIN Guide scraper with Wayback Machine award history."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("michelin-maps")
except PackageNotFoundError:
    __version__ = "development"
