"""
Scraper Configuration Module
============================

Collector and database settings for the live scraper and the Wayback
backfill. Defaults can be overridden from a YAML file whose path is taken
from ``MICHELIN_CONFIG_PATH`` (or ``config/michelin.yaml`` when present).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from michelin_maps.db.engine import DEFAULT_DATABASE_PATH

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "MICHELIN_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path("config/michelin.yaml")

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.4; rv:125.0) Gecko/20100101 Firefox/125.0",
]

DEFAULT_NON_RETRYABLE_STATUSES = [401, 403, 404]

SEED_CATEGORIES = [
    "3-stars-michelin",
    "2-stars-michelin",
    "1-star-michelin",
    "bib-gourmand",
    "the-plate-michelin",
]
GUIDE_BASE_URL = "https://guide.michelin.com/en/restaurants"


def seed_urls() -> list[str]:
    """Listing pages for every award category."""
    return [f"{GUIDE_BASE_URL}/{category}" for category in SEED_CATEGORIES]


class ConfigError(Exception):
    """Raised when the configuration file is missing or malformed."""


@dataclass
class CollectorConfig:
    """Settings for one HTTP collector and its retry policy."""

    allowed_domains: list[str]
    cache_path: str
    delay: float = 2.0
    random_delay: float = 2.0
    worker_count: int = 1
    max_queued_urls: int = 30_000
    max_retry: int = 3
    request_timeout: float = 30.0
    non_retryable_statuses: list[int] = field(
        default_factory=lambda: list(DEFAULT_NON_RETRYABLE_STATUSES)
    )
    user_agents: list[str] = field(default_factory=lambda: list(DEFAULT_USER_AGENTS))

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, defaults: CollectorConfig) -> CollectorConfig:
        """Create from dictionary, falling back to ``defaults`` for missing keys."""
        if not data:
            return defaults
        return cls(
            allowed_domains=list(data.get("allowed_domains", defaults.allowed_domains)),
            cache_path=str(data.get("cache_path", defaults.cache_path)),
            delay=float(data.get("delay", defaults.delay)),
            random_delay=float(data.get("random_delay", defaults.random_delay)),
            worker_count=int(data.get("worker_count", defaults.worker_count)),
            max_queued_urls=int(data.get("max_queued_urls", defaults.max_queued_urls)),
            max_retry=int(data.get("max_retry", defaults.max_retry)),
            request_timeout=float(data.get("request_timeout", defaults.request_timeout)),
            non_retryable_statuses=[
                int(s)
                for s in data.get("non_retryable_statuses", defaults.non_retryable_statuses)
            ],
            user_agents=list(data.get("user_agents", defaults.user_agents)),
        )

    def validate(self) -> None:
        """Reject settings the collector cannot run with."""
        if not self.allowed_domains:
            raise ConfigError("allowed_domains must not be empty")
        if self.worker_count < 1:
            raise ConfigError(f"worker_count must be at least 1, got {self.worker_count}")
        if self.max_queued_urls < 1:
            raise ConfigError(f"max_queued_urls must be at least 1, got {self.max_queued_urls}")
        if self.max_retry < 1:
            raise ConfigError(f"max_retry must be at least 1, got {self.max_retry}")
        if self.delay < 0 or self.random_delay < 0:
            raise ConfigError("delay and random_delay must not be negative")
        if not self.user_agents:
            raise ConfigError("user_agents must not be empty")


def default_scraper_config() -> CollectorConfig:
    return CollectorConfig(
        allowed_domains=["guide.michelin.com"],
        cache_path="cache/scrape",
        delay=2.0,
        random_delay=2.0,
        worker_count=1,
        max_queued_urls=30_000,
    )


def default_backfill_config() -> CollectorConfig:
    return CollectorConfig(
        allowed_domains=["web.archive.org"],
        cache_path="cache/wayback",
        delay=1.0,
        random_delay=2.0,
        worker_count=3,
        max_queued_urls=300_000,
    )


@dataclass
class AppConfig:
    """Top-level configuration threaded from the CLI into each run."""

    database_path: str = DEFAULT_DATABASE_PATH
    scraper: CollectorConfig = field(default_factory=default_scraper_config)
    backfill: CollectorConfig = field(default_factory=default_backfill_config)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AppConfig:
        """Create from dictionary."""
        if data is None:
            return cls()
        return cls(
            database_path=str(data.get("database_path", DEFAULT_DATABASE_PATH)),
            scraper=CollectorConfig.from_dict(data.get("scraper"), default_scraper_config()),
            backfill=CollectorConfig.from_dict(data.get("backfill"), default_backfill_config()),
        )

    def validate(self) -> None:
        self.scraper.validate()
        self.backfill.validate()


def load_config(config_path: Path | str | None = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Explicit path. If None, uses MICHELIN_CONFIG_PATH or
                     config/michelin.yaml when either exists.

    Returns:
        Validated AppConfig

    Raises:
        ConfigError: If an explicit file is missing or the content is invalid
    """
    explicit = config_path is not None or bool(os.environ.get(CONFIG_PATH_ENV))
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    path = path.expanduser()

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug(f"No config file at {path}, using defaults")
        config = AppConfig()
        config.validate()
        return config

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")

    try:
        config = AppConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {path}: {e}") from e

    config.validate()
    logger.info(f"Loaded configuration from {path}")
    return config


# Global default config
_default_config: AppConfig | None = None


def get_default_config() -> AppConfig:
    """Get the default configuration, loading it on first use."""
    global _default_config
    if _default_config is None:
        _default_config = load_config()
    return _default_config


def reset_default_config() -> None:
    """Reset the default configuration (useful for testing)."""
    global _default_config
    _default_config = None
