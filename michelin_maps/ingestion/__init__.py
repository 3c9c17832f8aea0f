"""
MICHELIN Guide Ingestion
========================

Crawls the live guide and Wayback Machine snapshots of it into the
restaurant database.

Pipeline Stages:
1. Discover - Listing pages yield restaurant cards and the next page
2. Fetch - Crawler applies per-host delays, caches responses, retries failures
3. Extract - Detail pages map to RestaurantData across historical layouts
4. Persist - Restaurants are upserted and yearly awards reconciled
5. Backfill - CDX lookups find archived snapshots of stored restaurants
"""

from michelin_maps.ingestion.config import (
    AppConfig,
    CollectorConfig,
    ConfigError,
    get_default_config,
    load_config,
)
from michelin_maps.ingestion.crawler import (
    Collector,
    Crawler,
    CrawlStats,
    FetchError,
    HostRateLimiter,
    QueueFull,
)
from michelin_maps.ingestion.storage import (
    CacheError,
    ResponseCache,
)
from michelin_maps.ingestion.retry import (
    RetryController,
    RetryPolicy,
)
from michelin_maps.ingestion.pipeline import (
    PipelineStats,
    RecordPipeline,
)
from michelin_maps.ingestion.wayback import BackfillScraper
from michelin_maps.ingestion.jobs import (
    JobResult,
    JobStatus,
    LiveScraper,
    UnknownRestaurantError,
    backfill,
    scrape,
)

__all__ = [
    # Config
    "AppConfig",
    "CollectorConfig",
    "ConfigError",
    "get_default_config",
    "load_config",
    # Crawler
    "Collector",
    "Crawler",
    "CrawlStats",
    "FetchError",
    "HostRateLimiter",
    "QueueFull",
    # Storage
    "CacheError",
    "ResponseCache",
    # Retry
    "RetryController",
    "RetryPolicy",
    # Pipeline
    "PipelineStats",
    "RecordPipeline",
    # Jobs
    "BackfillScraper",
    "JobResult",
    "JobStatus",
    "LiveScraper",
    "UnknownRestaurantError",
    "backfill",
    "scrape",
]
