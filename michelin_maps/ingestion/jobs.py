"""
Scrape Jobs Module
==================

Entry points for the two crawl jobs:

- scrape: live guide listing pages, then every restaurant detail page
- backfill: Wayback Machine snapshots of restaurants already stored

Both return a JobResult summarising the run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

import httpx
from sqlalchemy.orm import sessionmaker

from michelin_maps.db.repositories import RestaurantRepository
from michelin_maps.ingestion.config import AppConfig, CollectorConfig, seed_urls
from michelin_maps.ingestion.crawler import Collector, Crawler, CrawlStats, QueueFull, Response
from michelin_maps.ingestion.extractors import DetailExtractor, ListingExtractor, parse_response
from michelin_maps.ingestion.pipeline import PipelineStats, RecordPipeline
from michelin_maps.ingestion.retry import RetryController, RetryPolicy
from michelin_maps.ingestion.storage import ResponseCache
from michelin_maps.ingestion.wayback import BackfillScraper
from michelin_maps.parsing.urls import normalize_url

logger = logging.getLogger(__name__)


class UnknownRestaurantError(Exception):
    """Raised when a backfill is requested for a URL that is not in the database."""


class JobStatus(str, Enum):
    """Status of a scrape job."""

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class JobResult:
    """Result of a scrape or backfill job."""

    job_id: str
    job_name: str
    status: JobStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    urls_requested: int = 0
    urls_fetched: int = 0
    cache_hits: int = 0
    pages_failed: int = 0
    restaurants_saved: int = 0
    awards_created: int = 0
    awards_updated: int = 0
    awards_unchanged: int = 0
    records_skipped: int = 0
    snapshots_found: int = 0
    errors: list[str] = field(default_factory=list)
    duration_seconds: float | None = None

    def add_crawl_stats(self, stats: CrawlStats) -> None:
        self.urls_requested = stats.requests
        self.urls_fetched = stats.fetched
        self.cache_hits = stats.cache_hits
        self.pages_failed = stats.failed

    def add_pipeline_stats(self, stats: PipelineStats) -> None:
        self.restaurants_saved = stats.restaurants_saved
        self.awards_created = stats.awards_created
        self.awards_updated = stats.awards_updated
        self.awards_unchanged = stats.awards_unchanged
        self.records_skipped = stats.records_skipped
        if stats.errors:
            self.errors.append(f"{stats.errors} records failed validation or could not be saved")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "job_id": self.job_id,
            "job_name": self.job_name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "urls_requested": self.urls_requested,
            "urls_fetched": self.urls_fetched,
            "cache_hits": self.cache_hits,
            "pages_failed": self.pages_failed,
            "restaurants_saved": self.restaurants_saved,
            "awards_created": self.awards_created,
            "awards_updated": self.awards_updated,
            "awards_unchanged": self.awards_unchanged,
            "records_skipped": self.records_skipped,
            "snapshots_found": self.snapshots_found,
            "errors": self.errors,
            "duration_seconds": self.duration_seconds,
        }


class LiveScraper:
    """
    Live guide scraper.

    The listing collector walks the award category pages and queues every
    restaurant card on the detail collector, carrying the card's location
    and coordinates in the request context.
    """

    def __init__(
        self,
        config: CollectorConfig,
        pipeline: RecordPipeline,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.pipeline = pipeline
        self.listing_extractor = ListingExtractor()
        self.detail_extractor = DetailExtractor()

        self.crawler = Crawler(config, cache=cache, transport=transport)
        self.retry = RetryController(RetryPolicy.from_config(config))

        self.collector: Collector = self.crawler.collector("listing")
        self.detail_collector: Collector = self.collector.clone("detail")

        for collector in (self.collector, self.detail_collector):
            self.retry.attach(collector)

        self.collector.on_response(self.handle_listing)
        self.detail_collector.on_response(self.handle_detail)

    async def run(self, urls: list[str] | None = None, cancel: asyncio.Event | None = None) -> CrawlStats:
        """
        Crawl the listing pages (all award categories by default).

        Raises:
            QueueFull: If the seeds do not fit in the request queue
        """
        seeds = urls or seed_urls()
        for url in seeds:
            self.collector.enqueue(url)
        logger.info(f"Starting live scrape from {len(seeds)} listing pages")
        return await self.crawler.run(cancel)

    async def run_detail(self, url: str, cancel: asyncio.Event | None = None) -> CrawlStats:
        """Scrape a single restaurant detail page."""
        self.detail_collector.enqueue(url)
        logger.info(f"Scraping single restaurant page {url}")
        return await self.crawler.run(cancel)

    def handle_listing(self, response: Response) -> None:
        document = parse_response(response)
        if document is None:
            logger.warning(f"Empty or unparseable listing page {response.url}")
            return

        page = self.listing_extractor.extract(document, response.url, response.ctx)
        logger.debug(f"Found {len(page.cards)} restaurants on {response.url}")

        try:
            for card in page.cards:
                self.detail_collector.enqueue(card.url, ctx=card.context(), referer=response.url)
            for next_url in page.next_page_urls:
                self.collector.enqueue(next_url, referer=response.url)
        except QueueFull as e:
            logger.error(f"Stopped queueing links from {response.url}: {e}")

    def handle_detail(self, response: Response) -> None:
        document = parse_response(response)
        if document is None:
            logger.warning(f"Empty or unparseable restaurant page {response.url}")
            return

        data = self.detail_extractor.extract(document, response.url, response.ctx)
        self.pipeline.save_live(data)


def _start(job_name: str) -> JobResult:
    return JobResult(
        job_id=str(uuid4()),
        job_name=job_name,
        status=JobStatus.RUNNING,
        started_at=datetime.now(UTC),
    )


def _finish(result: JobResult, cancel: asyncio.Event | None) -> JobResult:
    if result.status is JobStatus.RUNNING:
        cancelled = cancel is not None and cancel.is_set()
        result.status = JobStatus.CANCELLED if cancelled else JobStatus.COMPLETED
    result.completed_at = datetime.now(UTC)
    if result.started_at and result.completed_at:
        result.duration_seconds = (result.completed_at - result.started_at).total_seconds()
    logger.info(f"Job {result.job_name} {result.status.value} in {result.duration_seconds:.1f}s")
    return result


async def scrape(
    config: AppConfig,
    session_factory: sessionmaker,
    url: str | None = None,
    cancel: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> JobResult:
    """
    Run the live scrape, or scrape a single restaurant page when ``url`` is given.

    Raises:
        CacheError: If the cache directory cannot be created
        QueueFull: If the seed URLs do not fit in the request queue
    """
    pipeline = RecordPipeline(session_factory)
    scraper = LiveScraper(config.scraper, pipeline, transport=transport)
    result = _start("scrape")

    try:
        if url:
            stats = await scraper.run_detail(url.strip(), cancel)
        else:
            stats = await scraper.run(cancel=cancel)
        result.add_crawl_stats(stats)
    except QueueFull:
        raise
    except Exception as e:
        logger.exception(f"Scrape job failed: {e}")
        result.status = JobStatus.FAILED
        result.errors.append(str(e))
    finally:
        result.add_pipeline_stats(pipeline.stats)

    return _finish(result, cancel)


def restaurants_to_backfill(session_factory: sessionmaker, url: str | None = None) -> list[str]:
    """
    Restaurant URLs to backfill: the one given, or every stored restaurant.

    Raises:
        UnknownRestaurantError: If ``url`` is not a stored restaurant
    """
    with session_factory() as session:
        repo = RestaurantRepository(session)
        if url:
            restaurant = repo.find_restaurant_by_url(normalize_url(url))
            if restaurant is None:
                raise UnknownRestaurantError(f"No restaurant found for URL {url}")
            return [restaurant.url]
        return [restaurant.url for restaurant in repo.list_all_restaurants_with_url()]


async def backfill(
    config: AppConfig,
    session_factory: sessionmaker,
    url: str | None = None,
    cancel: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> JobResult:
    """
    Backfill historical awards from the Wayback Machine.

    Raises:
        UnknownRestaurantError: If ``url`` is given but not stored
        CacheError: If the cache directory cannot be created
        QueueFull: If the CDX lookups do not fit in the request queue
    """
    restaurant_urls = restaurants_to_backfill(session_factory, url)
    logger.debug(f"Backfilling {len(restaurant_urls)} restaurants")

    pipeline = RecordPipeline(session_factory)
    scraper = BackfillScraper(config.backfill, pipeline, transport=transport)
    result = _start("backfill")

    try:
        stats = await scraper.run(restaurant_urls, cancel)
        result.add_crawl_stats(stats)
    except QueueFull:
        raise
    except Exception as e:
        logger.exception(f"Backfill job failed: {e}")
        result.status = JobStatus.FAILED
        result.errors.append(str(e))
    finally:
        result.add_pipeline_stats(pipeline.stats)
        result.snapshots_found = scraper.stats.snapshots_found

    return _finish(result, cancel)
