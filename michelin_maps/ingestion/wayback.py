"""
Wayback Backfill Module
=======================

Recovers historical awards from Internet Archive snapshots of restaurant
pages already in the database.

For each restaurant URL the CDX API is asked for every capture; each
capture is then fetched raw (``id_``) and run through the detail extractor.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

import httpx

from michelin_maps.ingestion.config import CollectorConfig
from michelin_maps.ingestion.crawler import Collector, Crawler, CrawlStats, Request, Response
from michelin_maps.ingestion.extractors import DetailExtractor, parse_response
from michelin_maps.ingestion.pipeline import RecordPipeline
from michelin_maps.ingestion.retry import RetryController, RetryPolicy
from michelin_maps.ingestion.storage import ResponseCache
from michelin_maps.parsing.urls import build_cdx_url, build_snapshot_url

logger = logging.getLogger(__name__)

# yyyyMMddhhmmss
MIN_TIMESTAMP_LENGTH = 14


def parse_cdx_timestamps(body: bytes | str) -> list[str]:
    """
    Capture timestamps from a CDX JSON response.

    The first row is the header. Empty rows and timestamps shorter than
    14 characters are skipped.

    Raises:
        ValueError: If the body is not a JSON array of rows
    """
    rows = json.loads(body or "[]")
    if not isinstance(rows, list):
        raise ValueError(f"Expected a JSON array, got {type(rows).__name__}")

    timestamps = []
    for row in rows[1:]:
        if not row or not isinstance(row, list):
            continue
        timestamp = str(row[0] or "")
        if len(timestamp) < MIN_TIMESTAMP_LENGTH:
            continue
        timestamps.append(timestamp)
    return timestamps


@dataclass
class BackfillStats:
    """Counters for one backfill run."""

    restaurants: int = 0
    cdx_queries: int = 0
    snapshots_found: int = 0
    snapshots_fetched: int = 0


class BackfillScraper:
    """
    Wayback Machine backfill over a main (CDX) collector and a detail
    (snapshot) collector sharing one crawler.

    Usage:
        scraper = BackfillScraper(config.backfill, RecordPipeline(session_factory))
        stats = await scraper.run(["https://guide.michelin.com/en/..."])
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
        self.extractor = DetailExtractor()
        self.stats = BackfillStats()

        self.crawler = Crawler(config, cache=cache, transport=transport)
        self.retry = RetryController(RetryPolicy.from_config(config))

        self.collector: Collector = self.crawler.collector("cdx")
        self.detail_collector: Collector = self.collector.clone("snapshot")

        for collector in (self.collector, self.detail_collector):
            self.retry.attach(collector)

        self.collector.on_response(self.handle_cdx)
        self.detail_collector.on_request(self._log_snapshot_request)
        self.detail_collector.on_response(self.handle_snapshot)

    def enqueue_restaurant(self, restaurant_url: str) -> bool:
        """Queue the CDX lookup for one restaurant."""
        self.stats.restaurants += 1
        return self.collector.enqueue(
            build_cdx_url(restaurant_url), ctx={"restaurant_url": restaurant_url}
        )

    async def run(
        self, restaurant_urls: list[str], cancel: asyncio.Event | None = None
    ) -> CrawlStats:
        """
        Backfill every given restaurant.

        Raises:
            QueueFull: If the URLs do not fit in the request queue
        """
        for url in restaurant_urls:
            self.enqueue_restaurant(url)

        logger.info(f"Starting Wayback backfill for {len(restaurant_urls)} restaurants")
        stats = await self.crawler.run(cancel)
        logger.info(
            f"Wayback backfill finished: {self.stats.snapshots_found} snapshots found, "
            f"{self.stats.snapshots_fetched} fetched"
        )
        return stats

    def handle_cdx(self, response: Response) -> None:
        restaurant_url = response.ctx.get("restaurant_url", "")
        self.stats.cdx_queries += 1

        try:
            timestamps = parse_cdx_timestamps(response.body)
        except ValueError as e:
            logger.warning(f"Failed to parse CDX response for {restaurant_url} ({response.url}): {e}")
            return

        if not timestamps:
            logger.debug(f"No snapshots found for {restaurant_url}")
            return

        queued = 0
        for timestamp in timestamps:
            snapshot_url = build_snapshot_url(timestamp, restaurant_url)
            if self.detail_collector.enqueue(snapshot_url):
                queued += 1

        self.stats.snapshots_found += queued
        logger.info(f"Queued {queued} Wayback snapshots for {restaurant_url}")

    def handle_snapshot(self, response: Response) -> None:
        self.stats.snapshots_fetched += 1

        document = parse_response(response)
        if document is None:
            logger.warning(f"Empty or unparseable snapshot {response.url}")
            return

        data = self.extractor.extract(document, response.url, response.ctx)
        self.pipeline.save_archived(data)

    @staticmethod
    def _log_snapshot_request(request: Request) -> None:
        logger.debug(f"Fetching Wayback snapshot {request.url} (attempt {request.attempt})")
