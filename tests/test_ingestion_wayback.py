"""Tests for the Wayback Machine backfill."""

import asyncio
import json

import httpx
import pytest
from conftest import LES_AMIS_URL, snapshot_html
from sqlalchemy.orm import sessionmaker

from michelin_maps.core.schema import Restaurant
from michelin_maps.db.repositories import RestaurantRepository
from michelin_maps.ingestion.pipeline import RecordPipeline
from michelin_maps.ingestion.wayback import BackfillScraper, parse_cdx_timestamps
from michelin_maps.parsing.urls import build_snapshot_url

SNAPSHOT_2020 = build_snapshot_url("20200615123000", LES_AMIS_URL)
SNAPSHOT_2022 = build_snapshot_url("20220101000000", LES_AMIS_URL)


class TestParseCdxTimestamps:
    """Tests for parse_cdx_timestamps."""

    def test_skips_header(self) -> None:
        """Test that the header row is not a capture."""
        body = json.dumps(
            [["timestamp", "original"], ["20200615123000", "u"], ["20220101000000", "u"]]
        )
        assert parse_cdx_timestamps(body) == ["20200615123000", "20220101000000"]

    def test_skips_malformed_rows(self) -> None:
        """Test that empty rows and short timestamps are ignored."""
        body = json.dumps([["timestamp", "original"], [], [""], ["2022"], ["20220101000000", "u"]])
        assert parse_cdx_timestamps(body) == ["20220101000000"]

    def test_empty_result(self) -> None:
        """Test that an archive with no captures yields nothing."""
        assert parse_cdx_timestamps(b"[]") == []
        assert parse_cdx_timestamps(b"") == []

    def test_invalid_json(self) -> None:
        """Test that a non-JSON body raises ValueError."""
        with pytest.raises(ValueError):
            parse_cdx_timestamps(b"<html>rate limited</html>")
        with pytest.raises(ValueError):
            parse_cdx_timestamps(b'{"error": "x"}')


class WaybackServer:
    """MockTransport handler serving CDX results and snapshots."""

    def __init__(self, cdx_rows: list[list[str]], snapshots: dict[str, str]):
        self.cdx_rows = cdx_rows
        self.snapshots = snapshots
        self.requested: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        if request.url.path == "/cdx/search/cdx":
            return httpx.Response(200, json=self.cdx_rows)
        for timestamp, markup in self.snapshots.items():
            if f"/web/{timestamp}id_/" in url:
                return httpx.Response(200, html=markup)
        return httpx.Response(404, text="not archived")


@pytest.fixture
def stored_restaurant(session_factory: sessionmaker) -> Restaurant:
    with session_factory() as session:
        restaurant = RestaurantRepository(session).save_restaurant(
            Restaurant(
                url=LES_AMIS_URL,
                name="Les Amis",
                address="Shaw Centre, #01-16, 1 Scotts Road, 228208, Singapore",
                location="Singapore",
            )
        )
        session.commit()
    return restaurant


class TestBackfillScraper:
    """Tests for BackfillScraper end to end."""

    @pytest.mark.asyncio
    async def test_backfill_awards(
        self, make_collector_config, session_factory: sessionmaker, stored_restaurant: Restaurant
    ) -> None:
        """Test that every snapshot becomes an award for its year."""
        server = WaybackServer(
            [
                ["timestamp", "original"],
                ["20200615123000", LES_AMIS_URL],
                ["20220101000000", LES_AMIS_URL],
            ],
            {
                "20200615123000": snapshot_html(2020, "1 star", "$$"),
                "20220101000000": snapshot_html(2022, "2 stars", "$$$"),
            },
        )
        config = make_collector_config(["web.archive.org"], worker_count=3)
        scraper = BackfillScraper(
            config, RecordPipeline(session_factory), transport=httpx.MockTransport(server)
        )

        await asyncio.wait_for(scraper.run([LES_AMIS_URL]), timeout=10)

        with session_factory() as session:
            awards = RestaurantRepository(session).list_awards(stored_restaurant.id)

        assert [(a.year, a.distinction, a.price, a.green_star, a.wayback_url) for a in awards] == [
            (2020, "1 Star", "$$", False, SNAPSHOT_2020),
            (2022, "2 Stars", "$$$", False, SNAPSHOT_2022),
        ]
        assert scraper.stats.cdx_queries == 1
        assert scraper.stats.snapshots_found == 2

    @pytest.mark.asyncio
    async def test_cdx_context_and_snapshot_urls(
        self, make_collector_config, session_factory: sessionmaker, stored_restaurant: Restaurant
    ) -> None:
        """Test that snapshots are built from the stored URL, not the CDX original column."""
        server = WaybackServer(
            [["timestamp", "original"], ["20220101000000", "http://guide.michelin.com:80/OTHER"]],
            {"20220101000000": snapshot_html(2022, "2 stars", "$$$")},
        )
        scraper = BackfillScraper(
            make_collector_config(["web.archive.org"]),
            RecordPipeline(session_factory),
            transport=httpx.MockTransport(server),
        )

        await asyncio.wait_for(scraper.run([LES_AMIS_URL]), timeout=10)

        with session_factory() as session:
            award = RestaurantRepository(session).find_award(stored_restaurant.id, 2022)
        assert award.wayback_url == SNAPSHOT_2022
        assert not any("OTHER" in url for url in server.requested)

    @pytest.mark.asyncio
    async def test_snapshot_without_year_skipped(
        self, make_collector_config, session_factory: sessionmaker, stored_restaurant: Restaurant
    ) -> None:
        """Test that a snapshot with no readable year is not persisted."""
        markup = snapshot_html(2022, "2 stars", "$$$").replace('"award":{"dateAwarded":"2022-06-01"}', '"x":1')
        server = WaybackServer(
            [["timestamp", "original"], ["20220101000000", LES_AMIS_URL]],
            {"20220101000000": markup},
        )
        pipeline = RecordPipeline(session_factory)
        scraper = BackfillScraper(
            make_collector_config(["web.archive.org"]), pipeline, transport=httpx.MockTransport(server)
        )

        await asyncio.wait_for(scraper.run([LES_AMIS_URL]), timeout=10)

        with session_factory() as session:
            assert RestaurantRepository(session).count_awards() == 0
        assert pipeline.stats.records_skipped == 1

    @pytest.mark.asyncio
    async def test_bad_cdx_response(
        self, make_collector_config, session_factory: sessionmaker, stored_restaurant: Restaurant
    ) -> None:
        """Test that an unparseable CDX answer queues nothing."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, html="<html>Too many requests</html>")

        scraper = BackfillScraper(
            make_collector_config(["web.archive.org"]),
            RecordPipeline(session_factory),
            transport=httpx.MockTransport(handler),
        )

        stats = await asyncio.wait_for(scraper.run([LES_AMIS_URL]), timeout=10)

        assert stats.requests == 1
        assert scraper.stats.snapshots_found == 0
