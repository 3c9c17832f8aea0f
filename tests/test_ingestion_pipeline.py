"""Tests for persisting extracted records."""

from sqlalchemy.orm import sessionmaker

from michelin_maps.core.enums import SaveOutcome
from michelin_maps.core.schema import RestaurantData
from michelin_maps.db.repositories import RestaurantRepository
from michelin_maps.ingestion.pipeline import RecordPipeline

URL = "https://guide.michelin.com/en/singapore-region/singapore/restaurant/les-amis"
SNAPSHOT = f"https://web.archive.org/web/20220101000000id_/{URL}"


def _live(**overrides) -> RestaurantData:
    fields = {
        "url": URL,
        "name": "Les Amis",
        "address": "Shaw Centre, #01-16, 1 Scotts Road, 228208, Singapore",
        "location": "Singapore",
        "year": 2024,
        "distinction": "3 Stars",
        "price": "$$$$",
    }
    fields.update(overrides)
    return RestaurantData(**fields)


def _archived(**overrides) -> RestaurantData:
    fields = {
        "url": URL,
        "wayback_url": SNAPSHOT,
        "year": 2022,
        "distinction": "2 Stars",
        "price": "$$$",
    }
    fields.update(overrides)
    return RestaurantData(**fields)


class TestRecordPipeline:
    """Tests for RecordPipeline."""

    def test_live_record(self, session_factory: sessionmaker) -> None:
        """Test that a live record stores the restaurant and its award."""
        pipeline = RecordPipeline(session_factory)

        assert pipeline.save(_live()) is SaveOutcome.CREATED

        with session_factory() as session:
            repo = RestaurantRepository(session)
            restaurant = repo.find_restaurant_by_url(URL)
            award = repo.find_award(restaurant.id, 2024)
        assert award.distinction == "3 Stars"
        assert award.wayback_url == ""
        assert pipeline.stats.restaurants_saved == 1
        assert pipeline.stats.awards_created == 1

    def test_live_record_without_year(self, session_factory: sessionmaker) -> None:
        """Test that a live page with no year keeps its restaurant but stores no award."""
        pipeline = RecordPipeline(session_factory)

        assert pipeline.save(_live(year=0)) is None

        with session_factory() as session:
            repo = RestaurantRepository(session)
            restaurant = repo.find_restaurant_by_url(URL)
            assert restaurant is not None
            assert repo.list_awards(restaurant.id) == []
        assert pipeline.stats.restaurants_saved == 1
        assert pipeline.stats.errors == 1
        assert pipeline.stats.awards_created == 0

    def test_rerun_is_unchanged(self, session_factory: sessionmaker) -> None:
        """Test that saving the same live record twice changes no award."""
        pipeline = RecordPipeline(session_factory)
        pipeline.save(_live())

        assert pipeline.save(_live()) is SaveOutcome.UNCHANGED
        assert pipeline.stats.awards_unchanged == 1
        assert pipeline.stats.restaurants_saved == 2

    def test_invalid_restaurant_logged(self, session_factory: sessionmaker) -> None:
        """Test that a restaurant without a name is counted as an error, not raised."""
        pipeline = RecordPipeline(session_factory)

        assert pipeline.save(_live(name="")) is None
        assert pipeline.stats.errors == 1
        with session_factory() as session:
            assert RestaurantRepository(session).count_restaurants() == 0

    def test_invalid_award_keeps_restaurant(self, session_factory: sessionmaker) -> None:
        """Test that an award failing validation does not roll back the restaurant."""
        pipeline = RecordPipeline(session_factory)

        assert pipeline.save(_live(price="")) is None
        assert pipeline.stats.errors == 1
        with session_factory() as session:
            repo = RestaurantRepository(session)
            assert repo.count_restaurants() == 1
            assert repo.count_awards() == 0

    def test_archived_record(self, session_factory: sessionmaker) -> None:
        """Test that a snapshot adds an award to a known restaurant."""
        pipeline = RecordPipeline(session_factory)
        pipeline.save(_live())

        assert pipeline.save(_archived()) is SaveOutcome.CREATED

        with session_factory() as session:
            repo = RestaurantRepository(session)
            restaurant = repo.find_restaurant_by_url(URL)
            awards = repo.list_awards(restaurant.id)
        assert [(a.year, a.wayback_url) for a in awards] == [(2022, SNAPSHOT), (2024, "")]

    def test_archived_record_does_not_touch_restaurant(self, session_factory: sessionmaker) -> None:
        """Test that snapshot details never overwrite the restaurant row."""
        pipeline = RecordPipeline(session_factory)
        pipeline.save(_live())
        pipeline.save(_archived(name="Old Name", address="Old Address"))

        with session_factory() as session:
            restaurant = RestaurantRepository(session).find_restaurant_by_url(URL)
        assert restaurant.name == "Les Amis"

    def test_archived_unknown_restaurant(self, session_factory: sessionmaker) -> None:
        """Test that snapshots of unknown restaurants are skipped."""
        pipeline = RecordPipeline(session_factory)

        assert pipeline.save(_archived()) is None
        assert pipeline.stats.records_skipped == 1

    def test_archived_without_year_or_price(self, session_factory: sessionmaker) -> None:
        """Test that snapshots missing a year or price are skipped."""
        pipeline = RecordPipeline(session_factory)
        pipeline.save(_live())

        assert pipeline.save(_archived(year=0)) is None
        assert pipeline.save(_archived(price="")) is None
        assert pipeline.stats.records_skipped == 2
