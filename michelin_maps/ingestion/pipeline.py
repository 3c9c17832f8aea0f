"""
Record Pipeline Module
======================

Persists extracted restaurant records.

Live records upsert the restaurant and then reconcile its award for the
guide year. Archived records only reconcile the award of a restaurant the
live scrape already stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from michelin_maps.core.enums import RecordSource, SaveOutcome
from michelin_maps.core.schema import RestaurantData
from michelin_maps.db.repositories import RepositoryError, RestaurantRepository

logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    """Counters for records handled by a RecordPipeline."""

    restaurants_saved: int = 0
    awards_created: int = 0
    awards_updated: int = 0
    awards_unchanged: int = 0
    records_skipped: int = 0
    errors: int = 0

    def count(self, outcome: SaveOutcome) -> None:
        if outcome is SaveOutcome.CREATED:
            self.awards_created += 1
        elif outcome is SaveOutcome.UPDATED:
            self.awards_updated += 1
        else:
            self.awards_unchanged += 1


class RecordPipeline:
    """
    Writes RestaurantData records through a RestaurantRepository.

    Each record gets its own session. Validation errors are logged and
    counted, never raised, so a bad page cannot stop a crawl.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.stats = PipelineStats()

    def save(self, data: RestaurantData) -> SaveOutcome | None:
        """
        Persist a record according to where it came from.

        Returns:
            The award outcome, or None if nothing was written for the award
        """
        if data.source is RecordSource.WAYBACK:
            return self.save_archived(data)
        return self.save_live(data)

    def save_live(self, data: RestaurantData) -> SaveOutcome | None:
        with self.session_factory() as session:
            repo = RestaurantRepository(session)
            try:
                restaurant = repo.save_restaurant(data.to_restaurant())
                session.commit()
            except RepositoryError as e:
                session.rollback()
                logger.error(f"Failed to save restaurant {data.url}: {e}")
                self.stats.errors += 1
                return None
            except SQLAlchemyError as e:
                session.rollback()
                logger.exception(f"Database error saving restaurant {data.url}: {e}")
                self.stats.errors += 1
                return None

            self.stats.restaurants_saved += 1
            return self._save_award(session, repo, data, restaurant.id, restaurant.name)

    def save_archived(self, data: RestaurantData) -> SaveOutcome | None:
        if not data.year:
            logger.warning(f"Skipping snapshot {data.wayback_url}: invalid or missing year")
            self.stats.records_skipped += 1
            return None
        if not data.price:
            logger.error(f"Skipping snapshot {data.wayback_url}: price is empty")
            self.stats.records_skipped += 1
            return None

        with self.session_factory() as session:
            repo = RestaurantRepository(session)
            restaurant = repo.find_restaurant_by_url(data.url)
            if restaurant is None:
                logger.warning(f"No restaurant found for {data.url} (snapshot {data.wayback_url})")
                self.stats.records_skipped += 1
                return None
            return self._save_award(session, repo, data, restaurant.id, restaurant.name)

    def _save_award(
        self,
        session,
        repo: RestaurantRepository,
        data: RestaurantData,
        restaurant_id: int,
        name: str,
    ) -> SaveOutcome | None:
        try:
            outcome = repo.save_award(data.to_award(restaurant_id))
            session.commit()
        except RepositoryError as e:
            session.rollback()
            logger.error(f"Failed to save award for {data.url} ({data.year}): {e}")
            self.stats.errors += 1
            return None
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception(f"Database error saving award for {data.url}: {e}")
            self.stats.errors += 1
            return None

        self.stats.count(outcome)
        logger.info(
            f"{outcome.value.capitalize()} award for {name!r} in {data.year}: "
            f"{data.distinction}, {data.price} ({data.source.value})"
        )
        return outcome
