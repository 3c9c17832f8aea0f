"""Repository for restaurant and award persistence, including award reconciliation."""

import logging
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from michelin_maps.core.enums import Distinction, RecordSource, SaveOutcome
from michelin_maps.core.schema import Restaurant, RestaurantAward
from michelin_maps.db.models import RestaurantAwardDB, RestaurantDB
from michelin_maps.parsing.dates import is_valid_year

logger = logging.getLogger(__name__)

# Columns overwritten when a restaurant is seen again
MUTABLE_RESTAURANT_COLUMNS = (
    "name",
    "description",
    "address",
    "location",
    "latitude",
    "longitude",
    "cuisine",
    "facilities_and_services",
    "phone_number",
    "website_url",
)


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class RepositoryError(Exception):
    """Base class for repository errors."""


class RestaurantValidationError(RepositoryError):
    """Raised when a restaurant is missing a required field."""


class AwardValidationError(RepositoryError):
    """Raised when an award fails validation."""


def validate_restaurant(restaurant: Restaurant) -> None:
    """
    Check the fields required on insert.

    Raises:
        RestaurantValidationError: If url, name, address or location is empty
    """
    for field_name in ("url", "name", "address", "location"):
        if not getattr(restaurant, field_name).strip():
            raise RestaurantValidationError(
                f"Restaurant {field_name} cannot be empty (url={restaurant.url!r})"
            )


def validate_award(award: RestaurantAward) -> None:
    """
    Check an award before it is written.

    Raises:
        AwardValidationError: On a non-canonical distinction, an empty price
                              or a year outside 1900..current+1
    """
    if award.distinction not in Distinction.values():
        raise AwardValidationError(f"Unknown distinction {award.distinction!r}")
    if not award.price.strip():
        raise AwardValidationError(
            f"Award price cannot be empty (restaurant_id={award.restaurant_id}, year={award.year})"
        )
    if not is_valid_year(award.year):
        raise AwardValidationError(
            f"Award year {award.year} out of range (restaurant_id={award.restaurant_id})"
        )


class RestaurantRepository:
    """Repository for Restaurant and RestaurantAward operations."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Restaurants
    # ------------------------------------------------------------------

    def save_restaurant(self, restaurant: Restaurant) -> Restaurant:
        """
        Insert a restaurant or update it in place, keyed by URL.

        The mutable columns and ``updated_at`` are overwritten on conflict;
        ``created_at`` is left alone.
        """
        validate_restaurant(restaurant)
        now = _utc_now()

        values = {column: getattr(restaurant, column) for column in MUTABLE_RESTAURANT_COLUMNS}
        values.update(url=restaurant.url, created_at=now, updated_at=now)

        stmt = sqlite_insert(RestaurantDB).values(**values)
        update_columns = {column: stmt.excluded[column] for column in MUTABLE_RESTAURANT_COLUMNS}
        update_columns["updated_at"] = stmt.excluded.updated_at
        stmt = stmt.on_conflict_do_update(index_elements=["url"], set_=update_columns)
        self.session.execute(stmt)

        logger.debug(f"Upserted restaurant {restaurant.name!r} ({restaurant.url})")
        db_item = self._get_db_by_url(restaurant.url, refresh=True)
        return self._to_domain(db_item)

    def find_restaurant_by_url(self, url: str) -> Restaurant | None:
        """Get a restaurant by its canonical URL."""
        db_item = self._get_db_by_url(url)
        return self._to_domain(db_item) if db_item else None

    def list_all_restaurants_with_url(self) -> list[Restaurant]:
        """All restaurants that have a URL, in insertion order."""
        stmt = select(RestaurantDB).where(RestaurantDB.url != "").order_by(RestaurantDB.id)
        result = self.session.execute(stmt).scalars().all()
        return [self._to_domain(r) for r in result]

    def count_restaurants(self) -> int:
        stmt = select(func.count()).select_from(RestaurantDB)
        return self.session.execute(stmt).scalar() or 0

    def _get_db_by_url(self, url: str, refresh: bool = False) -> RestaurantDB | None:
        stmt = select(RestaurantDB).where(RestaurantDB.url == url)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def _to_domain(self, db_item: RestaurantDB) -> Restaurant:
        return Restaurant(
            id=db_item.id,
            url=db_item.url,
            name=db_item.name,
            description=db_item.description or "",
            address=db_item.address,
            location=db_item.location,
            latitude=db_item.latitude or "",
            longitude=db_item.longitude or "",
            cuisine=db_item.cuisine or "",
            phone_number=db_item.phone_number or "",
            facilities_and_services=db_item.facilities_and_services or "",
            website_url=db_item.website_url or "",
            created_at=db_item.created_at,
            updated_at=db_item.updated_at,
        )

    # ------------------------------------------------------------------
    # Awards
    # ------------------------------------------------------------------

    def find_award(self, restaurant_id: int, year: int) -> RestaurantAward | None:
        """Get the award of a restaurant for a given year."""
        db_item = self._get_award_db(restaurant_id, year)
        return self._award_to_domain(db_item) if db_item else None

    def list_awards(self, restaurant_id: int) -> list[RestaurantAward]:
        """All awards of a restaurant, oldest year first."""
        stmt = (
            select(RestaurantAwardDB)
            .where(RestaurantAwardDB.restaurant_id == restaurant_id)
            .order_by(RestaurantAwardDB.year)
        )
        result = self.session.execute(stmt).scalars().all()
        return [self._award_to_domain(a) for a in result]

    def count_awards(self) -> int:
        stmt = select(func.count()).select_from(RestaurantAwardDB)
        return self.session.execute(stmt).scalar() or 0

    def save_award(self, award: RestaurantAward) -> SaveOutcome:
        """
        Insert or reconcile the award for (restaurant_id, year).

        Rules, with "live" meaning an empty wayback_url:
        1. No stored award: insert.
        2. Stored live, incoming live: overwrite only if distinction, price
           or green star differ.
        3. Incoming Wayback: overwrite; warn when the distinction changes.
        4. Stored Wayback, incoming live: keep the stored award, unless it
           is a Selected Restaurant and the live one is a higher distinction.

        Saving the same award twice leaves the row untouched the second time.

        Raises:
            AwardValidationError: If the award fails validation
        """
        validate_award(award)

        existing = self._get_award_db(award.restaurant_id, award.year)
        if existing is None:
            now = _utc_now()
            self.session.add(
                RestaurantAwardDB(
                    restaurant_id=award.restaurant_id,
                    year=award.year,
                    distinction=award.distinction,
                    price=award.price,
                    green_star=award.green_star,
                    wayback_url=award.wayback_url,
                    created_at=now,
                    updated_at=now,
                )
            )
            self.session.flush()
            logger.info(
                f"New award for restaurant {award.restaurant_id} in {award.year}: "
                f"{award.distinction} ({award.source.value})"
            )
            return SaveOutcome.CREATED

        unchanged = (
            existing.distinction == award.distinction
            and existing.price == award.price
            and existing.green_star == award.green_star
        )
        existing_source = RecordSource.WAYBACK if existing.wayback_url else RecordSource.LIVE

        if award.source is RecordSource.WAYBACK:
            if unchanged and existing.wayback_url == award.wayback_url:
                return SaveOutcome.UNCHANGED
            if existing.distinction != award.distinction:
                logger.warning(
                    f"Distinction of restaurant {award.restaurant_id} in {award.year} changed "
                    f"from {existing.distinction} to {award.distinction} per {award.wayback_url}"
                )
            self._overwrite(existing, award)
            return SaveOutcome.UPDATED

        if existing_source is RecordSource.LIVE:
            if unchanged:
                logger.debug(
                    f"Award for restaurant {award.restaurant_id} in {award.year} unchanged, skipping"
                )
                return SaveOutcome.UNCHANGED
            self._overwrite(existing, award)
            return SaveOutcome.UPDATED

        selected = Distinction.SELECTED_RESTAURANTS.value
        if existing.distinction == selected and award.distinction != selected:
            logger.info(
                f"Promoting restaurant {award.restaurant_id} in {award.year} from "
                f"{existing.distinction} to {award.distinction} using live data"
            )
            self._overwrite(existing, award)
            return SaveOutcome.UPDATED

        logger.debug(
            f"Keeping archived award for restaurant {award.restaurant_id} in {award.year}"
        )
        return SaveOutcome.UNCHANGED

    def _overwrite(self, existing: RestaurantAwardDB, award: RestaurantAward) -> None:
        existing.year = award.year
        existing.distinction = award.distinction
        existing.price = award.price
        existing.green_star = award.green_star
        existing.wayback_url = award.wayback_url
        existing.updated_at = _utc_now()
        self.session.flush()

    def _get_award_db(self, restaurant_id: int, year: int) -> RestaurantAwardDB | None:
        stmt = select(RestaurantAwardDB).where(
            RestaurantAwardDB.restaurant_id == restaurant_id,
            RestaurantAwardDB.year == year,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _award_to_domain(self, db_item: RestaurantAwardDB) -> RestaurantAward:
        return RestaurantAward(
            id=db_item.id,
            restaurant_id=db_item.restaurant_id,
            year=db_item.year,
            distinction=db_item.distinction,
            price=db_item.price,
            green_star=bool(db_item.green_star),
            wayback_url=db_item.wayback_url or "",
            created_at=db_item.created_at,
            updated_at=db_item.updated_at,
        )
