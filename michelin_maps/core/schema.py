"""Pydantic v2 models for restaurants and their yearly awards.

- RestaurantData: flat record produced by the extractors
- Restaurant: persisted restaurant row
- RestaurantAward: persisted (restaurant, year) award row
"""

from datetime import datetime

from pydantic import BaseModel, field_validator

from michelin_maps.core.enums import Distinction, RecordSource


def _source_of(wayback_url: str) -> RecordSource:
    return RecordSource.WAYBACK if wayback_url else RecordSource.LIVE


class RestaurantData(BaseModel):
    """
    Everything the detail extractor can read from one restaurant page.

    Missing fields stay at their empty defaults. ``wayback_url`` is empty for
    pages fetched from the live site and holds the snapshot URL otherwise.
    """

    url: str = ""
    name: str = ""
    description: str = ""
    address: str = ""
    location: str = ""
    latitude: str = ""
    longitude: str = ""
    cuisine: str = ""
    phone_number: str = ""
    facilities_and_services: str = ""
    website_url: str = ""

    year: int = 0
    distinction: str = Distinction.SELECTED_RESTAURANTS.value
    price: str = ""
    green_star: bool = False
    wayback_url: str = ""

    @property
    def source(self) -> RecordSource:
        """Whether this record came from the live site or a Wayback snapshot."""
        return _source_of(self.wayback_url)

    def to_restaurant(self) -> "Restaurant":
        """Build the restaurant part of this record."""
        return Restaurant(
            url=self.url,
            name=self.name,
            description=self.description,
            address=self.address,
            location=self.location,
            latitude=self.latitude,
            longitude=self.longitude,
            cuisine=self.cuisine,
            phone_number=self.phone_number,
            facilities_and_services=self.facilities_and_services,
            website_url=self.website_url,
        )

    def to_award(self, restaurant_id: int) -> "RestaurantAward":
        """Build the award part of this record for a stored restaurant."""
        return RestaurantAward(
            restaurant_id=restaurant_id,
            year=self.year,
            distinction=self.distinction,
            price=self.price,
            green_star=self.green_star,
            wayback_url=self.wayback_url,
        )


class Restaurant(BaseModel):
    """A restaurant keyed by its canonical guide URL."""

    id: int | None = None
    url: str
    name: str = ""
    description: str = ""
    address: str = ""
    location: str = ""
    latitude: str = ""
    longitude: str = ""
    cuisine: str = ""
    phone_number: str = ""
    facilities_and_services: str = ""
    website_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()


class RestaurantAward(BaseModel):
    """One award observation for a restaurant in a given guide year."""

    id: int | None = None
    restaurant_id: int
    year: int
    distinction: str
    price: str = ""
    green_star: bool = False
    wayback_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def source(self) -> RecordSource:
        return _source_of(self.wayback_url)
