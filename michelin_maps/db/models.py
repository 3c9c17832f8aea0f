"""SQLAlchemy ORM models for the restaurant catalog."""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class RestaurantDB(Base):
    """
    Database model for restaurants.

    One row per canonical guide URL. Rows are upserted on ``url`` and
    never deleted.
    """

    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    latitude: Mapped[str] = mapped_column(String(32), default="")
    longitude: Mapped[str] = mapped_column(String(32), default="")
    cuisine: Mapped[str] = mapped_column(String(255), default="")
    facilities_and_services: Mapped[str] = mapped_column(Text, default="")
    phone_number: Mapped[str] = mapped_column(String(32), default="")
    website_url: Mapped[str] = mapped_column(String(500), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    awards: Mapped[list["RestaurantAwardDB"]] = relationship(
        "RestaurantAwardDB", back_populates="restaurant", order_by="RestaurantAwardDB.year"
    )

    def __repr__(self) -> str:
        return f"<RestaurantDB(id={self.id}, name='{self.name}')>"


class RestaurantAwardDB(Base):
    """
    Database model for yearly awards.

    At most one row per (restaurant, year). ``wayback_url`` is empty for
    live observations and holds the snapshot URL otherwise.
    """

    __tablename__ = "restaurant_awards"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "year", name="uq_restaurant_awards_restaurant_year"),
        Index("ix_restaurant_awards_year", "year"),
        Index("ix_restaurant_awards_distinction", "distinction"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("restaurants.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    distinction: Mapped[str] = mapped_column(String(32), nullable=False)
    price: Mapped[str] = mapped_column(String(64), nullable=False)
    green_star: Mapped[bool] = mapped_column(Boolean, default=False)
    wayback_url: Mapped[str] = mapped_column(String(1000), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    restaurant: Mapped["RestaurantDB"] = relationship("RestaurantDB", back_populates="awards")

    def __repr__(self) -> str:
        return (
            f"<RestaurantAwardDB(restaurant_id={self.restaurant_id}, year={self.year}, "
            f"distinction='{self.distinction}')>"
        )
