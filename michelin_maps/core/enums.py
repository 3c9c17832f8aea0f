"""Enums for restaurant award fields."""

from enum import Enum


class Distinction(str, Enum):
    """MICHELIN Guide award level."""

    THREE_STARS = "3 Stars"
    TWO_STARS = "2 Stars"
    ONE_STAR = "1 Star"
    BIB_GOURMAND = "Bib Gourmand"
    SELECTED_RESTAURANTS = "Selected Restaurants"

    @classmethod
    def values(cls) -> set[str]:
        """Return the set of canonical distinction strings."""
        return {member.value for member in cls}


class RecordSource(str, Enum):
    """Where an award observation came from."""

    LIVE = "live"
    WAYBACK = "wayback"


class SaveOutcome(str, Enum):
    """Result of reconciling an award against the stored row."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
