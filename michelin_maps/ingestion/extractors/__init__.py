"""
Page Extractors
===============

Stateless extractors mapping fetched guide pages to structured records.
"""

from michelin_maps.ingestion.extractors.base import (
    BaseExtractor,
    FieldSpec,
    parse_document,
    parse_response,
)
from michelin_maps.ingestion.extractors.detail import DetailExtractor
from michelin_maps.ingestion.extractors.listing import (
    ListingCard,
    ListingExtractor,
    ListingPage,
)

__all__ = [
    "BaseExtractor",
    "FieldSpec",
    "parse_document",
    "parse_response",
    "DetailExtractor",
    "ListingCard",
    "ListingExtractor",
    "ListingPage",
]
