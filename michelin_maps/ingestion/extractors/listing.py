"""
Listing Extractor Module
========================

Reads restaurant cards and pagination links from an award category page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

from michelin_maps.ingestion.extractors import selectors as sel
from michelin_maps.ingestion.extractors.base import BaseExtractor, Document, first_text, select
from michelin_maps.parsing.geo import parse_coordinate_pair
from michelin_maps.parsing.text import normalize_whitespace

logger = logging.getLogger(__name__)


@dataclass
class ListingCard:
    """One restaurant card on a listing page."""

    url: str
    location: str = ""
    latitude: str = ""
    longitude: str = ""

    def context(self) -> dict[str, Any]:
        """Request context to send along with the detail page request."""
        return {
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass
class ListingPage:
    """Everything read from one listing page."""

    cards: list[ListingCard] = field(default_factory=list)
    next_page_urls: list[str] = field(default_factory=list)


class ListingExtractor(BaseExtractor):
    """Extractor for award category listing pages."""

    def extract(self, document: Document, url: str, ctx: dict[str, Any] | None = None) -> ListingPage:
        page = ListingPage()

        for card in select(document, sel.LISTING_CARD):
            hrefs = select(card, sel.LISTING_CARD_LINK)
            href = str(hrefs[0]).strip() if hrefs else ""
            if not href:
                logger.debug(f"Skipping card without a detail link on {url}")
                continue

            location = ""
            for selector in sel.LISTING_CARD_LOCATION:
                location = normalize_whitespace(first_text(card, selector))
                if location:
                    break

            latitude, longitude = parse_coordinate_pair(
                card.get("data-lat") or "", card.get("data-lng") or ""
            )
            page.cards.append(
                ListingCard(
                    url=urljoin(url, href),
                    location=location,
                    latitude=latitude,
                    longitude=longitude,
                )
            )

        for selector in sel.LISTING_NEXT_PAGE:
            links = [
                (link.get("href") or "").strip()
                for link in select(document, selector)
                if hasattr(link, "get")
            ]
            links = [urljoin(url, href) for href in links if href]
            if links:
                page.next_page_urls = links
                break

        return page
