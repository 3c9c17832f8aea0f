"""
Detail Extractor Module
=======================

Maps a restaurant detail page, live or archived, to a RestaurantData record.
"""

from __future__ import annotations

import logging
from typing import Any

from michelin_maps.core.enums import Distinction
from michelin_maps.core.schema import RestaurantData
from michelin_maps.ingestion.extractors import selectors as sel
from michelin_maps.ingestion.extractors.base import (
    BaseExtractor,
    Document,
    all_texts,
    find_script,
    first_attr,
    first_text,
    select,
)
from michelin_maps.parsing.awards import (
    map_price,
    parse_dlayer_value,
    parse_price,
)
from michelin_maps.parsing.dates import parse_published_year, parse_year_from_text
from michelin_maps.parsing.geo import (
    parse_coordinate_pair,
    parse_google_maps_coordinates,
    parse_json_ld_coordinates,
)
from michelin_maps.parsing.phone import parse_phone_number
from michelin_maps.parsing.text import (
    join_facilities,
    location_from_address,
    split_price_and_cuisine,
)
from michelin_maps.parsing.urls import extract_original_url, is_wayback_url, normalize_url

logger = logging.getLogger(__name__)

RESTAURANT_JSON_LD_MARKER = '"@type":"Restaurant"'


def find_restaurant_json_ld(document: Document) -> str:
    """The restaurant JSON-LD block, falling back to the first ld+json script."""
    script = find_script(document, RESTAURANT_JSON_LD_MARKER)
    if script:
        return script
    return first_text(document, sel.JSON_LD_SCRIPT)


def find_dlayer_script(document: Document) -> str:
    return find_script(document, "dLayer", "distinction")


def extract_year(document: Document) -> int:
    """
    Guide year of the page.

    Tries JSON-LD first, then the award label block, then the meta
    description. Returns 0 when nothing yields a valid year.
    """
    json_ld = find_restaurant_json_ld(document)
    if json_ld:
        year = parse_published_year(json_ld)
        if year:
            return year

    for text in all_texts(document, sel.DATE_BLOCK):
        year = parse_year_from_text(text)
        if year:
            return year

    meta = first_attr(document, sel.META_DESCRIPTION, "content")
    if meta:
        return parse_year_from_text(meta)
    return 0


def extract_coordinates(document: Document) -> tuple[str, str]:
    """
    Latitude and longitude of the restaurant.

    Order: JSON-LD, Google Maps iframe ``q`` parameter, then the
    ``data-center-lat``/``data-center-lng`` attributes of the map div.
    """
    for script in (find_script(document, RESTAURANT_JSON_LD_MARKER), *all_texts(document, sel.JSON_LD_SCRIPT)):
        latitude, longitude = parse_json_ld_coordinates(script)
        if latitude and longitude:
            return latitude, longitude

    for selector in sel.GOOGLE_MAPS_IFRAME.selectors:
        src = first_attr(document, selector, "src")
        if src:
            latitude, longitude = parse_google_maps_coordinates(src)
            if latitude and longitude:
                return latitude, longitude

    return parse_coordinate_pair(
        sel.MAP_DIV.extract_attr(document, "data-center-lat"),
        sel.MAP_DIV.extract_attr(document, "data-center-lng"),
    )


def extract_price(document: Document, dlayer_script: str, fallback: str) -> str:
    """
    Price from the page text, else the dLayer price code, else ``fallback``.
    """
    price = sel.PRICE.extract(document)
    if price:
        return price

    code = parse_dlayer_value(dlayer_script, "price") if dlayer_script else ""
    if code:
        return map_price(code)

    return parse_price(fallback) or fallback


def extract_green_star(document: Document, dlayer_script: str) -> bool:
    for selector in sel.GREEN_STAR.selectors:
        if select(document, selector):
            return True
    if dlayer_script:
        return parse_dlayer_value(dlayer_script, "greenstar").lower() == "true"
    return False


class DetailExtractor(BaseExtractor):
    """
    Extractor for restaurant detail pages.

    Context values seeded by the listing page (``location``, ``latitude``,
    ``longitude``) take precedence over what the detail page yields.
    """

    def extract(self, document: Document, url: str, ctx: dict[str, Any] | None = None) -> RestaurantData:
        ctx = ctx or {}

        if is_wayback_url(url):
            restaurant_url = extract_original_url(url)
            wayback_url = url
        else:
            restaurant_url = normalize_url(url)
            wayback_url = ""

        dlayer_script = find_dlayer_script(document)

        distinction = sel.DISTINCTION.extract(document)
        if not distinction and dlayer_script:
            distinction = sel.DISTINCTION.normalizer(parse_dlayer_value(dlayer_script, "distinction"))

        address = sel.ADDRESS.extract(document)
        price_and_cuisine = sel.PRICE_AND_CUISINE.extract(document)
        fallback_price, cuisine = split_price_and_cuisine(price_and_cuisine)

        latitude, longitude = parse_coordinate_pair(
            str(ctx.get("latitude") or ""), str(ctx.get("longitude") or "")
        )
        if not (latitude and longitude):
            latitude, longitude = extract_coordinates(document)

        data = RestaurantData(
            url=restaurant_url,
            wayback_url=wayback_url,
            name=sel.NAME.extract(document),
            description=sel.DESCRIPTION.extract(document),
            address=address,
            location=str(ctx.get("location") or "").strip() or location_from_address(address),
            latitude=latitude,
            longitude=longitude,
            cuisine=cuisine,
            phone_number=parse_phone_number(sel.PHONE_NUMBER.extract_attr(document, "href")),
            website_url=sel.WEBSITE_URL.extract_attr(document, "href"),
            facilities_and_services=join_facilities(sel.FACILITIES.extract_all(document)),
            distinction=distinction or Distinction.SELECTED_RESTAURANTS.value,
            price=extract_price(document, dlayer_script, fallback_price),
            green_star=extract_green_star(document, dlayer_script),
            year=extract_year(document),
        )

        logger.debug(
            f"Extracted {data.name!r} ({data.distinction}, {data.year or 'unknown year'}) from {url}"
        )
        return data
