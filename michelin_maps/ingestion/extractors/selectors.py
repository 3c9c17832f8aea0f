"""XPath selectors for guide listing and restaurant pages, newest layout first."""

from michelin_maps.ingestion.extractors.base import FieldSpec
from michelin_maps.parsing.awards import parse_distinction, parse_price
from michelin_maps.parsing.text import normalize_address, trim_whitespace

# Listing pages, e.g. https://guide.michelin.com/en/restaurants/3-stars-michelin
LISTING_CARD = "//div[contains(@class, 'card__menu selection-card')]"
LISTING_CARD_LINK = ".//a[@class='link']/@href"
LISTING_CARD_LOCATION = (
    ".//div[@class='card__menu-footer--score pl-text']",
    ".//div[contains(@class,'card__menu-footer--location')]",
)
LISTING_NEXT_PAGE = (
    "//li[@class='arrow']/a[@class='btn btn-outline-secondary btn-sm']",
    "//li[contains(@class,'arrow')]/a[contains(@class,'btn-outline-secondary')]",
)

NAME = FieldSpec(
    "name",
    (
        "//*[@class='data-sheet__title']",
        "//*[@class='restaurant-details__heading--title']",
    ),
    trim_whitespace,
)

DESCRIPTION = FieldSpec(
    "description",
    (
        "//div[contains(@class,'data-sheet__description')]",
        "//*[contains(@class,'js-show-description-text')]",
        "//div[contains(@class,'restaurant-details__description--text ')]",
        "//div[@id='opinion']//div[contains(@class,'tab__content-paragraph')]/p",
    ),
    trim_whitespace,
)

ADDRESS = FieldSpec(
    "address",
    (
        "//*[contains(@class,'data-sheet__block--text')][1]",
        "//*[contains(@class,'restaurant-details__heading--address')]",
        "//div[contains(@class,'collapse__block-title')]//span[contains(@class,'fa-map-marker-alt')]"
        "/following-sibling::span[contains(@class,'flex-fill')]",
        "//li[*[contains(@class,'fa-map-marker-alt')]]/text()[normalize-space()]",
    ),
    normalize_address,
)

PRICE_AND_CUISINE = FieldSpec(
    "price_and_cuisine",
    (
        "//div[contains(@class,'data-sheet__block--text')][2]",
        "//div[contains(@class,'restaurant-details__heading--price')]",
        "//*[contains(@class,'restaurant-details__heading-price')]",
        "//li[span[contains(@class, 'jumbotron__card-detail--icon')]][last()]",
    ),
    trim_whitespace,
)

PHONE_NUMBER = FieldSpec(
    "phone_number",
    (
        "//a[@data-event='CTA_tel']",
        "//a[contains(@href,'tel:')]",
    ),
)

WEBSITE_URL = FieldSpec(
    "website_url",
    (
        "//a[@data-event='CTA_website']",
        "//a[contains(@class,'website')]",
    ),
)

FACILITIES = FieldSpec(
    "facilities_and_services",
    (
        "//div[contains(@class,'col col-12 col-lg-6')]//li",
        "//div[@class='restaurant-details__services']"
        "//div[@class='restaurant-details__services--content']/text()[normalize-space()]",
        "//div[@class='restaurant-details__services']//li",
    ),
)

DISTINCTION = FieldSpec(
    "distinction",
    (
        "//div[@class='data-sheet__classification-item--content'][2]",
        "//ul[contains(@class,'restaurant-details__classification--list')]//li",
        "//div[contains(@class,'restaurant__classification')]//p[contains(@class,'flex-fill')]",
        "//div[contains(@class,'classification')]",
    ),
    parse_distinction,
)

PRICE = FieldSpec(
    "price",
    (
        "//div[contains(@class,'data-sheet__block--text')][2]",
        "//div[@class='col-lg-12']/p",
        "//*[contains(@class,'restaurant-details__heading-price')]",
        "//span[contains(@class,'mg-price') or contains(@class,'mg-euro-circle')]",
        "//div[contains(@class,'data-sheet__block--text')]",
    ),
    parse_price,
)

GREEN_STAR = FieldSpec(
    "green_star",
    (
        "//div[contains(text(),'MICHELIN Green Star')]",
        "//span[contains(text(),'Green Star')]",
        "//div[contains(@class,'green-star')]",
    ),
)

JSON_LD_SCRIPT = "//script[@type='application/ld+json']"
DATE_BLOCK = (
    "//div[contains(@class,'restaurant-details__heading--label-title')]"
    " | //div[contains(@class,'label-text')]"
)
META_DESCRIPTION = "//meta[@name='description']"

GOOGLE_MAPS_IFRAME = FieldSpec(
    "google_maps",
    (
        "//div[@class='google-map__static']/iframe",
        "//iframe[contains(@src,'google.com/maps')]",
        "//iframe[contains(@src,'maps.google')]",
    ),
)

MAP_DIV = FieldSpec("map_div", ("//div[@id='map']",))
