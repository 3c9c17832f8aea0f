"""Shared fixtures: temporary database, collector settings and guide pages."""

import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from michelin_maps.db.models import Base
from michelin_maps.ingestion.config import CollectorConfig

GUIDE = "https://guide.michelin.com"
LISTING_URL = f"{GUIDE}/en/restaurants/3-stars-michelin"
LISTING_PAGE_2_URL = f"{LISTING_URL}/page/2"
LES_AMIS_URL = f"{GUIDE}/en/singapore-region/singapore/restaurant/les-amis"

FACILITIES = [
    "Air conditioning",
    "Counter dining",
    "Great wine list",
    "Interesting view",
    "Private dining room",
    "Wheelchair access",
]

LISTING_HTML = """
<html><body>
<div class="row restaurant__list-row">
  <div class="col-md-6">
    <div class="card__menu selection-card js-restaurant__list_item" data-lat="1.304" data-lng="103.83">
      <div class="card__menu-content">
        <h3 class="card__menu-content--title">
          <a class="link" href="/en/singapore-region/singapore/restaurant/les-amis">Les Amis</a>
        </h3>
        <div class="card__menu-footer--score pl-text">Singapore</div>
      </div>
    </div>
  </div>
</div>
<ul class="pagination">
  <li class="arrow"><a class="btn btn-outline-secondary btn-sm" href="/en/restaurants/3-stars-michelin/page/2">Next</a></li>
</ul>
</body></html>
"""

LISTING_PAGE_2_HTML = """
<html><body>
<div class="row restaurant__list-row"></div>
<ul class="pagination">
  <li class="arrow"><a class="btn btn-outline-secondary btn-sm" href="/en/restaurants/3-stars-michelin">Previous</a></li>
</ul>
</body></html>
"""

DETAIL_HTML = """
<html><head>
<meta name="description" content="Les Amis - a restaurant in the 2024 MICHELIN Guide Singapore.">
<script type="application/ld+json">{"@context":"http://schema.org","@type":"Restaurant","name":"Les Amis","latitude":1.3049,"longitude":103.8278,"award":{"dateAwarded":"2024-06-25"}}</script>
</head><body>
<h1 class="data-sheet__title">Les Amis</h1>
<div class="data-sheet__block">
  <div class="data-sheet__block--text">Shaw Centre, #01-16,
    1 Scotts Road, 228208, Singapore</div>
  <div class="data-sheet__block--text">$$$$ · French</div>
</div>
<div class="data-sheet__classification">
  <div class="data-sheet__classification-item--content"><img src="/assets/star.svg"></div>
  <div class="data-sheet__classification-item--content">Three Stars: Exceptional cuisine</div>
</div>
<div class="data-sheet__description">A fine dining stalwart on Scotts Road.</div>
<a data-event="CTA_tel" href="tel:+65 6733 2225">+65 6733 2225</a>
<a data-event="CTA_website" href="https://www.lesamis.com.sg/">Visit Website</a>
<div class="row">
  <div class="col col-12 col-lg-6">
    <ul>""" + "".join(f"<li>{item}</li>" for item in FACILITIES) + """</ul>
  </div>
</div>
</body></html>
"""


def snapshot_html(year: int, distinction: str, price: str) -> str:
    """An older-layout restaurant page as served by the Wayback Machine."""
    return f"""
<html><head>
<script type="application/ld+json">{{"@context":"http://schema.org","@type":"Restaurant","name":"Les Amis","award":{{"dateAwarded":"{year}-06-01"}}}}</script>
</head><body>
<h2 class="restaurant-details__heading--title">Les Amis</h2>
<ul class="restaurant-details__heading--list">
  <li class="restaurant-details__heading--address">1 Scotts Road, Singapore</li>
</ul>
<div class="restaurant-details__heading-price">{price} · French</div>
<ul class="restaurant-details__classification--list"><li>{distinction}</li></ul>
</body></html>
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def engine(temp_dir):
    """Create a test database engine."""
    engine = create_engine(f"sqlite:///{temp_dir / 'test.db'}", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    """Session factory bound to the test database."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_collector_config(temp_dir):
    """Factory for fast collector settings caching under the temp dir."""

    def _make(allowed_domains: list[str] | None = None, **overrides) -> CollectorConfig:
        settings = {
            "allowed_domains": allowed_domains or ["guide.michelin.com"],
            "cache_path": str(temp_dir / "cache"),
            "delay": 0.0,
            "random_delay": 0.0,
            "worker_count": 1,
            "max_queued_urls": 100,
            "max_retry": 3,
            "request_timeout": 5.0,
        }
        settings.update(overrides)
        return CollectorConfig(**settings)

    return _make
