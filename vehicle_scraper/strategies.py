"""
Per-site listing strategies.

Each supported marketplace is described by data: where listing containers
are, which selectors to try per field and which raw listings to keep. The
scraper runs every strategy through the same code path.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .models import SOURCE_NAMES, UNKNOWN_SOURCE, RawListing

TITLE_CHAIN = "chain"   # try selectors in order, first non-empty text wins
TITLE_FIRST = "first"   # first element in document order matching any selector


def has_title_or_price(raw: RawListing) -> bool:
    return bool(raw.title or raw.price)


def has_title_and_price_or_year(raw: RawListing) -> bool:
    """Stricter rule for unknown sites, where many containers are not listings."""
    return bool(raw.title and (raw.price or raw.year))


@dataclass(frozen=True)
class ListingStrategy:
    site: str
    source: str
    containers: str
    title: str
    price: str = ""
    mileage: str = ""
    location: str = ""
    image: str = "img"
    link: str = "a"
    title_mode: str = TITLE_CHAIN
    admit: Callable[[RawListing], bool] = has_title_or_price


STRATEGIES: Dict[str, ListingStrategy] = {}


def register(strategy: ListingStrategy) -> ListingStrategy:
    STRATEGIES[strategy.site] = strategy
    return strategy


register(ListingStrategy(
    site="autotrader",
    source=SOURCE_NAMES["autotrader"],
    containers='[data-cmp="inventoryListing"], .inventory-listing, .listing-interior',
    title=".listing-title, h3, .inventory-listing-title",
    price=".first-price, .listing-price, .price-section",
    mileage=".listing-mileage, .mileage",
    location=".listing-dealer-city, .dealer-name",
))

register(ListingStrategy(
    site="cars",
    source=SOURCE_NAMES["cars"],
    containers=".vehicle-card, .listing-row, .shop-srp-listings__listing",
    title=".vehicle-card__title, .listing-title, h3",
    price=".vehicle-card__price, .listing-price",
    mileage=".vehicle-card__mileage, .mileage",
    location=".dealer-name, .vehicle-card__dealer",
))

register(ListingStrategy(
    site="cargurus",
    source=SOURCE_NAMES["cargurus"],
    containers='.cg-dealFinder-result, .srp-list-item, [data-cg-ft="srp-listing-card"]',
    title=".cg-dealFinder-result-model, .listing-title",
    price=".cg-dealFinder-result-price, .price",
    mileage=".cg-dealFinder-result-mileage, .mileage",
    location=".dealer-name",
))

register(ListingStrategy(
    site="carmax",
    source=SOURCE_NAMES["carmax"],
    containers='.car-tile, .vehicle-tile, [data-test="car-tile"]',
    title=".car-title, .vehicle-year-make-model",
    price=".car-price, .price",
    mileage=".car-mileage, .mileage",
    location=".store-name",
))

register(ListingStrategy(
    site="vroom",
    source=SOURCE_NAMES["vroom"],
    containers='[data-element="VehicleCard"], .vehicle-card, [class*="VehicleCard"]',
    title='[data-element="YearMakeModel"], .vehicle-title, h3',
    price='[data-element="Price"], .price',
    mileage='[data-element="Mileage"], .mileage',
))

register(ListingStrategy(
    site="carvana",
    source=SOURCE_NAMES["carvana"],
    containers='[data-qa="result-tile"], .result-tile',
    title='[data-qa="make-model"], .make-model, h3',
    price='[data-qa="price"], .price',
    mileage='[data-qa="mileage"], .mileage',
    location='[data-qa="delivery"], .delivery-info',
))

# Marketplace markup uses generated class names, so this is the least reliable strategy
register(ListingStrategy(
    site="facebook",
    source=SOURCE_NAMES["facebook"],
    containers='[role="article"], .marketplace-tile, .x9f619',
    title="span, .x1lliihq, .x6ikm8r",
    title_mode=TITLE_FIRST,
    price="span",
    location=".x1i10hfl",
))

register(ListingStrategy(
    site="craigslist",
    source=SOURCE_NAMES["craigslist"],
    containers=".result-row, .cl-search-result",
    title=".result-title, .cl-titlebox",
    price=".result-price, .price",
    location=".result-neighborhood",
    link=".result-title, a",
))

register(ListingStrategy(
    site="generic",
    source=UNKNOWN_SOURCE,
    containers='article, .listing, .vehicle, .car, [class*="vehicle"], [class*="listing"], [class*="car"]',
    title='h1, h2, h3, .title, [class*="title"]',
    price='[class*="price"], .price',
    location='[class*="location"], .location',
    admit=has_title_and_price_or_year,
))


def get_strategy(site: str) -> Optional[ListingStrategy]:
    """Strategy for a detected site id; ``unknown`` and unregistered ids get none."""
    return STRATEGIES.get(site)
