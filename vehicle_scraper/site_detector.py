"""
Classify a page as one of the supported marketplaces, a generic vehicle page, or unknown.
"""
import logging
from typing import Optional
from urllib.parse import urlsplit

from .models import OTHER_SOURCE, SOURCE_NAMES, UNKNOWN_SOURCE
from .page import Page

logger = logging.getLogger(__name__)

GENERIC = "generic"
UNKNOWN = "unknown"

# (hostname substring, site id), first match wins
HOST_RULES = [
    ("autotrader", "autotrader"),
    ("cars.com", "cars"),
    ("cargurus", "cargurus"),
    ("carmax", "carmax"),
    ("vroom", "vroom"),
    ("carvana", "carvana"),
    ("facebook", "facebook"),
    ("craigslist", "craigslist"),
]

# Facebook pages only count when they are marketplace/vehicle pages
FACEBOOK_URL_MARKERS = ("marketplace", "vehicles")

VEHICLE_KEYWORDS = [
    "vehicle", "car", "truck", "suv", "sedan", "coupe", "hatchback",
    "honda", "toyota", "ford", "chevrolet", "bmw", "mercedes",
    "mileage", "mpg", "transmission", "engine", "horsepower",
    "year", "make", "model", "vin", "price", "financing",
]
MIN_KEYWORD_HITS = 3


def count_vehicle_keywords(page_text: str) -> int:
    """Number of distinct vehicle keywords present in lower-cased page text."""
    return sum(1 for kw in VEHICLE_KEYWORDS if kw in page_text)


def has_vehicle_content(page_text: str) -> bool:
    return count_vehicle_keywords(page_text) >= MIN_KEYWORD_HITS


def match_host(hostname: str, url: str = "") -> Optional[str]:
    """Known site id for a hostname, or None."""
    hostname = (hostname or "").lower()
    url = (url or "").lower()
    for needle, site in HOST_RULES:
        if needle not in hostname:
            continue
        if site == "facebook" and not any(m in url for m in FACEBOOK_URL_MARKERS):
            continue
        return site
    return None


def detect_site(hostname: str, url: str, page_text: str = "") -> str:
    """Site id for a page: a known marketplace, ``generic`` or ``unknown``."""
    site = match_host(hostname, url)
    if site:
        return site
    if has_vehicle_content((page_text or "").lower()):
        return GENERIC
    return UNKNOWN


def detect_page_site(page: Page) -> str:
    site = detect_site(page.hostname, (page.url or "").lower(), page.text)
    logger.debug("Detected site %s for %s", site, page.url)
    return site


def source_from_url(url: Optional[str]) -> str:
    """Display source name for a listing URL; ``Other`` for unrecognized hosts."""
    if not url:
        return UNKNOWN_SOURCE
    try:
        hostname = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return OTHER_SOURCE
    for needle, site in HOST_RULES:
        if needle in hostname:
            return SOURCE_NAMES[site]
    return OTHER_SOURCE
