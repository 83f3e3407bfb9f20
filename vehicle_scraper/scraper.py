"""
Listing container walk: runs a site strategy over a page snapshot.
"""
import logging
from typing import List, Optional

from bs4 import Tag

from .extractors import (
    extract_image,
    extract_make,
    extract_mileage,
    extract_model,
    extract_price,
    extract_text,
    extract_url,
    extract_year,
)
from .models import RawListing
from .page import Page, node_text
from .strategies import TITLE_FIRST, ListingStrategy

logger = logging.getLogger(__name__)


def _extract_title(container: Tag, strategy: ListingStrategy) -> Optional[str]:
    if strategy.title_mode == TITLE_FIRST:
        el = container.select_one(strategy.title)
        return node_text(el) or None
    return extract_text(container, strategy.title)


def extract_raw_listing(container: Tag, strategy: ListingStrategy, page: Optional[Page] = None) -> RawListing:
    """Pull every field the strategy knows about out of one container."""
    return RawListing(
        title=_extract_title(container, strategy),
        price=extract_price(container, strategy.price),
        year=extract_year(container),
        make=extract_make(container),
        model=extract_model(container),
        mileage=extract_mileage(container, strategy.mileage),
        image=extract_image(container, strategy.image, page),
        url=extract_url(container, strategy.link, page),
        location=extract_text(container, strategy.location) if strategy.location else None,
        source=strategy.source,
    )


def find_containers(page: Page, strategy: ListingStrategy) -> List[Tag]:
    return page.select(strategy.containers)


def scrape_listings(page: Page, strategy: ListingStrategy) -> List[RawListing]:
    """
    Extract raw listings from every container matched by the strategy.

    A container that fails to parse is logged and skipped; the rest of the
    batch still runs. Only listings passing the strategy's admission rule are
    returned, in document order.
    """
    containers = find_containers(page, strategy)
    logger.info(">>> %s: found %d candidate containers", strategy.source, len(containers))

    results: List[RawListing] = []
    for i, container in enumerate(containers):
        try:
            raw = extract_raw_listing(container, strategy, page)
        except Exception:
            logger.exception("Error scraping %s listing #%d", strategy.source, i)
            continue
        if strategy.admit(raw):
            results.append(raw)
        else:
            logger.debug("Skipped %s container #%d: not enough signal", strategy.source, i)

    logger.info(">>> %s: kept %d of %d containers", strategy.source, len(results), len(containers))
    return results
