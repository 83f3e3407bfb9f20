"""
Scrape orchestration: detect the site, run its strategy, normalize and store.
"""
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from playwright.async_api import TimeoutError as PlaywrightTimeout, async_playwright

from .errors import StorageError
from .models import Vehicle
from .normalizer import normalize_vehicle, validate_vehicle
from .page import Page
from .scraper import scrape_listings
from .site_detector import detect_page_site
from .strategies import get_strategy

logger = logging.getLogger(__name__)


@dataclass
class ScrapeResult:
    """Outcome of one scrape call, reported rather than raised."""

    site: str
    vehicles: List[Vehicle] = field(default_factory=list)
    added: int = 0
    duplicates: int = 0
    # vehicle id -> validation errors
    invalid: Dict[str, List[str]] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None


def scrape_page(page: Page, now: Optional[datetime] = None) -> Tuple[str, List[Vehicle]]:
    """Detected site id and the normalized vehicles found on the page."""
    site = detect_page_site(page)
    strategy = get_strategy(site)
    if strategy is None:
        logger.info(">>> No vehicle listings recognized on %s (site=%s)", page.url, site)
        return site, []

    raws = scrape_listings(page, strategy)
    vehicles = [normalize_vehicle(raw, origin=page.origin, now=now) for raw in raws]
    return site, vehicles


def run_scrape(
    page: Page,
    repository=None,
    max_vehicles: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ScrapeResult:
    """
    Scrape one page and hand new vehicles to the repository.

    Duplicates (same URL, or same title and price) are not stored again.
    Storage failures end up in ``result.error`` with ``success=False``; the
    scraped vehicles are still returned.
    """
    site, vehicles = scrape_page(page, now=now)
    result = ScrapeResult(site=site, vehicles=vehicles)

    for v in vehicles:
        report = validate_vehicle(v)
        if not report.is_valid:
            result.invalid[v.id] = report.errors
            logger.warning("Vehicle %s from %s failed validation: %s", v.id, v.source, "; ".join(report.errors))

    if repository is None or not vehicles:
        return result

    try:
        for v in vehicles:
            if repository.add_if_new(v):
                result.added += 1
            else:
                result.duplicates += 1
        if max_vehicles:
            repository.trim(max_vehicles)
    except StorageError as e:
        logger.error("Saving vehicles scraped from %s failed: %s", site, e)
        result.success = False
        result.error = str(e)
        return result

    logger.info(
        ">>> %s: %d scraped, %d added, %d duplicates",
        site, len(vehicles), result.added, result.duplicates,
    )
    return result


async def fetch_page(
    url: str,
    headless: bool = True,
    storage_state_path: Optional[str] = None,
    timeout_ms: int = 45_000,
) -> Page:
    """
    Load a live page in Chromium and return a static snapshot of it.

    The snapshot is what the scraper works on; nothing else is fetched.
    """
    is_headless = bool(headless) or os.getenv("HEADLESS", "").strip().lower() in ("1", "true")
    launch_args = ["--disable-blink-features=AutomationControlled"]
    if is_headless:
        launch_args += ["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"]

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=is_headless, args=launch_args)
        ctx_kwargs = {}
        if storage_state_path and os.path.exists(storage_state_path):
            ctx_kwargs["storage_state"] = storage_state_path
            logger.info(">>> Using existing storage state: %s", storage_state_path)

        context = await browser.new_context(
            **ctx_kwargs,
            viewport={"width": 1280, "height": 900},
            user_agent=(
                "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/124.0.0.0 Safari/537.36"
            ),
            locale="en-US",
        )
        context.set_default_navigation_timeout(timeout_ms)

        try:
            page = await context.new_page()
            logger.info(">>> Opening page: %s", url)
            await page.goto(url, wait_until="domcontentloaded")
            try:
                await page.wait_for_load_state("networkidle", timeout=15_000)
            except PlaywrightTimeout:
                # On heavy pages networkidle may never happen; use what has rendered
                logger.debug("networkidle not reached for %s", url)
            html = await page.content()
            final_url = page.url
        finally:
            await context.close()
            await browser.close()

    return Page.from_html(html, final_url)
