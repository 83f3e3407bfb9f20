"""
Scrape route: accepts a page snapshot from a browser or crawler and stores its vehicles.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from vehicle_scraper.core import run_scrape
from vehicle_scraper.database import VehicleRepository
from vehicle_scraper.page import Page

from ..config import config
from ..database import get_repository, vehicle_out
from ..models import ScrapeRequest, ScrapeResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["scrape"])


@router.post("/scrape", response_model=ScrapeResponse)
async def scrape_api_page(body: ScrapeRequest, repo: VehicleRepository = Depends(get_repository)):
    """Scrape the posted HTML as if it were loaded from ``url``."""
    page = Page.from_html(body.html, body.url)
    result = run_scrape(
        page,
        repo if body.persist else None,
        max_vehicles=config.MAX_VEHICLES,
    )
    if not result.success:
        logger.error(f"Scrape of {body.url} not saved: {result.error}")
        raise HTTPException(status_code=500, detail=f"Error saving vehicles: {result.error}")

    return ScrapeResponse(
        site=result.site,
        scraped=len(result.vehicles),
        added=result.added,
        duplicates=result.duplicates,
        invalid=result.invalid,
        vehicles=[vehicle_out(v) for v in result.vehicles],
    )
