"""
Statistics API route handlers.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException

from vehicle_scraper.database import VehicleRepository
from vehicle_scraper.errors import StorageError

from ..database import get_repository
from ..models import StatsOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["statistics"])


@router.get("/stats", response_model=StatsOut)
async def get_api_stats(repo: VehicleRepository = Depends(get_repository)):
    """Get collection statistics."""
    try:
        return StatsOut(**repo.stats())

    except StorageError as e:
        logger.error(f"Error fetching statistics: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
