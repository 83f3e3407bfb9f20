"""
API route handlers for stored vehicles, export and import.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from vehicle_scraper.database import VehicleRepository
from vehicle_scraper.errors import ImportFormatError, StorageError, UnsupportedFormatError
from vehicle_scraper.export import export_vehicles, import_into

from ..config import config
from ..database import get_repository, vehicle_out
from ..models import FacetsOut, ImportResponse, VehicleOut, VehiclesResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["vehicles"])

MEDIA_TYPES = {"json": "application/json", "csv": "text/csv"}


def get_vehicle_filters(
    q: Optional[str] = None,
    source: Optional[str] = None,
    year: Optional[int] = None,
    make: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
) -> dict:
    """Dependency to extract and validate vehicle filters."""
    return {
        'q': q,
        'source': source,
        'year': year,
        'make': make,
        'min_price': min_price,
        'max_price': max_price,
    }


@router.get("/vehicles", response_model=VehiclesResponse)
async def get_api_vehicles(
    filters: dict = Depends(get_vehicle_filters),
    sort: str = 'scraped_desc',
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    offset: int = Query(0, ge=0),
    repo: VehicleRepository = Depends(get_repository),
):
    """Get vehicles with filtering, sorting and pagination."""
    try:
        total = repo.count(**filters)
        items = repo.filter(sort=sort, limit=limit, offset=offset, **filters)
        return VehiclesResponse(total=total, items=[vehicle_out(v) for v in items])

    except StorageError as e:
        logger.error(f"Error fetching vehicles: {e}")
        raise HTTPException(status_code=500, detail="Could not read vehicles")


@router.get("/vehicles/facets", response_model=FacetsOut)
async def get_api_facets(repo: VehicleRepository = Depends(get_repository)):
    """Distinct years, makes and sources for filter pickers."""
    try:
        return FacetsOut(**repo.facets())
    except StorageError as e:
        logger.error(f"Error fetching facets: {e}")
        raise HTTPException(status_code=500, detail="Could not read vehicles")


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
async def get_api_vehicle(vehicle_id: str, repo: VehicleRepository = Depends(get_repository)):
    """Get a specific vehicle by ID."""
    try:
        vehicle = repo.get(vehicle_id)
    except StorageError as e:
        logger.error(f"Error fetching vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not read vehicles")
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle_out(vehicle)


@router.delete("/vehicles/{vehicle_id}")
async def delete_api_vehicle(vehicle_id: str, repo: VehicleRepository = Depends(get_repository)):
    try:
        deleted = repo.delete(vehicle_id)
    except StorageError as e:
        logger.error(f"Error deleting vehicle {vehicle_id}: {e}")
        raise HTTPException(status_code=500, detail="Error deleting vehicle")
    if not deleted:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return {"deleted": vehicle_id}


@router.delete("/vehicles")
async def clear_api_vehicles(repo: VehicleRepository = Depends(get_repository)):
    try:
        removed = repo.clear()
    except StorageError as e:
        logger.error(f"Error clearing vehicles: {e}")
        raise HTTPException(status_code=500, detail="Error clearing vehicles")
    return {"removed": removed}


@router.get("/export")
async def export_api_vehicles(
    format: str = Query("json"),
    filters: dict = Depends(get_vehicle_filters),
    repo: VehicleRepository = Depends(get_repository),
):
    """Export vehicles (optionally filtered) as JSON or CSV."""
    try:
        vehicles = repo.filter(**filters)
        content = export_vehicles(vehicles, format)
    except UnsupportedFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Error exporting {format}: {e}")
        raise HTTPException(status_code=500, detail=f"Error generating {format} export")

    fmt = format.lower()
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt],
        headers={'Content-Disposition': f'attachment; filename="vehicles.{fmt}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_api_vehicles(
    request: Request,
    format: str = Query("json"),
    repo: VehicleRepository = Depends(get_repository),
):
    """Import a JSON array or CSV export; vehicles are upserted by id."""
    data = (await request.body()).decode("utf-8", errors="replace")
    try:
        result = import_into(repo, data, format)
    except (ImportFormatError, UnsupportedFormatError) as e:
        logger.warning(f"Rejected {format} import: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=500, detail=f"Import failed: {result.error}")
    return ImportResponse(imported=result.imported)
