"""
Pydantic models for API request/response serialization.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


class VehicleOut(BaseModel):
    """Output model for vehicle data."""
    id: str
    title: Optional[str] = None
    price: Optional[int] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    mileage: Optional[int] = None
    image: Optional[str] = None
    url: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    source: str = "Unknown"
    scraped_at: datetime
    vin: Optional[str] = None
    transmission: Optional[str] = None
    fuel_type: Optional[str] = None
    condition: Optional[str] = None


class VehiclesResponse(BaseModel):
    """Response model for paginated vehicles."""
    total: int
    items: List[VehicleOut]


class FacetsOut(BaseModel):
    years: List[int]
    makes: List[str]
    sources: List[str]


class ScrapeRequest(BaseModel):
    """A page snapshot to scrape."""
    html: str
    url: str
    persist: bool = True


class ScrapeResponse(BaseModel):
    site: str
    scraped: int
    added: int
    duplicates: int
    invalid: Dict[str, List[str]]
    vehicles: List[VehicleOut]


class ImportResponse(BaseModel):
    imported: int


class StatsOut(BaseModel):
    """Model for statistics data."""
    total: int
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    avg_price: Optional[float] = None
    by_source: Dict[str, int]
    by_make: Dict[str, int]
    by_year: Dict[str, int]
