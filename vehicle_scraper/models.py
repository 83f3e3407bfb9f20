"""
Data models for scraped vehicle listings.
"""
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .utils import generate_id, now_utc, parse_timestamp, to_int

Scalar = Union[str, int, float, None]

# Display names used as Vehicle.source
SOURCE_NAMES = {
    "autotrader": "AutoTrader",
    "cars": "Cars.com",
    "cargurus": "CarGurus",
    "carmax": "CarMax",
    "vroom": "Vroom",
    "carvana": "Carvana",
    "facebook": "Facebook Marketplace",
    "craigslist": "Craigslist",
}
UNKNOWN_SOURCE = "Unknown"
OTHER_SOURCE = "Other"

TRANSMISSIONS = ("Manual", "Automatic", "CVT")
FUEL_TYPES = ("Electric", "Hybrid", "Diesel", "Gasoline")
CONDITIONS = ("New", "Used", "Certified Pre-Owned")

# camelCase keys written by the browser extension
_KEY_ALIASES = {
    "scrapedAt": "scraped_at",
    "scrapedat": "scraped_at",
    "fuelType": "fuel_type",
    "fueltype": "fuel_type",
}

INT_FIELDS = {"price", "year", "mileage"}


def _text_value(value: Any) -> Optional[str]:
    """Stored text for an imported scalar; containers and blanks become None."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = str(value)
    return text or None


@dataclass
class RawListing:
    """Fields pulled out of one listing container, before normalization."""

    title: Scalar = None
    price: Scalar = None
    year: Scalar = None
    make: Scalar = None
    model: Scalar = None
    mileage: Scalar = None
    image: Scalar = None
    url: Scalar = None
    location: Scalar = None
    description: Scalar = None
    vin: Scalar = None
    transmission: Scalar = None
    fuel_type: Scalar = None
    condition: Scalar = None
    source: Scalar = None

    # Present when an existing vehicle is re-normalized
    id: Optional[str] = None
    scraped_at: Optional[datetime] = None


@dataclass
class Vehicle:
    """Canonical, persisted vehicle record."""

    id: str
    scraped_at: datetime
    source: str = UNKNOWN_SOURCE

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

    vin: Optional[str] = None
    transmission: Optional[str] = None
    fuel_type: Optional[str] = None
    condition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["scraped_at"] = self.scraped_at.isoformat()
        return data

    def as_raw(self) -> RawListing:
        """Feed this vehicle back through the normalizer."""
        return RawListing(**asdict(self))

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vehicle":
        """
        Build a Vehicle from an exported/imported mapping.

        Unknown keys are ignored. A missing id is generated and a missing or
        unparseable capture time becomes now. price, year and mileage are
        coerced to int or None, other fields to str or None; run the result
        through the normalizer if the values need cleaning.
        """
        known = set(cls.field_names())
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name == "scraped_at":
                kwargs[name] = value
            elif name in INT_FIELDS:
                kwargs[name] = to_int(value)
            elif name in known:
                kwargs[name] = _text_value(value)

        kwargs["id"] = kwargs.get("id") or generate_id()
        kwargs["scraped_at"] = parse_timestamp(kwargs.get("scraped_at")) or now_utc()
        kwargs["source"] = kwargs.get("source") or UNKNOWN_SOURCE
        return cls(**kwargs)
