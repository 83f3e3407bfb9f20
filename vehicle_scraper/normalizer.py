"""
Normalization of raw listings into canonical Vehicle records.

Every field parser is a separate function that returns a valid value or
None; none of them raise. ``normalize_vehicle`` composes them in a fixed
order and then back-fills year/make/model from the title.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlsplit

from .models import CONDITIONS, FUEL_TYPES, TRANSMISSIONS, UNKNOWN_SOURCE, RawListing, Vehicle
from .utils import clean_text, generate_id, now_utc, parse_timestamp

PRICE_MIN, PRICE_MAX = 500, 500_000
MILEAGE_MIN, MILEAGE_MAX = 0, 500_000
YEAR_MIN = 1900

CAR_MAKES = [
    "Acura", "Alfa Romeo", "Aston Martin", "Audi", "Bentley", "BMW", "Buick",
    "Cadillac", "Chevrolet", "Chrysler", "Dodge", "Ferrari", "Fiat", "Ford",
    "Genesis", "GMC", "Honda", "Hyundai", "Infiniti", "Jaguar", "Jeep",
    "Kia", "Lamborghini", "Land Rover", "Lexus", "Lincoln", "Maserati",
    "Mazda", "McLaren", "Mercedes-Benz", "Mini", "Mitsubishi", "Nissan",
    "Porsche", "Ram", "Rolls-Royce", "Subaru", "Tesla", "Toyota",
    "Volkswagen", "Volvo",
]

YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")
BODY_TYPE_RE = re.compile(r"\b(sedan|coupe|suv|truck|hatchback)\b", re.I)
VIN_RE = re.compile(r"\b[A-HJ-NPR-Z0-9]{17}\b")
TITLE_STRIP_RE = re.compile(r"[^\w\s\-]")

# (keywords, canonical value); first rule with any keyword contained wins
TRANSMISSION_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("manual", "stick"), "Manual"),
    (("automatic", "auto"), "Automatic"),
    (("cvt",), "CVT"),
)
FUEL_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("electric", "ev"), "Electric"),
    (("hybrid",), "Hybrid"),
    (("diesel",), "Diesel"),
    (("gas", "gasoline"), "Gasoline"),
)
CONDITION_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("new",), "New"),
    (("used", "pre-owned"), "Used"),
    (("certified",), "Certified Pre-Owned"),
)


def current_year() -> int:
    return now_utc().year


def _bounded_int(value: Any, lo: int, hi: int) -> Optional[int]:
    """Digits of value as an int inside [lo, hi], else None. Out-of-range is dropped, not clamped."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        n = int(value)
    else:
        digits = re.sub(r"\D", "", str(value))
        if not digits:
            return None
        n = int(digits)
    return n if lo <= n <= hi else None


def clean_title(title: Any) -> Optional[str]:
    if not title:
        return None
    s = re.sub(r"\s+", " ", str(title))
    s = TITLE_STRIP_RE.sub("", s).strip()
    return s or None


def parse_price(price: Any) -> Optional[int]:
    return _bounded_int(price, PRICE_MIN, PRICE_MAX)


def parse_mileage(mileage: Any) -> Optional[int]:
    return _bounded_int(mileage, MILEAGE_MIN, MILEAGE_MAX)


def parse_year(value: Any, this_year: Optional[int] = None) -> Optional[int]:
    """Year from a number or the first 19xx/20xx token in text, within [1900, next year]."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    max_year = (this_year or current_year()) + 1
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not value.is_integer():
            return None
        year = int(value)
    else:
        m = YEAR_RE.search(str(value))
        if not m:
            return None
        year = int(m.group(0))
    return year if YEAR_MIN <= year <= max_year else None


def parse_make(value: Any, makes: Sequence[str] = CAR_MAKES) -> Optional[str]:
    """First make of the vocabulary contained in the text (vocabulary order, not text order)."""
    if not value:
        return None
    text = str(value).lower()
    for make in makes:
        if make.lower() in text:
            return make
    return None


def parse_model(value: Any) -> Optional[str]:
    """First word of length > 1 that is not a year, a body type or a number."""
    if not value:
        return None
    s = YEAR_RE.sub("", str(value))
    s = BODY_TYPE_RE.sub("", s)
    for word in s.split():
        if len(word) > 1 and not word.isdigit():
            return word
    return None


def clean_url(url: Any, origin: Optional[str] = None) -> Optional[str]:
    """Absolute URL resolved against the page origin; None if it cannot be resolved."""
    if not url:
        return None
    raw = str(url).strip()
    try:
        absolute = urljoin(origin, raw) if origin else raw
        parts = urlsplit(absolute)
    except ValueError:
        return None
    if not parts.scheme:
        return None
    if parts.scheme in ("http", "https") and not parts.netloc:
        return None
    return absolute


def parse_vin(value: Any) -> Optional[str]:
    if not value:
        return None
    m = VIN_RE.search(str(value))
    return m.group(0) if m else None


def _match_rules(value: Any, canonical: Sequence[str], rules) -> Optional[str]:
    if not value:
        return None
    text = str(value).strip().lower()
    for name in canonical:
        if text == name.lower():
            return name
    for keywords, result in rules:
        if any(kw in text for kw in keywords):
            return result
    return None


def parse_transmission(value: Any) -> Optional[str]:
    return _match_rules(value, TRANSMISSIONS, TRANSMISSION_RULES)


def parse_fuel_type(value: Any) -> Optional[str]:
    return _match_rules(value, FUEL_TYPES, FUEL_RULES)


def parse_condition(value: Any) -> Optional[str]:
    return _match_rules(value, CONDITIONS, CONDITION_RULES)


@dataclass
class TitleInfo:
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None


def parse_vehicle_title(title: Optional[str], this_year: Optional[int] = None) -> TitleInfo:
    """Year, make and the word right after the make, from a title alone."""
    if not title:
        return TitleInfo()
    info = TitleInfo(year=parse_year(title, this_year), make=parse_make(title))
    if info.make:
        words = title.split(" ")
        make_lower = info.make.lower()
        for i, word in enumerate(words[:-1]):
            if word.lower() == make_lower:
                info.model = words[i + 1] or None
                break
    return info


def normalize_vehicle(
    raw: RawListing,
    origin: Optional[str] = None,
    now: Optional[datetime] = None,
    this_year: Optional[int] = None,
) -> Vehicle:
    """Build a canonical Vehicle from a raw listing. Never raises."""
    ts = parse_timestamp(raw.scraped_at) or now or now_utc()

    vehicle = Vehicle(
        id=str(raw.id) if raw.id else generate_id(ts),
        scraped_at=ts,
        title=clean_title(raw.title),
        price=parse_price(raw.price),
        year=parse_year(raw.year or raw.title, this_year),
        make=parse_make(raw.make or raw.title),
        model=parse_model(raw.model or raw.title),
        mileage=parse_mileage(raw.mileage),
        image=clean_url(raw.image, origin),
        url=clean_url(raw.url, origin),
        location=clean_text(raw.location),
        source=clean_text(raw.source) or UNKNOWN_SOURCE,
        description=clean_text(raw.description),
        vin=parse_vin(raw.vin or raw.description),
        transmission=parse_transmission(raw.transmission or raw.description),
        fuel_type=parse_fuel_type(raw.fuel_type or raw.description),
        condition=parse_condition(raw.condition or raw.description),
    )

    if not (vehicle.year and vehicle.make and vehicle.model):
        info = parse_vehicle_title(vehicle.title, this_year)
        vehicle.year = vehicle.year or info.year
        vehicle.make = vehicle.make or info.make
        vehicle.model = vehicle.model or info.model

    return vehicle


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def validate_vehicle(vehicle: Vehicle, this_year: Optional[int] = None) -> ValidationResult:
    """Advisory check; invalid vehicles are still kept."""
    errors = []
    max_year = (this_year or current_year()) + 1

    if not (vehicle.title or vehicle.make or vehicle.model):
        errors.append("Vehicle must have a title or make/model")
    if vehicle.year is not None and not YEAR_MIN <= vehicle.year <= max_year:
        errors.append("Invalid year")
    if vehicle.price is not None and not PRICE_MIN <= vehicle.price <= PRICE_MAX:
        errors.append("Invalid price range")
    if vehicle.mileage is not None and not MILEAGE_MIN <= vehicle.mileage <= MILEAGE_MAX:
        errors.append("Invalid mileage")

    return ValidationResult(is_valid=not errors, errors=errors)
