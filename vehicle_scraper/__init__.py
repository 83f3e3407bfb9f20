"""
Vehicle Listing Scraper Package
"""
from .models import RawListing, Vehicle
from .page import Page
from .site_detector import detect_site, detect_page_site, source_from_url
from .strategies import ListingStrategy, STRATEGIES, get_strategy
from .scraper import scrape_listings
from .normalizer import normalize_vehicle, validate_vehicle, parse_vehicle_title
from .core import ScrapeResult, run_scrape, scrape_page
from .database import VehicleRepository
from .export import export_vehicles, import_vehicles, import_into
from .errors import ScraperError, StorageError, ImportFormatError, UnsupportedFormatError
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "RawListing",
    "Vehicle",
    "Page",
    "detect_site",
    "detect_page_site",
    "source_from_url",
    "ListingStrategy",
    "STRATEGIES",
    "get_strategy",
    "scrape_listings",
    "normalize_vehicle",
    "validate_vehicle",
    "parse_vehicle_title",
    "ScrapeResult",
    "run_scrape",
    "scrape_page",
    "VehicleRepository",
    "export_vehicles",
    "import_vehicles",
    "import_into",
    "ScraperError",
    "StorageError",
    "ImportFormatError",
    "UnsupportedFormatError",
    "init_logger",
    "now_iso"
]
