"""
Tests for site detection.
"""
import pytest

from vehicle_scraper.page import Page
from vehicle_scraper.site_detector import (
    count_vehicle_keywords,
    detect_page_site,
    detect_site,
    source_from_url,
)


@pytest.mark.parametrize("hostname,site", [
    ("www.autotrader.com", "autotrader"),
    ("www.cars.com", "cars"),
    ("www.cargurus.com", "cargurus"),
    ("www.carmax.com", "carmax"),
    ("www.vroom.com", "vroom"),
    ("www.carvana.com", "carvana"),
    ("austin.craigslist.org", "craigslist"),
])
def test_known_hosts(hostname, site):
    assert detect_site(hostname, f"https://{hostname}/search") == site


def test_facebook_needs_marketplace_url():
    assert detect_site("www.facebook.com", "https://www.facebook.com/marketplace/category/vehicles") == "facebook"
    assert detect_site("www.facebook.com", "https://www.facebook.com/groups/123") == "unknown"


def test_generic_needs_three_keywords():
    assert count_vehicle_keywords("used car price mileage") >= 3
    assert detect_site("example.com", "https://example.com/", "used car price mileage") == "generic"


def test_two_keywords_is_unknown():
    text = "sedan for sale, fair price"
    assert count_vehicle_keywords(text) == 2
    assert detect_site("example.org", "https://example.org/", text) == "unknown"


def test_detect_page_site_uses_body_text():
    page = Page.from_html("<body><p>Used CAR with low MILEAGE and a fair PRICE</p></body>", "https://dealer.example/")
    assert detect_page_site(page) == "generic"


def test_source_from_url():
    assert source_from_url("https://www.carvana.com/vehicle/1") == "Carvana"
    assert source_from_url("https://www.cars.com/vehicledetail/1/") == "Cars.com"
    assert source_from_url("https://example.com/x") == "Other"
    assert source_from_url("http://[::1") == "Other"
    assert source_from_url(None) == "Unknown"
