"""
Tests for normalization and validation of scraped vehicles.
"""
from datetime import datetime, timezone

import pytest

from vehicle_scraper.models import RawListing, Vehicle
from vehicle_scraper.normalizer import (
    clean_title,
    clean_url,
    normalize_vehicle,
    parse_condition,
    parse_fuel_type,
    parse_make,
    parse_mileage,
    parse_model,
    parse_price,
    parse_transmission,
    parse_vehicle_title,
    parse_vin,
    parse_year,
    validate_vehicle,
)

NOW = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


@pytest.mark.parametrize("value,expected", [
    ("$24,500", 24500),
    ("$100", None),
    (500, 500),
    (500_000, 500_000),
    (500_001, None),
    ("call for price", None),
    (None, None),
    (float("nan"), None),
])
def test_parse_price(value, expected):
    assert parse_price(value) == expected


def test_parse_mileage():
    assert parse_mileage("32,000 miles") == 32000
    assert parse_mileage("0 miles") == 0
    assert parse_mileage("600,000") is None
    assert parse_mileage(-5) is None


def test_parse_year():
    assert parse_year("2021 Toyota", this_year=2024) == 2021
    assert parse_year(2025, this_year=2024) == 2025
    assert parse_year("2026 model", this_year=2024) is None
    assert parse_year(1899, this_year=2024) is None
    assert parse_year("no year", this_year=2024) is None
    assert parse_year(True) is None


def test_parse_make_uses_vocabulary_order():
    assert parse_make("Toyota beats Honda") == "Honda"
    assert parse_make("mercedes-benz c300") == "Mercedes-Benz"
    assert parse_make("unbranded kit car") is None


def test_parse_model():
    assert parse_model("Camry") == "Camry"
    assert parse_model("SUV 2020 Explorer") == "Explorer"
    assert parse_model("2020 X5") == "X5"
    assert parse_model("2020 a 7") is None


def test_clean_title():
    assert clean_title("  2021   Toyota Camry!! (SE) ") == "2021 Toyota Camry SE"
    assert clean_title("F-150 XLT") == "F-150 XLT"
    assert clean_title("!!!") is None


def test_clean_url():
    assert clean_url("/item/1", "https://www.cars.com") == "https://www.cars.com/item/1"
    assert clean_url("https://a.example/x", "https://www.cars.com") == "https://a.example/x"
    assert clean_url("/item/1") is None
    assert clean_url("http://[::1") is None
    assert clean_url("") is None


def test_parse_vin():
    assert parse_vin("VIN: 1HGCM82633A004352 clean title") == "1HGCM82633A004352"
    # I, O and Q never appear in a VIN
    assert parse_vin("1HGCM82633A00435I") is None


def test_keyword_fields():
    assert parse_transmission("6-speed manual") == "Manual"
    assert parse_transmission("CVT") == "CVT"
    assert parse_fuel_type("plug-in hybrid") == "Hybrid"
    assert parse_fuel_type("Gasoline") == "Gasoline"
    assert parse_condition("brand new") == "New"
    assert parse_condition("pre-owned") == "Used"
    assert parse_condition("Certified Pre-Owned") == "Certified Pre-Owned"
    assert parse_condition("salvage") is None


def test_parse_vehicle_title():
    info = parse_vehicle_title("2016 Jeep Wrangler Sahara", this_year=2024)
    assert (info.year, info.make, info.model) == (2016, "Jeep", "Wrangler")
    assert parse_vehicle_title(None).make is None


def test_normalize_scenario():
    raw = RawListing(
        title="2021 Toyota Camry SE",
        price="$24,500",
        mileage="32,000 miles",
        model="Camry",
        url="/vehicledetail/abc/",
        source="Cars.com",
    )
    v = normalize_vehicle(raw, origin="https://www.cars.com", now=NOW, this_year=2024)

    assert v.year == 2021
    assert v.make == "Toyota"
    assert v.model == "Camry"
    assert v.price == 24500
    assert v.mileage == 32000
    assert v.url == "https://www.cars.com/vehicledetail/abc/"
    assert v.source == "Cars.com"
    assert v.scraped_at == NOW
    assert v.id.startswith(f"vehicle_{int(NOW.timestamp() * 1000)}_")


def test_low_price_becomes_null():
    v = normalize_vehicle(RawListing(title="2010 Kia Rio", price="$100"), now=NOW)
    assert v.price is None


def test_backfill_from_title():
    raw = RawListing(title="2018 Subaru Outback Limited", year="n/a", make="n/a")
    v = normalize_vehicle(raw, now=NOW, this_year=2024)
    assert v.year == 2018
    assert v.make == "Subaru"


def test_description_fallbacks():
    raw = RawListing(
        title="2017 Ford Fusion",
        description="Automatic, gasoline, used. VIN 1FA6P0H75H5100001 ",
    )
    v = normalize_vehicle(raw, now=NOW)
    assert v.transmission == "Automatic"
    assert v.fuel_type == "Gasoline"
    assert v.condition == "Used"
    assert v.vin == "1FA6P0H75H5100001"


def test_missing_source_is_unknown():
    assert normalize_vehicle(RawListing(title="x"), now=NOW).source == "Unknown"


def test_normalize_is_idempotent():
    raw = RawListing(
        title="2021 Toyota Camry SE",
        price="$24,500",
        mileage="32,000 miles",
        model="Camry",
        image="/img/1.jpg",
        url="/vehicledetail/abc/",
        location="  Austin,   TX ",
        description="Automatic, gasoline, used. VIN 1FA6P0H75H5100001",
        source="Cars.com",
    )
    once = normalize_vehicle(raw, origin="https://www.cars.com", now=NOW, this_year=2024)
    twice = normalize_vehicle(once.as_raw(), now=datetime(2030, 1, 1, tzinfo=timezone.utc), this_year=2024)
    assert twice == once


def test_normalize_never_raises_on_junk():
    raw = RawListing(
        title=12345,
        price=float("nan"),
        year=True,
        mileage=-5,
        url="http://[::1",
        image="not a url",
        transmission=3.5,
    )
    v = normalize_vehicle(raw, now=NOW)
    assert isinstance(v, Vehicle)
    assert v.price is None
    assert v.year is None
    assert v.mileage is None
    assert v.url is None
    assert v.image is None


def test_validate_vehicle():
    good = Vehicle(id="a", scraped_at=NOW, title="2020 Kia Soul", year=2020, price=15000)
    assert validate_vehicle(good, this_year=2024).is_valid

    bad = Vehicle(id="b", scraped_at=NOW, year=1800, price=100, mileage=900_000)
    report = validate_vehicle(bad, this_year=2024)
    assert not report.is_valid
    assert report.errors == [
        "Vehicle must have a title or make/model",
        "Invalid year",
        "Invalid price range",
        "Invalid mileage",
    ]
