"""
Tests for the field extraction primitives.
"""
from vehicle_scraper.extractors import (
    extract_image,
    extract_make,
    extract_mileage,
    extract_model,
    extract_price,
    extract_text,
    extract_url,
    extract_year,
    split_selectors,
)
from vehicle_scraper.page import Page


def card(inner: str):
    return Page.from_html(f'<div class="card">{inner}</div>').soup.select_one(".card")


def test_split_selectors():
    assert split_selectors(" h3 , .title,,") == ["h3", ".title"]
    assert split_selectors("") == []


def test_text_falls_through_empty_candidates():
    c = card('<h3>  </h3><span class="t">Nice   Car</span>')
    assert extract_text(c, "h3, .t") == "Nice Car"
    assert extract_text(c, ".missing") is None


def test_price_from_selector():
    assert extract_price(card('<span class="price">Now $12,345 OBO</span>'), ".price") == 12345


def test_price_scans_container_without_selector():
    assert extract_price(card("Great deal at $9,999 today")) == 9999


def test_price_tries_next_candidate():
    c = card('<span class="price">Call us</span><span class="alt">$5,000</span>')
    assert extract_price(c, ".price, .alt") == 5000
    assert extract_price(card("No price here")) is None


def test_price_is_not_range_checked():
    assert extract_price(card("$100")) == 100


def test_mileage():
    assert extract_mileage(card("32,000 miles")) == 32000
    assert extract_mileage(card("Only 900 mi")) == 900
    assert extract_mileage(card("12 MILES")) == 12
    assert extract_mileage(card('<span class="m">45,100 mi</span>'), ".m") == 45100
    assert extract_mileage(card("low miles")) is None


def test_year():
    assert extract_year(card("Clean 2019 Honda")) == 2019
    assert extract_year(card("Model 2150")) is None
    assert extract_year(card("No year")) is None


def test_make_uses_vocabulary_order():
    # Toyota precedes Ford in the vocabulary even though Ford comes first in the text
    assert extract_make(card("Ford truck, better than a Toyota")) == "Toyota"
    assert extract_make(card("mystery machine")) is None


def test_model_is_two_words_after_year():
    assert extract_model(card("2021 Toyota Camry SE")) == "Camry"
    assert extract_model(card("2021 Land Rover Defender")) == "Rover"
    assert extract_model(card("2021 Toyota")) is None
    assert extract_model(card("Toyota Camry")) is None


def test_image_lazy_attributes():
    assert extract_image(card('<img src="/a.jpg">')) == "/a.jpg"
    assert extract_image(card('<img data-src="/b.jpg">')) == "/b.jpg"
    assert extract_image(card('<img data-lazy="/c.jpg">')) == "/c.jpg"
    assert extract_image(card("no image")) is None


def test_url_resolution():
    page = Page.from_html("", "https://www.cars.com/shopping/results/")
    c = card('<a href="/vehicledetail/123/">View</a>')
    assert extract_url(c, "a", page) == "https://www.cars.com/vehicledetail/123/"


def test_url_falls_back_to_page():
    page = Page.from_html("", "https://www.cars.com/shopping/results/")
    assert extract_url(card("no link"), "a", page) == "https://www.cars.com/shopping/results/"
    assert extract_url(card("no link"), "a") is None


def test_image_resolved_against_page_path():
    page = Page.from_html("", "https://www.cars.com/shopping/results/")
    assert extract_image(card('<img src="img/1.jpg">'), "img", page) == "https://www.cars.com/shopping/results/img/1.jpg"
    assert extract_image(card('<img data-src="/a.jpg">'), "img", page) == "https://www.cars.com/a.jpg"
    assert extract_image(card('<img src="https://cdn.example/x.jpg">'), "img", page) == "https://cdn.example/x.jpg"
