"""
Field extraction primitives over a listing container.

Selector arguments are comma-separated candidate lists tried in order; the
first candidate that yields a non-empty result wins. An empty list means the
container itself is scanned.
"""
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import Tag

from .page import Page, node_text

PRICE_RE = re.compile(r"\$(\d[\d,]*)")
MILEAGE_RE = re.compile(r"(\d[\d,]*)\s*(miles?|mi)", re.I)
YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")
FOUR_DIGITS_RE = re.compile(r"^\d{4}$")

# Most common makes first; the first vocabulary hit wins, not the first in the text
COMMON_MAKES = [
    "Toyota", "Honda", "Ford", "Chevrolet", "BMW", "Mercedes", "Audi", "Volkswagen",
    "Nissan", "Hyundai", "Kia", "Subaru", "Mazda", "Lexus", "Acura", "Infiniti",
    "Cadillac", "Buick", "GMC", "Jeep", "Dodge", "Chrysler", "Ram", "Volvo",
    "Jaguar", "Land Rover", "Porsche", "Tesla", "Mitsubishi",
]


def split_selectors(selectors: str) -> List[str]:
    return [s.strip() for s in (selectors or "").split(",") if s.strip()]


def _candidates(container: Tag, selectors: str):
    """Yield element groups per selector candidate, or the container itself."""
    parts = split_selectors(selectors)
    if not parts:
        yield [container]
        return
    for sel in parts:
        yield container.select(sel)


def _digits(group: str) -> Optional[int]:
    try:
        return int(group.replace(",", ""))
    except ValueError:
        return None


def extract_text(container: Tag, selectors: str) -> Optional[str]:
    """Text of the first element matching a candidate with non-empty content."""
    for sel in split_selectors(selectors):
        el = container.select_one(sel)
        if el is not None:
            text = node_text(el)
            if text:
                return text
    return None


def extract_price(container: Tag, selectors: str = "") -> Optional[int]:
    """First ``$12,345`` amount found. No range check here."""
    for elements in _candidates(container, selectors):
        for el in elements:
            m = PRICE_RE.search(node_text(el))
            if m:
                return _digits(m.group(1))
    return None


def extract_mileage(container: Tag, selectors: str = "") -> Optional[int]:
    """First ``32,000 miles`` or ``900 mi`` digit group found."""
    for elements in _candidates(container, selectors):
        for el in elements:
            m = MILEAGE_RE.search(node_text(el))
            if m:
                return _digits(m.group(1))
    return None


def extract_year(container: Tag) -> Optional[int]:
    m = YEAR_RE.search(node_text(container))
    return int(m.group(0)) if m else None


def extract_make(container: Tag, makes: Optional[List[str]] = None) -> Optional[str]:
    text = node_text(container).lower()
    for make in makes or COMMON_MAKES:
        if make.lower() in text:
            return make
    return None


def extract_model(container: Tag) -> Optional[str]:
    """
    Word two positions after the first four-digit token.

    Assumes "Year Make Model" order, so "Certified 2021 Toyota Camry" still
    works but "2021 Land Rover Defender" yields "Rover". Best effort only.
    """
    words = node_text(container).split(" ")
    for i in range(len(words) - 1):
        if FOUR_DIGITS_RE.match(words[i]):
            return words[i + 2] if i + 2 < len(words) else None
    return None


def extract_image(container: Tag, selector: str = "img", page: Optional[Page] = None) -> Optional[str]:
    """Image source resolved against the page, falling back to lazy-load attributes."""
    img = container.select_one(selector)
    if img is None:
        return None
    src = (img.get("src") or img.get("data-src") or img.get("data-lazy") or "").strip()
    if not src:
        return None
    return urljoin(page.url, src) if page and page.url else src


def extract_url(container: Tag, selector: str = "a", page: Optional[Page] = None) -> Optional[str]:
    """First link href resolved against the page, else the page URL itself."""
    page_url = page.url if page else None
    link = container.select_one(selector)
    href = (link.get("href") or "").strip() if link is not None else ""
    if href:
        return urljoin(page_url, href) if page_url else href
    return page_url
