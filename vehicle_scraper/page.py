"""
Static page snapshot handed to the scraper by the hosting environment.
"""
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

HTML_PARSER = "lxml"


def node_text(node: Optional[Tag]) -> str:
    """Text content of a node with child strings separated by single spaces."""
    if node is None:
        return ""
    return node.get_text(" ", strip=True)


@dataclass
class Page:
    """Parsed document plus its location metadata."""

    soup: BeautifulSoup
    url: Optional[str] = None
    hostname: str = ""
    origin: Optional[str] = None
    _text: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_html(cls, html: str, url: Optional[str] = None) -> "Page":
        soup = BeautifulSoup(html or "", HTML_PARSER)
        hostname = ""
        origin = None
        if url:
            try:
                parts = urlsplit(url)
                hostname = (parts.hostname or "").lower()
            except ValueError:
                parts = None
            if parts is not None and parts.scheme and parts.netloc:
                origin = f"{parts.scheme}://{parts.netloc}"
        return cls(soup=soup, url=url, hostname=hostname, origin=origin)

    @property
    def text(self) -> str:
        """Lower-cased text of the document body."""
        if self._text is None:
            root = self.soup.body or self.soup
            self._text = node_text(root).lower()
        return self._text

    def select(self, selectors: str):
        """All elements matching a comma-separated selector list, in document order."""
        return self.soup.select(selectors)
