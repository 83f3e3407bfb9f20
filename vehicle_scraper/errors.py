"""
Exception types raised by the scraper package.
"""


class ScraperError(Exception):
    """Base class for vehicle scraper errors."""


class StorageError(ScraperError):
    """The vehicle store could not be read or written."""


class VehicleNotFound(StorageError, KeyError):
    """No stored vehicle has the requested id."""


class ImportFormatError(ScraperError, ValueError):
    """Import payload is structurally invalid; nothing was imported."""


class UnsupportedFormatError(ScraperError, ValueError):
    """Export/import format is neither json nor csv."""
