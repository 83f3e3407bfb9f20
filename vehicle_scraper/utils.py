"""
Utility functions for text cleanup, ids, timestamps and logging.
"""
import logging
import random
import re
import string
from datetime import datetime, timezone
from typing import Any, Optional

_ID_ALPHABET = string.digits + string.ascii_lowercase


def init_logger(
    name: str = "vehicle_scraper",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = None
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_utc() -> datetime:
    """Return the current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return now_utc().isoformat()


def generate_id(now: Optional[datetime] = None) -> str:
    """
    Build an opaque vehicle id.

    Format is ``vehicle_<epoch ms>_<9 base-36 chars>``, matching ids produced
    by the browser extension so imported collections keep the same shape.
    """
    ts = now or now_utc()
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"vehicle_{int(ts.timestamp() * 1000)}_{suffix}"


def clean_text(s: Any) -> Optional[str]:
    """Collapse whitespace and trim. Empty results become None."""
    if s is None:
        return None
    s = re.sub(r"\s+", " ", str(s)).strip()
    return s or None


def to_int(value: Any) -> Optional[int]:
    """Safely convert a CSV cell or JSON scalar to int."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored capture time.

    Accepts aware/naive datetimes, ISO-8601 strings (``Z`` suffix allowed) and
    epoch milliseconds. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
