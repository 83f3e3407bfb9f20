"""
JSON and CSV export/import of vehicle collections.
"""
import csv
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pandas as pd

from .errors import ImportFormatError, StorageError, UnsupportedFormatError
from .models import Vehicle
from .site_detector import source_from_url
from .utils import to_int

logger = logging.getLogger(__name__)

FORMATS = ("json", "csv")

# (header, Vehicle attribute) in export column order
CSV_COLUMNS = [
    ("ID", "id"),
    ("Title", "title"),
    ("Price", "price"),
    ("Year", "year"),
    ("Make", "make"),
    ("Model", "model"),
    ("Mileage", "mileage"),
    ("Source", "source"),
    ("URL", "url"),
    ("Location", "location"),
    ("Scraped At", "scraped_at"),
]
NUMERIC_FIELDS = {"price", "year", "mileage"}


def _check_format(fmt: str) -> str:
    fmt = (fmt or "").lower()
    if fmt not in FORMATS:
        raise UnsupportedFormatError(f"Unsupported format: {fmt!r}")
    return fmt


def vehicles_to_json(vehicles: List[Vehicle]) -> str:
    return json.dumps([v.to_dict() for v in vehicles], indent=2, ensure_ascii=False)


def vehicles_to_frame(vehicles: List[Vehicle]) -> pd.DataFrame:
    rows = []
    for v in vehicles:
        row = {}
        for header, attr in CSV_COLUMNS:
            value = getattr(v, attr)
            if attr == "scraped_at":
                value = value.isoformat()
            row[header] = "" if value is None else str(value)
        rows.append(row)
    return pd.DataFrame(rows, columns=[h for h, _ in CSV_COLUMNS])


def vehicles_to_csv(vehicles: List[Vehicle]) -> str:
    """CSV with every cell quoted and embedded quotes doubled. Empty collection gives ""."""
    if not vehicles:
        return ""
    df = vehicles_to_frame(vehicles)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n").rstrip("\n")


def export_vehicles(vehicles: List[Vehicle], fmt: str = "json") -> str:
    fmt = _check_format(fmt)
    if fmt == "json":
        return vehicles_to_json(vehicles)
    return vehicles_to_csv(vehicles)


def _field_name(header: str) -> str:
    """``Scraped At`` -> ``scrapedat``; Vehicle.from_dict maps the alias."""
    return str(header).lower().replace(" ", "")


def parse_csv(data: str) -> List[Dict[str, Any]]:
    """Rows of a CSV export as dicts keyed by derived field name."""
    if not data.strip():
        return []
    try:
        df = pd.read_csv(io.StringIO(data), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ImportFormatError(f"Invalid CSV data: {e}") from e

    records = []
    for raw in df.to_dict(orient="records"):
        record: Dict[str, Any] = {}
        for header, value in raw.items():
            name = _field_name(header)
            if name in NUMERIC_FIELDS:
                record[name] = to_int(value)
            else:
                record[name] = value if value != "" else None
        records.append(record)
    return records


def parse_json(data: str) -> List[Dict[str, Any]]:
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Invalid JSON data: {e}") from e
    if not isinstance(payload, list):
        raise ImportFormatError("Invalid vehicle data format: expected a JSON array")
    for i, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ImportFormatError(f"Invalid vehicle data format: item {i} is not an object")
    return payload


def import_vehicles(data: str, fmt: str = "json") -> List[Vehicle]:
    """
    Parse an exported collection back into vehicles.

    Structural problems raise ImportFormatError before anything is built;
    values that are not integers only null the affected numeric field.
    Records without a source get one derived from their URL.
    """
    fmt = _check_format(fmt)
    records = parse_json(data) if fmt == "json" else parse_csv(data)
    vehicles = []
    for record in records:
        vehicle = Vehicle.from_dict(record)
        if not record.get("source"):
            vehicle.source = source_from_url(vehicle.url)
        vehicles.append(vehicle)
    return vehicles


@dataclass
class ImportResult:
    success: bool
    imported: int = 0
    error: Optional[str] = None


def import_into(repository, data: str, fmt: str = "json") -> ImportResult:
    """
    Import into a repository, upserting by id.

    Every record is parsed before anything is written and the batch is
    stored in one transaction. Format errors propagate; storage errors are
    reported in the result and leave the store unchanged.
    """
    vehicles = import_vehicles(data, fmt)
    try:
        repository.save_many(vehicles)
    except StorageError as e:
        logger.error("Import of %d %s vehicles failed: %s", len(vehicles), fmt, e)
        return ImportResult(success=False, error=str(e))
    logger.info(">>> Imported %d vehicles from %s", len(vehicles), fmt)
    return ImportResult(success=True, imported=len(vehicles))


def save_output_rows(vehicles: List[Vehicle], out_path: str, logger=None):
    """Write vehicles to a .json or .csv file chosen by extension."""
    fmt = "json" if out_path.lower().endswith(".json") else "csv"
    with open(out_path, "w", encoding="utf-8", newline="") as fh:
        fh.write(export_vehicles(vehicles, fmt))

    if logger:
        logger.info(f">>> Saved {len(vehicles)} vehicles to {out_path}")
    else:
        print(f">>> Saved {len(vehicles)} vehicles to {out_path}")
