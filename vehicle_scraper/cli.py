"""
Command line entry point: scrape pages, browse, export and import the collected vehicles.
"""
import argparse
import asyncio
import logging
import os
import sys

from .core import fetch_page, run_scrape
from .database import VehicleRepository
from .errors import ImportFormatError, ScraperError, StorageError
from .export import export_vehicles, import_into, save_output_rows
from .page import Page
from .utils import init_logger, now_iso

DEFAULT_DB = os.getenv("VEHICLE_DB", "./data/vehicles.db")
DEFAULT_MAX_VEHICLES = int(os.getenv("MAX_VEHICLES", "1000"))

logger = logging.getLogger("vehicle_scraper")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Vehicle listing scraper for automotive marketplaces, with SQLite storage")
    ap.add_argument("--db", type=str, default=DEFAULT_DB, help="Path to SQLite DB")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=os.getenv("LOG_LEVEL", "INFO"),
                    help="Console log level (default from env LOG_LEVEL or INFO).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH"),
                    help="Also log to this file at DEBUG level.")

    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("scrape", help="Scrape vehicle listings from a page")
    sp.add_argument("--url", type=str, required=True, help="Page URL (used for site detection and link resolution)")
    sp.add_argument("--html", type=str, default="", help="Saved HTML of the page; omit with --live")
    sp.add_argument("--live", action="store_true", help="Load the URL in headless Chromium first")
    sp.add_argument("--headful", action="store_true", help="Show the browser window with --live")
    sp.add_argument("--storage-state", type=str, default=None, help="Playwright storage_state.json for logged-in sites")
    sp.add_argument("--dry-run", action="store_true", help="Do not store scraped vehicles")
    sp.add_argument("--out", type=str, default="", help="Also write the scraped vehicles to a .json/.csv file")
    sp.add_argument("--max-vehicles", type=int, default=DEFAULT_MAX_VEHICLES, help="Retention cap after saving")

    lp = sub.add_parser("list", help="List stored vehicles")
    lp.add_argument("--q", type=str, default=None, help="Search title/make/model/location")
    lp.add_argument("--source", type=str, default=None)
    lp.add_argument("--year", type=int, default=None)
    lp.add_argument("--make", type=str, default=None)
    lp.add_argument("--limit", type=int, default=50)

    ep = sub.add_parser("export", help="Export stored vehicles")
    ep.add_argument("--format", choices=["json", "csv"], default="json")
    ep.add_argument("--out", type=str, default="", help="Output file (default: stdout)")

    ip = sub.add_parser("import", help="Import vehicles from an export file")
    ip.add_argument("--format", choices=["json", "csv"], default=None, help="Default: from file extension")
    ip.add_argument("path", type=str)

    dp = sub.add_parser("delete", help="Delete one vehicle by id")
    dp.add_argument("id", type=str)

    sub.add_parser("clear", help="Delete all vehicles")

    tp = sub.add_parser("trim", help="Keep only the newest vehicles")
    tp.add_argument("--max", type=int, default=DEFAULT_MAX_VEHICLES)

    sub.add_parser("stats", help="Show collection statistics")

    return ap.parse_args(argv)


def _load_page(args) -> Page:
    if args.live:
        return asyncio.run(fetch_page(args.url, headless=not args.headful, storage_state_path=args.storage_state))
    if not args.html:
        raise SystemExit("scrape: --html FILE is required unless --live is given")
    with open(args.html, "r", encoding="utf-8") as fh:
        return Page.from_html(fh.read(), args.url)


def cmd_scrape(args, repo: VehicleRepository) -> int:
    page = _load_page(args)
    result = run_scrape(page, None if args.dry_run else repo, max_vehicles=args.max_vehicles)
    logger.info(f">>> Site: {result.site}; vehicles: {len(result.vehicles)}; "
                f"added: {result.added}; duplicates: {result.duplicates}; invalid: {len(result.invalid)}")
    if args.out and result.vehicles:
        save_output_rows(result.vehicles, args.out, logger)
    if not result.success:
        logger.error(f">>> Could not save vehicles: {result.error}")
        return 1
    return 0


def cmd_list(args, repo: VehicleRepository) -> int:
    vehicles = repo.filter(q=args.q, source=args.source, year=args.year, make=args.make,
                           sort="scraped_desc", limit=args.limit)
    for v in vehicles:
        price = f"${v.price:,}" if v.price is not None else "-"
        print(f"{v.id} | {v.title or '-'} | {price} | {v.year or '-'} | {v.make or '-'} | {v.source} | {v.url or '-'}")
    logger.info(f">>> {len(vehicles)} vehicle{'s' if len(vehicles) != 1 else ''}")
    return 0


def cmd_export(args, repo: VehicleRepository) -> int:
    vehicles = repo.get_all()
    if args.out:
        with open(args.out, "w", encoding="utf-8", newline="") as fh:
            fh.write(export_vehicles(vehicles, args.format))
        logger.info(f">>> Exported {len(vehicles)} vehicles to {args.out}")
    else:
        sys.stdout.write(export_vehicles(vehicles, args.format) + "\n")
    return 0


def cmd_import(args, repo: VehicleRepository) -> int:
    fmt = args.format or ("csv" if args.path.lower().endswith(".csv") else "json")
    with open(args.path, "r", encoding="utf-8") as fh:
        data = fh.read()
    try:
        result = import_into(repo, data, fmt)
    except ImportFormatError as e:
        logger.error(f">>> Import aborted: {e}")
        return 2
    if not result.success:
        logger.error(f">>> Import failed: {result.error}")
        return 1
    return 0


def cmd_delete(args, repo: VehicleRepository) -> int:
    if repo.delete(args.id):
        logger.info(f">>> Deleted {args.id}")
        return 0
    logger.warning(f">>> No vehicle with id {args.id}")
    return 1


def cmd_clear(args, repo: VehicleRepository) -> int:
    removed = repo.clear()
    logger.info(f">>> Removed {removed} vehicles")
    return 0


def cmd_trim(args, repo: VehicleRepository) -> int:
    removed = repo.trim(args.max)
    logger.info(f">>> Cleaned up {removed} old vehicles")
    return 0


def cmd_stats(args, repo: VehicleRepository) -> int:
    stats = repo.stats()
    print(f"Vehicles: {stats['total']}")
    print(f"Oldest:   {stats['oldest'] or '-'}")
    print(f"Newest:   {stats['newest'] or '-'}")
    if stats["avg_price"] is not None:
        print(f"Price:    min ${stats['min_price']:,} / avg ${stats['avg_price']:,.0f} / max ${stats['max_price']:,}")
    for source, n in stats["by_source"].items():
        print(f"  {source}: {n}")
    return 0


COMMANDS = {
    "scrape": cmd_scrape,
    "list": cmd_list,
    "export": cmd_export,
    "import": cmd_import,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "trim": cmd_trim,
    "stats": cmd_stats,
}


def main(argv=None) -> int:
    global logger
    args = parse_args(argv)
    logger = init_logger(console_level=args.log_level, log_file=args.log_file_path)
    logger.debug(f">>> Run started at {now_iso()}")

    if args.db != ":memory:":
        os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    try:
        with VehicleRepository(args.db) as repo:
            return COMMANDS[args.command](args, repo)
    except StorageError as e:
        logger.error(f">>> Storage error: {e}")
        return 1
    except ScraperError as e:
        logger.error(f">>> {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
