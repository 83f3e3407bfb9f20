"""
SQLite-backed vehicle repository.

One connection per repository, guarded by a re-entrant lock so that every
read-modify-write (upsert, dedup insert, trim) runs as a single transaction.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .errors import StorageError, VehicleNotFound
from .models import Vehicle

logger = logging.getLogger(__name__)

COLUMNS = [
    "id", "title", "price", "year", "make", "model", "mileage", "image", "url",
    "location", "description", "source", "vin", "transmission", "fuel_type",
    "condition", "scraped_at",
]
# Never rewritten once a vehicle exists
IMMUTABLE_COLUMNS = {"id", "scraped_at"}

DDL_VEHICLES = """
CREATE TABLE IF NOT EXISTS vehicles (
  id TEXT PRIMARY KEY,
  title TEXT,
  price INTEGER,
  year INTEGER,
  make TEXT,
  model TEXT,
  mileage INTEGER,
  image TEXT,
  url TEXT,
  location TEXT,
  description TEXT,
  source TEXT NOT NULL DEFAULT 'Unknown',
  vin TEXT,
  transmission TEXT,
  fuel_type TEXT,
  condition TEXT,
  scraped_at TEXT NOT NULL
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_vehicles_url ON vehicles(url);",
    "CREATE INDEX IF NOT EXISTS idx_vehicles_source ON vehicles(source);",
    "CREATE INDEX IF NOT EXISTS idx_vehicles_scraped_at ON vehicles(scraped_at);",
]

SORT_OPTIONS = {
    "price_asc": "ORDER BY price ASC",
    "price_desc": "ORDER BY price DESC",
    "year_desc": "ORDER BY year DESC",
    "year_asc": "ORDER BY year ASC",
    "scraped_desc": "ORDER BY scraped_at DESC",
    "scraped_asc": "ORDER BY scraped_at ASC",
    "inserted": "ORDER BY rowid ASC",
}

SEARCH_COLUMNS = ("title", "make", "model", "location")

UPSERT_SQL = (
    f"INSERT INTO vehicles ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in COLUMNS)}) "
    "ON CONFLICT(id) DO UPDATE SET "
    + ", ".join(f"{c}=excluded.{c}" for c in COLUMNS if c not in IMMUTABLE_COLUMNS)
)


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_VEHICLES)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def vehicle_to_row(vehicle: Vehicle) -> Dict[str, Any]:
    row = {name: getattr(vehicle, name) for name in COLUMNS}
    row["scraped_at"] = vehicle.scraped_at.astimezone(timezone.utc).isoformat()
    return row


def row_to_vehicle(row: sqlite3.Row) -> Vehicle:
    return Vehicle.from_dict(dict(row))


def build_where_clause(filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """Build WHERE clause and parameters from filters."""
    where_conditions = []
    parameters: List[Any] = []

    # Text search
    q = filters.get("q")
    if q:
        where_conditions.append(
            "(" + " OR ".join(f"instr(lower(coalesce({c}, '')), ?) > 0" for c in SEARCH_COLUMNS) + ")"
        )
        parameters.extend([q.lower()] * len(SEARCH_COLUMNS))

    source = filters.get("source")
    if source:
        where_conditions.append("source = ?")
        parameters.append(source)

    year = filters.get("year")
    if year is not None:
        where_conditions.append("year = ?")
        parameters.append(year)

    make = filters.get("make")
    if make:
        where_conditions.append("make = ?")
        parameters.append(make)

    min_price = filters.get("min_price")
    if min_price is not None:
        where_conditions.append("(price IS NOT NULL AND price >= ?)")
        parameters.append(min_price)

    max_price = filters.get("max_price")
    if max_price is not None:
        where_conditions.append("(price IS NOT NULL AND price <= ?)")
        parameters.append(max_price)

    where_clause = " WHERE " + " AND ".join(where_conditions) if where_conditions else ""
    return where_clause, parameters


class VehicleRepository:
    """Keyed vehicle collection persisted in SQLite."""

    def __init__(self, path: str = ":memory:"):
        self.path = path
        self._lock = threading.RLock()
        try:
            self._conn = db_connect(path)
            db_init(self._conn)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open vehicle store {path}: {e}") from e

    def close(self):
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "VehicleRepository":
        return self

    def __exit__(self, *exc):
        self.close()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Run one operation atomically; sqlite errors become StorageError."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as e:
                try:
                    self._conn.rollback()
                except sqlite3.ProgrammingError:
                    # connection already closed, nothing to roll back
                    logger.debug("Rollback skipped for %s: connection closed", operation)
                logger.error("Vehicle store %s failed: %s", operation, e)
                raise StorageError(f"{operation} failed: {e}") from e

    def _query(self, operation: str, sql: str, params=()) -> List[Vehicle]:
        with self._transaction(operation) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [row_to_vehicle(r) for r in rows]

    def get_all(self) -> List[Vehicle]:
        return self._query("get_all", "SELECT * FROM vehicles ORDER BY rowid ASC")

    def get(self, vehicle_id: str) -> Optional[Vehicle]:
        found = self._query("get", "SELECT * FROM vehicles WHERE id = ?", (vehicle_id,))
        return found[0] if found else None

    def save(self, vehicle: Vehicle) -> Vehicle:
        """Insert, or overwrite every mutable field of the vehicle with the same id."""
        with self._transaction("save") as conn:
            conn.execute(UPSERT_SQL, vehicle_to_row(vehicle))
            stored = conn.execute("SELECT * FROM vehicles WHERE id = ?", (vehicle.id,)).fetchone()
        return row_to_vehicle(stored)

    def save_many(self, vehicles: List[Vehicle]) -> int:
        """Upsert a batch in one transaction; either every vehicle is stored or none is."""
        with self._transaction("save_many") as conn:
            conn.executemany(UPSERT_SQL, [vehicle_to_row(v) for v in vehicles])
        return len(vehicles)

    def update(self, vehicle_id: str, **changes) -> Vehicle:
        """Overwrite selected fields of a stored vehicle."""
        bad = IMMUTABLE_COLUMNS.intersection(changes)
        if bad:
            raise ValueError(f"Cannot change {', '.join(sorted(bad))}")
        with self._lock:
            current = self.get(vehicle_id)
            if current is None:
                raise VehicleNotFound(vehicle_id)
            return self.save(replace(current, **changes))

    def delete(self, vehicle_id: str) -> bool:
        with self._transaction("delete") as conn:
            cur = conn.execute("DELETE FROM vehicles WHERE id = ?", (vehicle_id,))
        return cur.rowcount > 0

    def clear(self) -> int:
        with self._transaction("clear") as conn:
            cur = conn.execute("DELETE FROM vehicles")
        return cur.rowcount

    def get_by_source(self, source: str) -> List[Vehicle]:
        return self.filter(source=source)

    def search(self, query: str) -> List[Vehicle]:
        """Case-insensitive substring match over title, make, model and location."""
        return self.filter(q=query)

    def filter(
        self,
        sort: str = "inserted",
        limit: Optional[int] = None,
        offset: int = 0,
        **filters,
    ) -> List[Vehicle]:
        where_clause, parameters = build_where_clause(filters)
        order_clause = SORT_OPTIONS.get(sort, SORT_OPTIONS["inserted"])
        sql = f"SELECT * FROM vehicles{where_clause} {order_clause}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            parameters.extend([limit, offset])
        return self._query("filter", sql, parameters)

    def count(self, **filters) -> int:
        where_clause, parameters = build_where_clause(filters)
        with self._transaction("count") as conn:
            return conn.execute(f"SELECT COUNT(*) FROM vehicles{where_clause}", parameters).fetchone()[0]

    def find_duplicate(self, vehicle: Vehicle) -> Optional[Vehicle]:
        """Stored vehicle with the same URL, or the same title and price."""
        if vehicle.url:
            found = self._query("find_duplicate", "SELECT * FROM vehicles WHERE url = ? LIMIT 1", (vehicle.url,))
            if found:
                return found[0]
        if vehicle.title:
            found = self._query(
                "find_duplicate",
                "SELECT * FROM vehicles WHERE title = ? AND price IS ? LIMIT 1",
                (vehicle.title, vehicle.price),
            )
            if found:
                return found[0]
        return None

    def add_if_new(self, vehicle: Vehicle) -> bool:
        """Insert a freshly scraped vehicle unless it duplicates a stored one."""
        with self._lock:
            if self.find_duplicate(vehicle) is not None:
                return False
            self.save(vehicle)
            return True

    def trim(self, max_vehicles: int) -> int:
        """Keep only the newest ``max_vehicles`` by capture time; returns how many were removed."""
        with self._transaction("trim") as conn:
            cur = conn.execute(
                "DELETE FROM vehicles WHERE id NOT IN "
                "(SELECT id FROM vehicles ORDER BY scraped_at DESC LIMIT ?)",
                (max(max_vehicles, 0),),
            )
        if cur.rowcount:
            logger.info("Trimmed %d old vehicles", cur.rowcount)
        return cur.rowcount

    def facets(self) -> Dict[str, List[Any]]:
        """Distinct values for filter pickers."""
        with self._transaction("facets") as conn:
            years = [r[0] for r in conn.execute(
                "SELECT DISTINCT year FROM vehicles WHERE year IS NOT NULL ORDER BY year DESC")]
            makes = [r[0] for r in conn.execute(
                "SELECT DISTINCT make FROM vehicles WHERE make IS NOT NULL ORDER BY make ASC")]
            sources = [r[0] for r in conn.execute(
                "SELECT DISTINCT source FROM vehicles ORDER BY source ASC")]
        return {"years": years, "makes": makes, "sources": sources}

    def stats(self) -> Dict[str, Any]:
        """Collection statistics."""
        with self._transaction("stats") as conn:
            total, oldest, newest = conn.execute(
                "SELECT COUNT(*), MIN(scraped_at), MAX(scraped_at) FROM vehicles"
            ).fetchone()
            min_price, max_price, avg_price = conn.execute(
                "SELECT MIN(price), MAX(price), AVG(price) FROM vehicles WHERE price IS NOT NULL"
            ).fetchone()
            by_source = conn.execute(
                "SELECT source, COUNT(*) FROM vehicles GROUP BY source ORDER BY COUNT(*) DESC"
            ).fetchall()
            by_make = conn.execute(
                "SELECT make, COUNT(*) FROM vehicles WHERE make IS NOT NULL "
                "GROUP BY make ORDER BY COUNT(*) DESC LIMIT 20"
            ).fetchall()
            by_year = conn.execute(
                "SELECT year, COUNT(*) FROM vehicles WHERE year IS NOT NULL "
                "GROUP BY year ORDER BY year DESC LIMIT 20"
            ).fetchall()

        return {
            "total": total,
            "oldest": oldest,
            "newest": newest,
            "min_price": min_price,
            "max_price": max_price,
            "avg_price": avg_price,
            "by_source": {source: n for source, n in by_source},
            "by_make": {make: n for make, n in by_make},
            "by_year": {str(year): n for year, n in by_year},
        }
