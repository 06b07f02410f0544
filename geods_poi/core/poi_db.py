"""
geods_poi/core/poi_db.py

Read-only interface onto the POI GeoPackage.

One backend:
  - PoiDBSqlite: GeoPackage (SQLite) file opened read-only

Factory function `create_poi_db()` checks the file exists and opens it.

PoiRow fields match the POI table columns:
  fid, geom, id, primary_name, main_category, alternate_category,
  address, locality, postcode, region, country, source, source_record_id,
  lat, long, h3_15, easting, northing, lsoa21cd

Retrieval and scan failures are raised as DataSourceError, so "no rows"
(an empty iterator) is never confused with a broken query.
"""

from __future__ import annotations

import logging
import os
import re
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from geods_poi.core.errors import DataSourceError, SearchCancelled

logger = logging.getLogger(__name__)


# ── Data ─────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class PoiRow:
    """Single POI row returned by a spatial query."""
    fid: int
    geom: bytes                     # GeoPackage geometry blob
    id: str
    primary_name: Optional[str]
    main_category: Optional[str]
    alternate_category: Optional[str]  # pipe-delimited
    address: Optional[str]
    locality: Optional[str]
    postcode: Optional[str]
    region: Optional[str]
    country: Optional[str]
    source: str
    source_record_id: str
    lat: float
    long: float
    h3_15: str
    easting: float
    northing: float
    lsoa21cd: str


# ── Abstract interface ───────────────────────────────────────────────

class PoiDB(ABC):
    """Read-only spatial query interface for POIs."""

    @abstractmethod
    def query_bbox(
        self,
        min_lng: float,
        max_lng: float,
        min_lat: float,
        max_lat: float,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[PoiRow]:
        """Rows with min_lat <= lat <= max_lat and min_lng <= long <= max_lng."""
        ...

    @abstractmethod
    def category_rows(self) -> Iterator[Tuple[Optional[str], Optional[str]]]:
        """(main_category, alternate_category) for every row."""
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def last_updated(self) -> str:
        ...

    @abstractmethod
    def ping(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...


# ── SQLite backend ───────────────────────────────────────────────────

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Column order must match _tuple_to_row indices
_SELECT_COLS = """
    fid, geom, id, primary_name, main_category, alternate_category,
    address, locality, postcode, region, country, source, source_record_id,
    lat, long, h3_15, easting, northing, lsoa21cd
"""

_REQUIRED_TEXT = {2: "id", 11: "source", 12: "source_record_id", 15: "h3_15", 18: "lsoa21cd"}
_REQUIRED_REAL = {13: "lat", 14: "long", 16: "easting", 17: "northing"}

# SQLite VM instructions between cancellation checks.
_PROGRESS_STEPS = 1000
_FETCH_BATCH = 500


class PoiDBSqlite(PoiDB):
    """
    Queries a GeoPackage file opened read-only.

    Each worker thread gets its own connection so concurrent requests
    never share a cursor. Cancellation is wired through SQLite's progress
    handler, which aborts the running statement once the event is set.
    """

    def __init__(self, db_path: str, *, table: str = "poi_uk"):
        if not _IDENT_RE.fullmatch(table):
            raise ValueError(f"invalid table name: {table!r}")

        self._path = db_path
        self._table = table
        self._local = threading.local()
        self._lock = threading.Lock()
        self._conns: List[sqlite3.Connection] = []

        self.ping()
        logger.info("[poi_db] SQLite opened: %s (table=%s)", db_path, table)

    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            try:
                conn = sqlite3.connect(
                    f"file:{self._path}?mode=ro",
                    uri=True,
                    check_same_thread=False,
                )
                conn.execute("PRAGMA query_only=ON;")
            except sqlite3.Error as e:
                raise DataSourceError(f"failed to open database {self._path}: {e}") from e
            self._local.conn = conn
            with self._lock:
                self._conns.append(conn)
        return conn

    def query_bbox(
        self,
        min_lng: float,
        max_lng: float,
        min_lat: float,
        max_lat: float,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[PoiRow]:
        sql = f"""
            SELECT {_SELECT_COLS}
            FROM {self._table}
            WHERE lat BETWEEN ? AND ?
              AND long BETWEEN ? AND ?
        """
        params = (min_lat, max_lat, min_lng, max_lng)

        if cancel is not None and cancel.is_set():
            raise SearchCancelled("cancelled before query")

        conn = self._conn()
        if cancel is not None:
            conn.set_progress_handler(lambda: 1 if cancel.is_set() else 0, _PROGRESS_STEPS)
        try:
            cur = conn.execute(sql, params)
            while True:
                batch = cur.fetchmany(_FETCH_BATCH)
                if not batch:
                    break
                for r in batch:
                    yield self._tuple_to_row(r)
            cur.close()
        except sqlite3.Error as e:
            if cancel is not None and cancel.is_set():
                raise SearchCancelled("query interrupted") from e
            raise DataSourceError(f"error querying database: {e}") from e
        finally:
            if cancel is not None:
                conn.set_progress_handler(None, 0)

    def category_rows(self) -> Iterator[Tuple[Optional[str], Optional[str]]]:
        try:
            cur = self._conn().execute(
                f"SELECT main_category, alternate_category FROM {self._table}"
            )
            while True:
                batch = cur.fetchmany(_FETCH_BATCH)
                if not batch:
                    break
                for main, alternate in batch:
                    yield main, alternate
            cur.close()
        except sqlite3.Error as e:
            raise DataSourceError(f"error querying database: {e}") from e

    def count(self) -> int:
        try:
            cur = self._conn().execute(f"SELECT COUNT(*) FROM {self._table}")
            return int(cur.fetchone()[0])
        except sqlite3.Error as e:
            raise DataSourceError(f"error counting rows: {e}") from e

    def last_updated(self) -> str:
        try:
            cur = self._conn().execute(
                "SELECT last_change FROM gpkg_contents WHERE table_name = ?",
                (self._table,),
            )
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise DataSourceError(f"error retrieving timestamp: {e}") from e

        if not row or not row[0]:
            return "unknown"
        return str(row[0])

    def ping(self) -> None:
        try:
            self._conn().execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            raise DataSourceError(f"failed to connect to database: {e}") from e

    def close(self) -> None:
        with self._lock:
            conns, self._conns = self._conns, []
            self._local = threading.local()
        for conn in conns:
            try:
                conn.close()
            except sqlite3.Error as e:
                logger.warning("[poi_db] error closing connection: %s", e)

    @staticmethod
    def _tuple_to_row(row: tuple) -> PoiRow:
        for idx, col in {**_REQUIRED_TEXT, **_REQUIRED_REAL}.items():
            if row[idx] is None:
                raise DataSourceError(f"error scanning row fid={row[0]}: column {col} is NULL")
        try:
            return PoiRow(
                fid=int(row[0]),
                geom=bytes(row[1] or b""),
                id=str(row[2]),
                primary_name=row[3],
                main_category=row[4],
                alternate_category=row[5],
                address=row[6],
                locality=row[7],
                postcode=row[8],
                region=row[9],
                country=row[10],
                source=str(row[11]),
                source_record_id=str(row[12]),
                lat=float(row[13]),
                long=float(row[14]),
                h3_15=str(row[15]),
                easting=float(row[16]),
                northing=float(row[17]),
                lsoa21cd=str(row[18]),
            )
        except (TypeError, ValueError) as e:
            raise DataSourceError(f"error scanning row fid={row[0]}: {e}") from e


# ── Factory ──────────────────────────────────────────────────────────

def create_poi_db(db_path: str, *, table: str = "poi_uk") -> PoiDB:
    """
    Open the POI GeoPackage at `db_path`.

    Unlike sqlite3.connect, a missing file is an error rather than a
    silently created empty database.
    """
    if not os.path.isfile(db_path):
        raise FileNotFoundError(f"[poi_db] database file does not exist: {db_path}")

    logger.info("[poi_db] Using SQLite backend: %s", db_path)
    return PoiDBSqlite(db_path, table=table)
