from __future__ import annotations

import sqlite3
import struct
from dataclasses import replace
from typing import Iterator, List, Optional, Tuple

import pytest
import shapely
from fastapi.testclient import TestClient
from shapely.geometry import Point

from geods_poi.core.poi_db import PoiDB, PoiDBSqlite, PoiRow


# ──────────────────────────────────────────────────────────────
# Blob builders
# ──────────────────────────────────────────────────────────────

def gpkg_header(flags: int = 0x01, srs_id: int = 4326) -> bytes:
    return b"GP" + bytes([0, flags]) + struct.pack("<i", srs_id)


def gpkg_blob(geom, *, flags: int = 0x01, envelope: bytes = b"") -> bytes:
    return gpkg_header(flags) + envelope + shapely.to_wkb(geom, byte_order=1)


def point_blob(lon: float, lat: float) -> bytes:
    return gpkg_blob(Point(lon, lat))


# ──────────────────────────────────────────────────────────────
# Rows
# ──────────────────────────────────────────────────────────────

def make_row(
    fid: int,
    lon: float,
    lat: float,
    *,
    main: Optional[str] = None,
    alternate: Optional[str] = None,
    geom: Optional[bytes] = None,
    **extra,
) -> PoiRow:
    row = PoiRow(
        fid=fid,
        geom=geom if geom is not None else point_blob(lon, lat),
        id=f"poi-{fid}",
        primary_name=f"Place {fid}",
        main_category=main,
        alternate_category=alternate,
        address=None,
        locality="London",
        postcode=None,
        region=None,
        country="GB",
        source="overture",
        source_record_id=f"rec-{fid}",
        lat=lat,
        long=lon,
        h3_15="8f195da49a4a5a4",
        easting=530000.0,
        northing=180000.0,
        lsoa21cd="E01000001",
    )
    return replace(row, **extra) if extra else row


class FakePoiDB(PoiDB):
    """In-memory row source applying the same inclusive range predicate."""

    def __init__(self, rows: List[PoiRow]):
        self.rows = list(rows)
        self.queries: List[Tuple[float, float, float, float]] = []
        self.fail_with: Optional[Exception] = None
        self.closed = False

    def query_bbox(self, min_lng, max_lng, min_lat, max_lat, cancel=None) -> Iterator[PoiRow]:
        self.queries.append((min_lng, max_lng, min_lat, max_lat))
        if self.fail_with is not None:
            raise self.fail_with
        for r in self.rows:
            if min_lat <= r.lat <= max_lat and min_lng <= r.long <= max_lng:
                yield r

    def category_rows(self):
        for r in self.rows:
            yield r.main_category, r.alternate_category

    def count(self) -> int:
        return len(self.rows)

    def last_updated(self) -> str:
        return "2025-01-01T00:00:00Z"

    def ping(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def close(self) -> None:
        self.closed = True


# ──────────────────────────────────────────────────────────────
# GeoPackage file
# ──────────────────────────────────────────────────────────────

_POI_SCHEMA = """
CREATE TABLE poi_uk (
  fid INTEGER PRIMARY KEY,
  geom BLOB,
  id TEXT,
  primary_name TEXT,
  main_category TEXT,
  alternate_category TEXT,
  address TEXT,
  locality TEXT,
  postcode TEXT,
  region TEXT,
  country TEXT,
  source TEXT,
  source_record_id TEXT,
  lat REAL,
  long REAL,
  h3_15 TEXT,
  easting REAL,
  northing REAL,
  lsoa21cd TEXT
);

CREATE TABLE gpkg_contents (
  table_name TEXT PRIMARY KEY,
  data_type TEXT,
  last_change TEXT
);
"""


def write_gpkg(path, rows: List[PoiRow], *, last_change: Optional[str] = "2025-06-01T12:00:00.000Z") -> str:
    conn = sqlite3.connect(str(path))
    conn.executescript(_POI_SCHEMA)
    conn.executemany(
        "INSERT INTO poi_uk VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (
                r.fid, r.geom, r.id, r.primary_name, r.main_category, r.alternate_category,
                r.address, r.locality, r.postcode, r.region, r.country, r.source,
                r.source_record_id, r.lat, r.long, r.h3_15, r.easting, r.northing, r.lsoa21cd,
            )
            for r in rows
        ],
    )
    conn.execute(
        "INSERT INTO gpkg_contents (table_name, data_type, last_change) VALUES ('poi_uk', 'features', ?)",
        (last_change,),
    )
    conn.commit()
    conn.close()
    return str(path)


@pytest.fixture
def sample_rows() -> List[PoiRow]:
    return [
        make_row(1, -0.12, 51.5, main="Cafe", alternate="Bakery"),
        make_row(2, -0.10, 51.51, main="zoo", alternate=None),
        make_row(3, 2.35, 48.85, main="museum", alternate="art_gallery|landmark"),
        make_row(4, 0.5, 51.9, main=None, alternate=" park | playground "),
    ]


@pytest.fixture
def gpkg_path(tmp_path, sample_rows) -> str:
    return write_gpkg(tmp_path / "poi_uk.gpkg", sample_rows)


@pytest.fixture
def sqlite_db(gpkg_path):
    db = PoiDBSqlite(gpkg_path)
    yield db
    db.close()


@pytest.fixture
def client(sqlite_db):
    from geods_poi.main import create_app

    app = create_app(sqlite_db)
    return TestClient(app)
