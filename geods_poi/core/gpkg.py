"""
geods_poi/core/gpkg.py

Decode GeoPackage geometry blobs holding a single point.

Blob layout (GeoPackage 1.x, "GP" binary header):

  offset  size  field
  0       2     magic "GP"
  2       1     version
  3       1     flags   bit 0   header byte order (1 = little endian)
                        bits 1-3 envelope indicator (0 = none)
                        bit 4   empty geometry
  4       4     srs_id
  8       n     envelope (n = 0/32/48/48/64 bytes for indicators 0-4)
  8+n     ...   standard WKB geometry

The POI dataset is written without envelopes, so the default header mode
skips exactly 8 bytes. HeaderMode "envelope" follows the flags byte instead.
The WKB payload is parsed by GEOS (via shapely), which bounds-checks every
read against the buffer length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

import shapely
from shapely.errors import ShapelyError

from geods_poi.core.errors import DecodeError

logger = logging.getLogger(__name__)

HeaderMode = Literal["fixed", "envelope"]

HEADER_SIZE = 8
MAGIC = b"GP"
FLAGS_OFFSET = 3

# Envelope indicator → envelope byte length.
_ENVELOPE_SIZES = {0: 0, 1: 32, 2: 48, 3: 48, 4: 64}


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lon: float
    lat: float

    @property
    def wkt(self) -> str:
        return f"POINT({_fmt_coord(self.lon)} {_fmt_coord(self.lat)})"


def _fmt_coord(v: float) -> str:
    # Shortest round-trip digits, always positional; integral values drop the ".0".
    s = format(Decimal(repr(float(v))), "f")
    return s[:-2] if s.endswith(".0") else s


def _envelope_indicator(blob: bytes) -> int:
    return (blob[FLAGS_OFFSET] >> 1) & 0x07


def _payload_offset(blob: bytes, header_mode: HeaderMode) -> int:
    if header_mode == "fixed":
        if blob[:2] == MAGIC and _envelope_indicator(blob) != 0:
            # Header says an envelope follows; the fixed skip will land inside it.
            logger.warning(
                "[gpkg] blob announces envelope indicator %d but header mode is 'fixed'",
                _envelope_indicator(blob),
            )
        return HEADER_SIZE

    if blob[:2] != MAGIC:
        raise DecodeError(f"invalid GeoPackage header magic {blob[:2]!r}")

    indicator = _envelope_indicator(blob)
    size = _ENVELOPE_SIZES.get(indicator)
    if size is None:
        raise DecodeError(f"invalid GeoPackage envelope indicator {indicator}")

    offset = HEADER_SIZE + size
    if len(blob) < offset:
        raise DecodeError(
            f"input is too short to contain a {size}-byte GeoPackage envelope"
        )
    return offset


def decode_point(blob: bytes | None, *, header_mode: HeaderMode = "fixed") -> GeoPoint:
    """
    Decode a GeoPackage point blob into its (lon, lat) coordinates.

    Raises DecodeError if the blob is too short, the WKB payload cannot be
    parsed, or the geometry is anything other than a non-empty Point.
    """
    blob = bytes(blob or b"")
    if len(blob) < HEADER_SIZE:
        raise DecodeError("input is too short to contain a GeoPackage header and WKB data")

    wkb_data = blob[_payload_offset(blob, header_mode):]

    try:
        geom = shapely.from_wkb(wkb_data)
    except (ShapelyError, ValueError, TypeError) as e:
        raise DecodeError(f"error unmarshaling WKB: {e}") from e

    if geom is None:
        raise DecodeError("error unmarshaling WKB: empty payload")

    if geom.geom_type != "Point":
        raise DecodeError(f"decoded geometry is not a Point, but a {geom.geom_type}")

    if geom.is_empty:
        raise DecodeError("decoded Point is empty")

    return GeoPoint(lon=float(geom.x), lat=float(geom.y))


def wkb_point_to_wkt(blob: bytes | None, *, header_mode: HeaderMode = "fixed") -> str:
    """
    Decode a GeoPackage point blob to "POINT(<lon> <lat>)".
    """
    return decode_point(blob, header_mode=header_mode).wkt
