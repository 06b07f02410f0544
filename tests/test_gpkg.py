from __future__ import annotations

import logging

import pytest
from shapely.geometry import LineString, Point, Polygon

from geods_poi.core.errors import DecodeError
from geods_poi.core.gpkg import GeoPoint, decode_point, wkb_point_to_wkt

from conftest import gpkg_blob, gpkg_header, point_blob


def test_decodes_point_lon_first():
    assert wkb_point_to_wkt(point_blob(-0.12, 51.5)) == "POINT(-0.12 51.5)"


def test_integral_coordinates_have_no_decimal_suffix():
    assert wkb_point_to_wkt(point_blob(1, 2)) == "POINT(1 2)"


@pytest.mark.parametrize(
    "lon, lat, wkt",
    [
        (-0.00005, 51.4779, "POINT(-0.00005 51.4779)"),
        (1e-7, 0.0, "POINT(0.0000001 0)"),
        (1e16, -2.5, "POINT(10000000000000000 -2.5)"),
    ],
)
def test_coordinates_are_never_in_exponent_notation(lon, lat, wkt):
    assert wkb_point_to_wkt(point_blob(lon, lat)) == wkt


def test_decode_point_returns_exact_coordinates():
    assert decode_point(point_blob(-3.1883, 55.9533)) == GeoPoint(lon=-3.1883, lat=55.9533)


def test_big_endian_wkb_payload():
    import shapely

    blob = gpkg_header() + shapely.to_wkb(Point(4.5, -7.25), byte_order=0)
    assert wkb_point_to_wkt(blob) == "POINT(4.5 -7.25)"


@pytest.mark.parametrize("blob", [b"", b"GP", b"GP\x00\x01\x00\x00\x00", None])
def test_too_short_blob(blob):
    with pytest.raises(DecodeError, match="too short"):
        decode_point(blob)


def test_header_only_blob_fails_to_parse():
    with pytest.raises(DecodeError, match="error unmarshaling WKB"):
        decode_point(gpkg_header())


def test_garbage_payload_fails_to_parse():
    with pytest.raises(DecodeError, match="error unmarshaling WKB"):
        decode_point(gpkg_header() + b"\x01\xff\xff\xff\x7f\x00")


def test_truncated_point_payload_fails_to_parse():
    blob = point_blob(1.0, 2.0)
    with pytest.raises(DecodeError):
        decode_point(blob[:-4])


@pytest.mark.parametrize(
    "geom,kind",
    [
        (LineString([(0, 0), (1, 1)]), "LineString"),
        (Polygon([(0, 0), (1, 0), (1, 1), (0, 0)]), "Polygon"),
    ],
)
def test_non_point_geometry_names_the_kind(geom, kind):
    with pytest.raises(DecodeError, match=f"not a Point, but a {kind}"):
        decode_point(gpkg_blob(geom))


# ── Header modes ─────────────────────────────────────────────────────

def _enveloped_blob(lon: float, lat: float) -> bytes:
    # indicator 1 → 32-byte [minx, maxx, miny, maxy] envelope
    import struct

    envelope = struct.pack("<4d", lon, lon, lat, lat)
    return gpkg_blob(Point(lon, lat), flags=0x01 | (1 << 1), envelope=envelope)


def test_envelope_mode_skips_envelope():
    assert wkb_point_to_wkt(_enveloped_blob(-1.5, 53.8), header_mode="envelope") == "POINT(-1.5 53.8)"


def test_envelope_mode_without_envelope_matches_fixed_mode():
    blob = point_blob(0.25, 50.0)
    assert wkb_point_to_wkt(blob, header_mode="envelope") == wkb_point_to_wkt(blob)


def test_fixed_mode_warns_when_header_announces_envelope(caplog):
    with caplog.at_level(logging.WARNING, logger="geods_poi.core.gpkg"):
        with pytest.raises(DecodeError):
            decode_point(_enveloped_blob(-1.5, 53.8))
    assert "envelope indicator 1" in caplog.text


def test_envelope_mode_rejects_bad_magic():
    blob = b"XX" + point_blob(1, 2)[2:]
    with pytest.raises(DecodeError, match="magic"):
        decode_point(blob, header_mode="envelope")


def test_envelope_mode_rejects_invalid_indicator():
    blob = gpkg_blob(Point(1, 2), flags=0x01 | (5 << 1))
    with pytest.raises(DecodeError, match="envelope indicator 5"):
        decode_point(blob, header_mode="envelope")


def test_envelope_mode_rejects_truncated_envelope():
    blob = gpkg_header(flags=0x01 | (4 << 1)) + b"\x00" * 10
    with pytest.raises(DecodeError, match="too short"):
        decode_point(blob, header_mode="envelope")
