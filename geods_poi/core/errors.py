from __future__ import annotations

from fastapi import HTTPException


INTERNAL_ERROR_MESSAGE = "An internal server error occurred"


class PoiError(Exception):
    """Base class for errors raised by the POI search core."""


class ValidationError(PoiError):
    """Malformed request parameter (bbox shape/value, category token)."""


class DecodeError(PoiError):
    """Stored geometry blob is short, unparseable, or not a point."""


class DataSourceError(PoiError):
    """Row retrieval or scan failure in the row source."""


class SearchCancelled(PoiError):
    """The search was cancelled before all rows were processed."""


def bad_request(code: str, message: str):
    raise HTTPException(status_code=400, detail={"code": code, "message": message})


def not_found(code: str, message: str):
    raise HTTPException(status_code=404, detail={"code": code, "message": message})


def internal_error(code: str = "internal_error"):
    # Never echo the underlying cause back to the caller.
    raise HTTPException(status_code=500, detail={"code": code, "message": INTERNAL_ERROR_MESSAGE})


def service_unavailable(code: str, message: str):
    raise HTTPException(status_code=503, detail={"code": code, "message": message})
