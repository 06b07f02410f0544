from __future__ import annotations

import logging
import threading

from fastapi import APIRouter, Depends, Query

from geods_poi.core.bbox import parse_bbox
from geods_poi.core.categories import parse_categories
from geods_poi.core.contracts import SearchResponse
from geods_poi.core.errors import (
    DataSourceError,
    DecodeError,
    SearchCancelled,
    ValidationError,
    bad_request,
    internal_error,
    service_unavailable,
)
from geods_poi.core.settings import settings
from geods_poi.services.search import PoiSearch

logger = logging.getLogger(__name__)

router = APIRouter()


def get_search_service() -> PoiSearch:
    raise RuntimeError("PoiSearch must be provided by app dependency override")


# ──────────────────────────────────────────────────────────────
# /search
# ──────────────────────────────────────────────────────────────

@router.get("/search", response_model=SearchResponse, response_model_exclude_none=True)
def search(
    bbox: str = Query(default="", description="left,bottom,right,top (lon/lat)"),
    categories: str = Query(default="", description="comma-separated category names"),
    svc: PoiSearch = Depends(get_search_service),
) -> SearchResponse:
    # Both parameters are validated before any rows are read.
    try:
        rect = parse_bbox(bbox)
    except ValidationError as e:
        bad_request("bad_bbox", str(e))

    try:
        wanted = parse_categories(categories)
    except ValidationError as e:
        bad_request("bad_categories", str(e))

    # Deadline: the timer sets the cancel event, which interrupts the
    # running query and stops row processing.
    cancel = threading.Event()
    timer = threading.Timer(settings.search_timeout_s, cancel.set)
    timer.daemon = True
    timer.start()
    try:
        results = svc.search(bbox=rect, categories=wanted, cancel=cancel)
    except SearchCancelled as e:
        logger.warning("[search] cancelled bbox=%s categories=%s: %s", bbox, categories, e)
        service_unavailable("search_timeout", "search did not complete in time")
    except DecodeError:
        logger.exception("[search] error converting WKB to WKT bbox=%s", bbox)
        internal_error()
    except DataSourceError:
        logger.exception("[search] error querying database bbox=%s", bbox)
        internal_error()
    finally:
        timer.cancel()

    return SearchResponse(results=results)
