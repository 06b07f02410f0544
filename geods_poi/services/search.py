from __future__ import annotations

import logging
import threading
from typing import List, Optional

from geods_poi.core.bbox import Rectangle
from geods_poi.core.categories import CategoryFilter, build_categories
from geods_poi.core.contracts import PoiItem
from geods_poi.core.errors import DecodeError, SearchCancelled
from geods_poi.core.gpkg import HeaderMode, wkb_point_to_wkt
from geods_poi.core.poi_db import PoiDB, PoiRow

logger = logging.getLogger(__name__)


def _to_item(row: PoiRow, geom: str, categories: List[str]) -> PoiItem:
    return PoiItem(
        fid=row.fid,
        geom=geom,
        id=row.id,
        primary_name=row.primary_name,
        categories=categories,
        address=row.address,
        locality=row.locality,
        postcode=row.postcode,
        region=row.region,
        country=row.country,
        source=row.source,
        source_record_id=row.source_record_id,
        lat=row.lat,
        long=row.long,
        h3_15=row.h3_15,
        easting=row.easting,
        northing=row.northing,
        lsoa21cd=row.lsoa21cd,
    )


class PoiSearch:
    """
    Bounding-box POI search over an injected row source.

    Pipeline per request:
      1) one lat/long range query pushed down to the row source
      2) per row, in row-source order: decode geometry, build tags
      3) keep rows whose tags meet the category filter

    Batch contract: the first undecodable row aborts the whole search
    (DecodeError propagates, nothing partial is returned). Row-source
    failures surface as DataSourceError.
    """

    def __init__(
        self,
        *,
        db: PoiDB,
        header_mode: HeaderMode = "fixed",
        case_sensitive: bool = False,
    ):
        self.db = db
        self.header_mode = header_mode
        self.case_sensitive = case_sensitive

    def search(
        self,
        *,
        bbox: Rectangle,
        categories: CategoryFilter,
        cancel: Optional[threading.Event] = None,
    ) -> List[PoiItem]:
        rows = self.db.query_bbox(
            min_lng=bbox.left,
            max_lng=bbox.right,
            min_lat=bbox.bottom,
            max_lat=bbox.top,
            cancel=cancel,
        )

        results: List[PoiItem] = []
        scanned = 0
        try:
            for row in rows:
                if cancel is not None and cancel.is_set():
                    raise SearchCancelled(f"search cancelled after {scanned} rows")
                scanned += 1

                try:
                    geom = wkb_point_to_wkt(row.geom, header_mode=self.header_mode)
                except DecodeError as e:
                    raise DecodeError(f"row fid={row.fid}: {e}") from e

                tags = build_categories(row.main_category, row.alternate_category)
                if categories.matches(tags, case_sensitive=self.case_sensitive):
                    results.append(_to_item(row, geom, tags))
        finally:
            # Generators release their cursor on close(); plain iterators have nothing to release.
            close = getattr(rows, "close", None)
            if close is not None:
                close()

        logger.debug(
            "[search] bbox=%s scanned=%d matched=%d",
            (bbox.left, bbox.bottom, bbox.right, bbox.top),
            scanned,
            len(results),
        )
        return results
