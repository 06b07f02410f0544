from __future__ import annotations

import logging
from collections import Counter
from typing import List, Sequence

from geods_poi.core.categories import build_categories
from geods_poi.core.contracts import RefDataResponse
from geods_poi.core.poi_db import PoiDB

logger = logging.getLogger(__name__)


class RefData:
    """
    Dataset summary served by /ref-data.

    Built once at startup by scanning every row's category fields; the
    dataset is read-only so the summary never goes stale while the
    process runs.
    """

    def __init__(self, *, db: PoiDB, attribution: Sequence[str]):
        self.db = db
        self.attribution: List[str] = list(attribution)

    def build(self) -> RefDataResponse:
        logger.info("[refdata] Pre-computing POI categories...")

        counts: Counter[str] = Counter()
        rows = 0
        for main, alternate in self.db.category_rows():
            counts.update(build_categories(main, alternate))
            rows += 1

        logger.info(
            "[refdata] Discovered %d distinct categories from %d points of interest",
            len(counts),
            rows,
        )

        last_updated = self.db.last_updated()
        logger.info("[refdata] Last updated timestamp in db: %s", last_updated)

        return RefDataResponse(
            count=rows,
            last_updated=last_updated,
            categories=dict(counts),
            attribution=self.attribution,
        )
