from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from geods_poi.core.contracts import HealthResponse
from geods_poi.core.errors import DataSourceError, service_unavailable
from geods_poi.core.poi_db import PoiDB

logger = logging.getLogger(__name__)

router = APIRouter()


def get_poi_db() -> PoiDB:
    raise RuntimeError("PoiDB must be provided by app dependency override")


@router.get("/healthz", response_model=HealthResponse)
def healthz(db: PoiDB = Depends(get_poi_db)) -> HealthResponse:
    try:
        db.ping()
    except DataSourceError as e:
        logger.error("[health] database check failed: %s", e)
        service_unavailable("db_unavailable", "database check failed")
    return HealthResponse()
