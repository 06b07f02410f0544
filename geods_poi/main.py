# geods_poi/main.py
from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.gzip import GZipMiddleware

# Load <repo>/.env (main.py is <repo>/geods_poi/main.py)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from geods_poi.core.settings import settings
from geods_poi.core.contracts import RefDataResponse
from geods_poi.core.poi_db import PoiDB, create_poi_db
from geods_poi.api import api_router

from geods_poi.services.markers import MarkerIcons
from geods_poi.services.refdata import RefData
from geods_poi.services.search import PoiSearch

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(poi_db: PoiDB | None = None) -> FastAPI:
    """
    Build the API around a row source.

    With no `poi_db`, the GeoPackage at POI_DB_PATH is opened. Reference
    data is computed here, so a broken database fails startup rather than
    the first request.
    """
    # ──────────────────────────────────────────────────────────────
    # DB connection + startup data
    # ──────────────────────────────────────────────────────────────

    db = poi_db if poi_db is not None else create_poi_db(settings.db_path, table=settings.poi_table)

    ref_data = RefData(db=db, attribution=settings.attribution).build()

    search_svc = PoiSearch(
        db=db,
        header_mode=settings.gpkg_header_mode,
        case_sensitive=settings.category_match_case_sensitive,
    )
    marker_icons = MarkerIcons(
        markers_dir=settings.markers_dir,
        mapping_path=settings.markers_mapping,
    )

    app = FastAPI(title="GeoDS POI API", version="1.0.0")

    # ── Compression (must be added before CORS) ──
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Metrics (/healthz is not instrumented) ──
    Instrumentator(
        excluded_handlers=["/healthz", "/metrics"],
        registry=CollectorRegistry(),
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # ──────────────────────────────────────────────────────────────
    # Dependency providers
    # ──────────────────────────────────────────────────────────────

    def provide_poi_db() -> PoiDB:
        return db

    def provide_search_service() -> PoiSearch:
        return search_svc

    def provide_ref_data() -> RefDataResponse:
        return ref_data

    def provide_marker_icons() -> MarkerIcons:
        return marker_icons

    # ──────────────────────────────────────────────────────────────
    # Dependency overrides
    # ──────────────────────────────────────────────────────────────

    from geods_poi.api import health as health_api
    from geods_poi.api import markers as markers_api
    from geods_poi.api import refdata as refdata_api
    from geods_poi.api import search as search_api

    app.dependency_overrides[health_api.get_poi_db] = provide_poi_db
    app.dependency_overrides[search_api.get_search_service] = provide_search_service
    app.dependency_overrides[refdata_api.get_ref_data] = provide_ref_data
    app.dependency_overrides[markers_api.get_marker_icons] = provide_marker_icons

    # Routes
    app.include_router(api_router)

    # ──────────────────────────────────────────────────────────────
    # Shutdown
    # ──────────────────────────────────────────────────────────────

    @app.on_event("shutdown")
    def shutdown():
        logger.info("[app] Shutting down, closing connections")
        db.close()

    return app


def app_factory() -> FastAPI:
    """Entry point for `uvicorn --factory geods_poi.main:app_factory`."""
    configure_logging()
    return create_app()
