#!/usr/bin/env python3
"""
geods_poi/__main__.py

Run the GeoDS POI API server.

  python -m geods_poi --db ./data/poi_uk.gpkg --port 8080

Flags override POI_DB_PATH / PORT from the environment (or .env).
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from geods_poi.core.errors import DataSourceError
from geods_poi.core.poi_db import create_poi_db
from geods_poi.core.settings import settings
from geods_poi.main import configure_logging, create_app

logger = logging.getLogger("geods_poi")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="geods-poi", description="GeoDS-POI API server")
    ap.add_argument("--db", default=settings.db_path, help="Path to GeoPackage SQLite database")
    ap.add_argument("--port", type=int, default=settings.port, help="Port to run HTTP server on")
    ap.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    args = ap.parse_args(argv)

    configure_logging()

    try:
        app = create_app(create_poi_db(args.db, table=settings.poi_table))
    except (FileNotFoundError, DataSourceError) as e:
        logger.error("%s", e)
        return 1

    logger.info("[app] Starting HTTP API Server on port %d...", args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
