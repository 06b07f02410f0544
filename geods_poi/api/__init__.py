from __future__ import annotations

from fastapi import APIRouter

from .health import router as health_router
from .search import router as search_router
from .refdata import router as refdata_router
from .markers import router as markers_router

API_PREFIX = "/v1/geods-poi"

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(refdata_router, prefix=API_PREFIX)
api_router.include_router(search_router, prefix=API_PREFIX)
api_router.include_router(markers_router, prefix=API_PREFIX)
