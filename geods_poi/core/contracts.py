from __future__ import annotations

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field


# ──────────────────────────────────────────────────────────────
# Search
# ──────────────────────────────────────────────────────────────

class PoiItem(BaseModel):
    fid: int
    geom: str                       # "POINT(lon lat)"
    id: str
    primary_name: Optional[str] = None
    categories: List[str] = Field(default_factory=list)  # primary first, then alternates
    address: Optional[str] = None
    locality: Optional[str] = None
    postcode: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    source: str
    source_record_id: str
    lat: float
    long: float
    h3_15: str                      # H3 cell at resolution 15
    easting: float                  # British National Grid
    northing: float
    lsoa21cd: str                   # 2021 LSOA code


class SearchResponse(BaseModel):
    results: List[PoiItem] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────────
# Reference data
# ──────────────────────────────────────────────────────────────

class RefDataResponse(BaseModel):
    count: int
    last_updated: str
    categories: Dict[str, int] = Field(default_factory=dict)
    attribution: List[str] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────────
# Health
# ──────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
