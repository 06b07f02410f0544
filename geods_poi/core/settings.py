from __future__ import annotations

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ATTRIBUTION = [
    "Contains GeoDS Points of Interest data, derived from Overture Maps Foundation (CDLA-Permissive-2.0)",
    "Contains OS data © Crown copyright and database right",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Paths
    db_path: str = Field(default="./data/poi_uk.gpkg", alias="POI_DB_PATH")
    poi_table: str = Field(default="poi_uk", alias="POI_TABLE")
    markers_dir: str = Field(default="./data/markers", alias="MARKERS_DIR")
    markers_mapping: str = Field(default="./data/markers/_mappings.json", alias="MARKERS_MAPPING")

    # Server
    port: int = Field(default=8080, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")

    # GeoPackage geometry header handling.
    #   fixed    : always skip 8 header bytes (blobs carry no envelope)
    #   envelope : honour the flags byte and skip the envelope too
    gpkg_header_mode: Literal["fixed", "envelope"] = Field(default="fixed", alias="GPKG_HEADER_MODE")

    # Stored tags keep their original case; filter tokens are lower-cased.
    # When False, tags are lower-cased for comparison only.
    category_match_case_sensitive: bool = Field(default=False, alias="CATEGORY_MATCH_CASE_SENSITIVE")

    # Search
    search_timeout_s: float = Field(default=30.0, alias="SEARCH_TIMEOUT_S")

    # Reference data
    attribution: List[str] = Field(default_factory=lambda: list(DEFAULT_ATTRIBUTION), alias="POI_ATTRIBUTION")


settings = Settings()
