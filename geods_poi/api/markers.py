from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from geods_poi.core.errors import not_found
from geods_poi.services.markers import MarkerIcons

router = APIRouter(prefix="/marker")

# Icons never change for a given filename.
_CACHE_FOREVER = {"Cache-Control": "public, max-age=31536000, immutable"}


def get_marker_icons() -> MarkerIcons:
    raise RuntimeError("MarkerIcons must be provided by app dependency override")


@router.get("/shadow")
def get_shadow(icons: MarkerIcons = Depends(get_marker_icons)):
    path = icons.shadow_path()
    if not path.exists():
        not_found("marker_missing", "missing marker shadow")
    return FileResponse(str(path), media_type="image/png", headers=_CACHE_FOREVER)


@router.get("/{category}")
def get_marker(category: str, icons: MarkerIcons = Depends(get_marker_icons)):
    icon = icons.icon_for(category)
    if not icon:
        not_found("category_not_found", "category not found")

    path = icons.path_for(icon)
    if path is None or not path.exists():
        not_found("marker_missing", f"missing marker for category: {category}")

    return FileResponse(str(path), media_type="image/png", headers=_CACHE_FOREVER)
