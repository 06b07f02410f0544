from __future__ import annotations

from fastapi import APIRouter, Depends

from geods_poi.core.contracts import RefDataResponse

router = APIRouter()


def get_ref_data() -> RefDataResponse:
    raise RuntimeError("RefDataResponse must be provided by app dependency override")


@router.get("/ref-data", response_model=RefDataResponse)
def ref_data(summary: RefDataResponse = Depends(get_ref_data)) -> RefDataResponse:
    return summary
