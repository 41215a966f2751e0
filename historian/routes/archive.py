from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..config import Settings, get_settings
from ..models import OverviewResponse, RollingSummaryResponse, StatusResponse
from ..services import OverviewGenerator, RollingSummary, collect_status

router = APIRouter(tags=["archive"])


@router.get("/status", response_model=StatusResponse)
# Report archive size, summary cursor and pending work
def archive_status(settings: Settings = Depends(get_settings)) -> StatusResponse:
    return collect_status(settings)


@router.get("/summary/rolling", response_model=RollingSummaryResponse)
def rolling_summary(
    tail: int = Query(default=5, ge=1, le=500),
    settings: Settings = Depends(get_settings),
) -> RollingSummaryResponse:
    document = RollingSummary(settings.resolved_rolling_summary_path)
    return RollingSummaryResponse(path=str(document.path), entries=document.tail(tail))


@router.get("/summary/overview", response_model=OverviewResponse)
def overview(settings: Settings = Depends(get_settings)) -> OverviewResponse:
    generator = OverviewGenerator.from_settings(settings)
    try:
        content = generator.output_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Overview not generated yet")
    return OverviewResponse(path=str(generator.output_path), age_days=generator.age_days(), content=content)


__all__ = ["router"]
