from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..config import APP_NAME, APP_VERSION, Settings, get_settings
from ..models import HealthResponse, MetaResponse

router = APIRouter(tags=["meta"])


@router.get("/health", response_model=HealthResponse)
# Liveness probe; also reports whether capture has produced an archive yet
def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        ok=True,
        service=APP_NAME,
        version=APP_VERSION,
        archive_present=settings.raw_history_path.is_file(),
        llm_summarization=settings.llm_summarization,
    )


@router.get("/meta", response_model=MetaResponse)
def meta(request: Request, settings: Settings = Depends(get_settings)) -> MetaResponse:
    endpoints = sorted(
        route.path
        for route in request.app.routes
        if getattr(route, "include_in_schema", False) and route.path.startswith("/api/")
    )
    return MetaResponse(
        service=APP_NAME,
        version=APP_VERSION,
        config_path=str(settings.config_path),
        endpoints=endpoints,
    )
