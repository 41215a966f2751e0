from __future__ import annotations

from fastapi import APIRouter

from .archive import router as archive_router
from .meta import router as meta_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(meta_router)
api_router.include_router(archive_router)

__all__ = ["api_router"]
