"""Health probe endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_settings
from src.config import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)) -> dict:
    return {"status": "healthy", "openalex": settings.OPENALEX_BASE_URL}
