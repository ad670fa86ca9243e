"""Single-funder detail endpoints backing the side panel."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import get_app_settings, get_openalex, get_panel_service
from src.api.v1.schemas.funders import (
    FunderCountriesResponse,
    FunderTopicsResponse,
    PanelRequest,
)
from src.config import Settings, calculate_from_year
from src.services.openalex_service import OpenAlexService
from src.services.panel_service import FunderPanel, PanelService
from src.utils.exceptions import ApiError
from src.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/funders", tags=["funders"])


def _upstream_failure(what: str, funder_id: str, exc: ApiError) -> HTTPException:
    logger.error("funder_lookup_failed", lookup=what, funder_id=funder_id, error=str(exc))
    return HTTPException(
        status_code=500,
        detail={"error": f"Failed to fetch funder {what}", "type": exc.kind},
    )


@router.get("/{funder_id}")
async def get_funder(
    funder_id: str,
    openalex: OpenAlexService = Depends(get_openalex),
) -> dict[str, Any]:
    try:
        profile = await openalex.get_funder_profile(funder_id)
    except ApiError as exc:
        raise _upstream_failure("profile", funder_id, exc)
    return profile.model_dump(exclude_none=True)


@router.get("/{funder_id}/topics", response_model=FunderTopicsResponse)
async def get_funder_topics(
    funder_id: str,
    years: int | None = Query(default=None, ge=1, le=100),
    openalex: OpenAlexService = Depends(get_openalex),
    settings: Settings = Depends(get_app_settings),
) -> FunderTopicsResponse:
    from_year = calculate_from_year(years or settings.FUNDER_YEARS)
    try:
        topics = await openalex.get_funder_topics(funder_id, from_year)
    except ApiError as exc:
        raise _upstream_failure("topics", funder_id, exc)
    return FunderTopicsResponse(topics=topics, from_year=from_year, funder_id=funder_id)


@router.get("/{funder_id}/institutions", response_model=FunderCountriesResponse)
async def get_funder_institutions(
    funder_id: str,
    years: int | None = Query(default=None, ge=1, le=100),
    openalex: OpenAlexService = Depends(get_openalex),
    settings: Settings = Depends(get_app_settings),
) -> FunderCountriesResponse:
    """Institution country mix for the funder's works in the window."""
    from_year = calculate_from_year(years or settings.FUNDER_YEARS)
    try:
        countries = await openalex.get_funder_countries(funder_id, from_year)
    except ApiError as exc:
        raise _upstream_failure("institutions", funder_id, exc)
    return FunderCountriesResponse(countries=countries, from_year=from_year, funder_id=funder_id)


@router.post("/{funder_id}/panel", response_model=FunderPanel)
async def get_funder_panel(
    funder_id: str,
    body: PanelRequest,
    panels: PanelService = Depends(get_panel_service),
    settings: Settings = Depends(get_app_settings),
) -> FunderPanel:
    from_year = body.from_year or calculate_from_year(settings.PANEL_YEARS)
    try:
        return await panels.get_panel(funder_id, body.topic_ids, from_year)
    except ApiError as exc:
        raise _upstream_failure("panel data", funder_id, exc)
