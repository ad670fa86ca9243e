"""Graph API endpoints: build, export and the funder leaderboard."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from src.api.dependencies import get_app_settings, get_graph_service, get_openalex
from src.api.v1.schemas.graph import GraphRequest, LeaderboardRequest, LeaderboardResponse
from src.config import Settings, calculate_from_year
from src.models.schemas import GraphResponse
from src.services.graph_export import graph_to_graphml, graph_to_json
from src.services.graph_service import GraphService
from src.services.openalex_service import OpenAlexService
from src.utils.exceptions import ApiError, GraphBuildError, InvalidGraphRequestError
from src.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["graph"])


@router.post("/graph", response_model=GraphResponse, response_model_exclude_none=True)
async def build_graph(
    body: GraphRequest,
    service: GraphService = Depends(get_graph_service),
    settings: Settings = Depends(get_app_settings),
) -> GraphResponse:
    """Build the co-funding network for the requested topics."""
    from_year = calculate_from_year(body.years or settings.FUNDER_YEARS)
    try:
        return await service.build_graph(
            body.topic_ids, from_year, top_k=body.top_k, min_edge=body.min_edge
        )
    except InvalidGraphRequestError as exc:
        raise HTTPException(status_code=400, detail={"error": str(exc)})
    except GraphBuildError as exc:
        logger.error("graph_build_failed", topic_ids=body.topic_ids, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to build funder graph", "type": type(exc).__name__},
        )


@router.post("/graph/export")
async def export_graph(
    body: GraphRequest,
    format: Literal["json", "graphml"] = "json",
    service: GraphService = Depends(get_graph_service),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Build the graph and return it as a JSON or GraphML attachment."""
    graph = await build_graph(body, service, settings)

    if format == "json":
        return Response(
            content=graph_to_json(graph),
            media_type="application/json",
            headers={"Content-Disposition": "attachment; filename=funder_graph.json"},
        )

    return Response(
        content=graph_to_graphml(graph),
        media_type="application/xml",
        headers={"Content-Disposition": "attachment; filename=funder_graph.graphml"},
    )


@router.post("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    body: LeaderboardRequest,
    openalex: OpenAlexService = Depends(get_openalex),
    settings: Settings = Depends(get_app_settings),
) -> LeaderboardResponse:
    """Top funders by works count for the topics, in upstream order."""
    from_year = calculate_from_year(body.years or settings.FUNDER_YEARS)
    try:
        groups = await openalex.get_top_funder_groups(body.topic_ids, from_year)
    except ApiError as exc:
        logger.error("leaderboard_failed", topic_ids=body.topic_ids, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to fetch funder leaderboard", "type": exc.kind},
        )
    return LeaderboardResponse(funders=groups, from_year=from_year, topic_ids=body.topic_ids)
