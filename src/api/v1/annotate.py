"""Text annotation endpoint: suggest OpenAlex topics for a title/abstract."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_openalex
from src.api.v1.schemas.funders import AnnotateRequest
from src.openalex.schemas import TextTopics
from src.services.openalex_service import OpenAlexService
from src.utils.exceptions import ApiError
from src.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["annotate"])


@router.post("/annotate", response_model=TextTopics)
async def annotate(
    body: AnnotateRequest,
    openalex: OpenAlexService = Depends(get_openalex),
) -> TextTopics:
    try:
        return await openalex.get_text_topics(body.title, body.abstract)
    except ApiError as exc:
        logger.error("annotate_failed", error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to process text annotation", "type": exc.kind},
        )
