"""Request/response models for the graph and leaderboard API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.openalex.schemas import OpenAlexGroup


class GraphRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic_ids: list[str] = Field(..., alias="topicIds", min_length=1)
    years: int | None = Field(default=None, ge=1, le=100)
    top_k: int | None = Field(default=None, alias="topK", gt=0, le=200)
    min_edge: int | None = Field(default=None, alias="minEdge", ge=1)


class LeaderboardRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic_ids: list[str] = Field(..., alias="topicIds", min_length=1)
    years: int | None = Field(default=None, ge=1, le=100)


class LeaderboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    funders: list[OpenAlexGroup] = Field(default_factory=list)
    from_year: int = Field(alias="fromYear")
    topic_ids: list[str] = Field(alias="topicIds")
