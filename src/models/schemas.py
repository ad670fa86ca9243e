"""Domain models for the co-funding graph."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ── Grouped counts ───────────────────────────────────────────────────


class FunderGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    count: int = Field(default=0, ge=0)


class YearCount(BaseModel):
    year: int
    works_count: int = 0


class TopicMix(BaseModel):
    id: str
    name: str
    count: int


class CountryMix(BaseModel):
    code: str
    count: int


# ── Graph ────────────────────────────────────────────────────────────


class GraphNode(BaseModel):
    id: str
    name: str
    country: str | None = None
    count: int = 0  # works in the seed topic window, from the seed ranking
    trend: list[YearCount] | None = None
    topics: list[TopicMix] | None = None
    countries: list[CountryMix] | None = None


class GraphEdge(BaseModel):
    source: str
    target: str
    weight: int = Field(ge=1)


class GraphMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_year: int = Field(alias="fromYear")
    topic_ids: list[str] = Field(alias="topicIds")


class GraphResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    meta: GraphMeta


# ── Enrichment ───────────────────────────────────────────────────────


class EnrichmentResult(BaseModel):
    """Outcome of enriching one seed funder.

    ``full``: profile plus topic and country breakdowns.
    ``partial``: profile only; the breakdown fetch failed.
    ``degraded``: profile failed; ``node`` is a placeholder.
    """

    node: GraphNode
    status: Literal["full", "partial", "degraded"]
    reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.status == "degraded"
