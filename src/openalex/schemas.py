"""Pydantic models for the OpenAlex response shapes we consume."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OpenAlexGroup(BaseModel):
    """One bucket of a ``group_by`` query."""

    model_config = ConfigDict(extra="ignore")

    key: str
    key_display_name: str | None = None
    count: int = Field(default=0, ge=0)


class OpenAlexYearCount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    year: int
    works_count: int = 0


class OpenAlexFunder(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    display_name: str
    country_code: str | None = None
    counts_by_year: list[OpenAlexYearCount] | None = None


class OpenAlexTopic(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: str
    score: float | None = None
    hint: str | None = None
    works_count: int | None = None
    cited_by_count: int | None = None
    entity_type: str | None = None
    external_id: str | None = None


class TextTopics(BaseModel):
    topics: list[OpenAlexTopic] = Field(default_factory=list)
    primary_topic: OpenAlexTopic | None = None


def parse_groups(payload: Any) -> list[OpenAlexGroup]:
    """Extract ``group_by`` buckets; a missing array is an empty result."""
    if not isinstance(payload, dict):
        return []
    raw = payload.get("group_by") or []
    return [
        OpenAlexGroup(
            key=_group_key(item.get("key")),
            key_display_name=item.get("key_display_name"),
            count=item.get("count") or 0,
        )
        for item in raw
        if isinstance(item, dict)
    ]


def _group_key(value: Any) -> str:
    # Boolean group keys (open_access.is_oa) come back as JSON true/false.
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def parse_results(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    return [r for r in payload.get("results") or [] if isinstance(r, dict)]
