"""Request/response models for the funder detail and annotation API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.openalex.schemas import OpenAlexGroup


class FunderTopicsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topics: list[OpenAlexGroup] = Field(default_factory=list)
    from_year: int = Field(alias="fromYear")
    funder_id: str = Field(alias="funderId")


class FunderCountriesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    countries: list[OpenAlexGroup] = Field(default_factory=list)
    from_year: int = Field(alias="fromYear")
    funder_id: str = Field(alias="funderId")


class PanelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic_ids: list[str] = Field(default_factory=list, alias="topicIds")
    from_year: int | None = Field(default=None, alias="fromYear", ge=1000, le=9999)


class AnnotateRequest(BaseModel):
    title: str | None = None
    abstract: str | None = None

    @model_validator(mode="after")
    def _require_text(self) -> AnnotateRequest:
        if not (self.title or self.abstract):
            raise ValueError("Either title or abstract must be provided")
        return self
