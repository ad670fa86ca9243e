"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.models.schemas import FunderGroup
from src.openalex.schemas import OpenAlexFunder, OpenAlexGroup, OpenAlexYearCount
from src.utils.exceptions import UpstreamServerError


@pytest.fixture(autouse=True)
def _env_setup(monkeypatch):
    """Keep tests independent of any local .env or shell configuration."""
    monkeypatch.setenv("OPENALEX_BASE_URL", "https://api.openalex.test")
    monkeypatch.setenv("OPENALEX_MAILTO", "test@example.org")
    monkeypatch.setenv("OPENALEX_REQUESTS_PER_SECOND", "0")
    monkeypatch.setenv("NEIGHBOR_BATCH_DELAY_SECONDS", "0")
    monkeypatch.setenv("PROFILE_DELAY_SECONDS", "0")
    monkeypatch.setenv("LOG_FORMAT", "console")


@pytest.fixture
def settings():
    from src.config import Settings

    return Settings(
        _env_file=None,
        OPENALEX_BASE_URL="https://api.openalex.test",
        OPENALEX_MAILTO="test@example.org",
        OPENALEX_REQUESTS_PER_SECOND=0,
        NEIGHBOR_BATCH_DELAY_SECONDS=0,
        PROFILE_DELAY_SECONDS=0,
    )


def make_profile(funder_id: str, name: str | None = None, country: str | None = "US") -> OpenAlexFunder:
    return OpenAlexFunder(
        id=funder_id,
        display_name=name or f"Funder Name {funder_id}",
        country_code=country,
        counts_by_year=[
            OpenAlexYearCount(year=2024, works_count=120),
            OpenAlexYearCount(year=2023, works_count=95),
        ],
    )


def make_openalex(
    seeds: list[tuple[str, int]],
    neighbors: dict[str, list[tuple[str, int]]] | None = None,
    *,
    failing_neighbors: tuple[str, ...] = (),
    failing_profiles: tuple[str, ...] = (),
    failing_breakdowns: tuple[str, ...] = (),
    topic_groups: list[OpenAlexGroup] | None = None,
    country_groups: list[OpenAlexGroup] | None = None,
) -> AsyncMock:
    """OpenAlexService stand-in driven by canned seed and neighbor data."""
    neighbors = neighbors or {}
    openalex = AsyncMock()
    openalex.get_top_funders = AsyncMock(
        return_value=[FunderGroup(key=k, count=c) for k, c in seeds]
    )

    async def _neighbors(funder_id, topic_ids, from_year):
        if funder_id in failing_neighbors:
            raise UpstreamServerError("Failed after 3 attempts: HTTP 503", status_code=503)
        return [FunderGroup(key=k, count=c) for k, c in neighbors.get(funder_id, [])]

    async def _profile(funder_id):
        if funder_id in failing_profiles:
            raise UpstreamServerError("Failed after 3 attempts: HTTP 500", status_code=500)
        return make_profile(funder_id)

    async def _topics(funder_id, from_year):
        if funder_id in failing_breakdowns:
            raise UpstreamServerError("HTTP 502: Bad Gateway", status_code=502)
        return list(topic_groups or [])

    async def _countries(funder_id, from_year):
        return list(country_groups or [])

    openalex.get_funder_neighbors = AsyncMock(side_effect=_neighbors)
    openalex.get_funder_profile = AsyncMock(side_effect=_profile)
    openalex.get_funder_topics = AsyncMock(side_effect=_topics)
    openalex.get_funder_countries = AsyncMock(side_effect=_countries)
    return openalex


@pytest.fixture
def two_funder_openalex():
    """F1 and F2 each report the other as a co-funder (4 and 3 works)."""
    return make_openalex(
        seeds=[("F1", 50), ("F2", 30)],
        neighbors={"F1": [("F1", 50), ("F2", 4)], "F2": [("F2", 30), ("F1", 3)]},
    )


@pytest.fixture
def openalex_factory():
    return make_openalex
