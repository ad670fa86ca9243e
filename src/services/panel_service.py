"""Funder detail panel: profile, KPIs, co-funders, mixes and exemplar works."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.openalex import queries
from src.openalex.queries import funder_clause, join_filter, short_id, topics_clause, year_clause
from src.openalex.schemas import OpenAlexGroup
from src.services.openalex_service import OpenAlexService
from src.utils.logging import get_logger

logger = get_logger(__name__)

OPENALEX_ID_PREFIX = "https://openalex.org/"
MAX_COFUNDERS = 10
MAX_VENUES = 15
MAX_EXEMPLARS = 5


class PanelKpis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    works_in_window: int = Field(default=0, alias="worksInWindow")
    works_in_topic: int = Field(default=0, alias="worksInTopic")
    topic_share_pct: float = Field(default=0.0, alias="topicSharePct")
    oa_share: float = Field(default=0.0, alias="oaShare")


class Cofunder(BaseModel):
    id: str
    name: str
    count: int


class GroupList(BaseModel):
    groups: list[OpenAlexGroup] = Field(default_factory=list)


class FunderPanel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    funder: dict[str, Any]
    kpis: PanelKpis
    cofunders: list[Cofunder] = Field(default_factory=list)
    topic_mix: GroupList = Field(default_factory=GroupList, alias="topicMix")
    venues: GroupList = Field(default_factory=GroupList)
    geo: GroupList = Field(default_factory=GroupList)
    exemplars: list[dict[str, Any]] = Field(default_factory=list)


def full_funder_id(funder_id: str) -> str:
    if funder_id.startswith("https://"):
        return funder_id
    return OPENALEX_ID_PREFIX + funder_id


def _count_for(groups: list[OpenAlexGroup], key: str) -> int:
    return next((g.count for g in groups if g.key == key), 0)


class PanelService:
    """Aggregates everything the funder side panel shows.

    Unlike graph enrichment, any upstream failure here propagates.
    """

    def __init__(self, openalex: OpenAlexService) -> None:
        self._openalex = openalex

    async def get_panel(
        self, funder_id: str, topic_ids: list[str], from_year: int
    ) -> FunderPanel:
        fid = full_funder_id(funder_id)
        topics = topics_clause(topic_ids)
        window = join_filter(funder_clause(fid), year_clause(from_year))
        in_topics = join_filter(funder_clause(fid), topics, year_clause(from_year))

        funder = await self._openalex.get_raw_funder(short_id(fid), queries.FUNDER_PANEL_FIELDS)
        self_id = funder.get("id", fid)

        window_groups = await self._openalex.group_works(window, queries.FUNDER_GROUP)
        kpis = PanelKpis(works_in_window=_count_for(window_groups, self_id))

        if topics:
            everyone = await self._openalex.group_works(
                join_filter(topics, year_clause(from_year)), queries.FUNDER_GROUP, cursor="*"
            )
            total = sum(g.count for g in everyone)
            kpis.works_in_topic = _count_for(everyone, self_id)
            kpis.topic_share_pct = (kpis.works_in_topic / total * 100) if total else 0.0

        neighbors = await self._openalex.group_works(in_topics, queries.FUNDER_GROUP)
        cofunders = sorted(
            (g for g in neighbors if g.key != self_id), key=lambda g: g.count, reverse=True
        )[:MAX_COFUNDERS]

        topic_mix = await self._openalex.group_works(window, queries.FIELD_GROUP)
        venues = await self._openalex.group_works(window, queries.VENUE_GROUP, per_page=MAX_VENUES)
        geo = await self._openalex.group_works(window, queries.COUNTRY_GROUP)

        oa_groups = await self._openalex.group_works(window, queries.OPEN_ACCESS_GROUP, per_page=2)
        oa_total = sum(g.count for g in oa_groups[:2])
        kpis.oa_share = _count_for(oa_groups, "true") / oa_total if oa_total else 0.0

        exemplars = await self._openalex.search_works(
            in_topics,
            sort="cited_by_count:desc,publication_year:desc",
            per_page=MAX_EXEMPLARS,
            select=queries.EXEMPLAR_FIELDS,
        )

        logger.info("funder_panel_built", funder_id=self_id, from_year=from_year)
        return FunderPanel(
            funder=funder,
            kpis=kpis,
            cofunders=[
                Cofunder(id=g.key, name=g.key_display_name or g.key, count=g.count)
                for g in cofunders
            ],
            topic_mix=GroupList(groups=topic_mix),
            venues=GroupList(groups=venues),
            geo=GroupList(groups=geo),
            exemplars=exemplars,
        )
