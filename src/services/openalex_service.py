"""Typed OpenAlex lookups: one query builder plus one client call each."""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import ValidationError

from src.models.schemas import FunderGroup
from src.openalex import queries
from src.openalex.schemas import (
    OpenAlexFunder,
    OpenAlexGroup,
    OpenAlexTopic,
    TextTopics,
    parse_groups,
    parse_results,
)
from src.utils.exceptions import ApiError
from src.utils.logging import get_logger

logger = get_logger(__name__)

MAX_TEXT_TOPICS = 5


class ApiCaller(Protocol):
    async def call(self, path_and_query: str) -> Any: ...


class OpenAlexService:
    """Lookups used by the graph builder and the funder detail endpoints."""

    def __init__(self, client: ApiCaller) -> None:
        self._client = client

    async def get_top_funder_groups(self, topic_ids: list[str], from_year: int) -> list[OpenAlexGroup]:
        payload = await self._client.call(queries.top_funders_query(topic_ids, from_year))
        try:
            return parse_groups(payload)
        except ValidationError as exc:
            raise ApiError(f"Unexpected top funders payload: {exc}") from exc

    async def get_top_funders(self, topic_ids: list[str], from_year: int) -> list[FunderGroup]:
        return _to_funder_groups(await self.get_top_funder_groups(topic_ids, from_year))

    async def get_funder_neighbors(
        self, funder_id: str, topic_ids: list[str], from_year: int
    ) -> list[FunderGroup]:
        payload = await self._client.call(
            queries.funder_neighbors_query(funder_id, topic_ids, from_year)
        )
        return _to_funder_groups(parse_groups(payload))

    async def get_funder_profile(self, funder_id: str) -> OpenAlexFunder:
        payload = await self._client.call(queries.funder_profile_query(funder_id))
        try:
            return OpenAlexFunder.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(f"Unexpected funder payload for {funder_id}: {exc}") from exc

    async def get_funder_topics(self, funder_id: str, from_year: int) -> list[OpenAlexGroup]:
        payload = await self._client.call(queries.funder_topics_query(funder_id, from_year))
        return parse_groups(payload)

    async def get_funder_countries(self, funder_id: str, from_year: int) -> list[OpenAlexGroup]:
        payload = await self._client.call(queries.funder_countries_query(funder_id, from_year))
        return parse_groups(payload)

    async def group_works(
        self, filter_: str, group_by: str, per_page: int = queries.GROUP_PAGE_SIZE,
        cursor: str | None = None,
    ) -> list[OpenAlexGroup]:
        payload = await self._client.call(
            queries.group_works_query(filter_, group_by, per_page=per_page, cursor=cursor)
        )
        return parse_groups(payload)

    async def search_works(
        self, filter_: str, sort: str, per_page: int, select: str
    ) -> list[dict[str, Any]]:
        payload = await self._client.call(
            queries.works_search_query(filter_, sort=sort, per_page=per_page, select=select)
        )
        return parse_results(payload)

    async def get_raw_funder(self, funder_id: str, fields: str) -> dict[str, Any]:
        payload = await self._client.call(queries.funder_profile_query(funder_id, fields))
        return payload if isinstance(payload, dict) else {}

    async def get_text_topics(self, title: str | None = None, abstract: str | None = None) -> TextTopics:
        """Suggest topics for a title/abstract.

        Tries topic autocomplete first. When that finds nothing, searches
        works with the same text and ranks the topics attached to them by
        how often they occur. A failure in that fallback yields no topics.
        """
        text = " ".join(part for part in (title, abstract) if part).strip()
        if not text:
            return TextTopics()

        payload = await self._client.call(queries.topic_autocomplete_query(text))
        found = [OpenAlexTopic.model_validate(r) for r in parse_results(payload)]
        if found:
            top = found[:MAX_TEXT_TOPICS]
            return TextTopics(topics=top, primary_topic=top[0])

        try:
            works = parse_results(await self._client.call(queries.works_topic_search_query(text)))
        except ApiError as exc:
            logger.warning("text_topic_fallback_failed", error=str(exc))
            return TextTopics()

        ranked = _rank_work_topics(works)
        return TextTopics(topics=ranked, primary_topic=ranked[0] if ranked else None)


def _to_funder_groups(groups: list[OpenAlexGroup]) -> list[FunderGroup]:
    return [FunderGroup(key=g.key, count=g.count) for g in groups]


def _rank_work_topics(works: list[dict[str, Any]]) -> list[OpenAlexTopic]:
    counts: dict[str, int] = {}
    names: dict[str, str] = {}
    for work in works:
        for topic in work.get("topics") or []:
            topic_id = topic.get("id")
            if not topic_id:
                continue
            counts[topic_id] = counts.get(topic_id, 0) + 1
            names.setdefault(topic_id, topic.get("display_name") or topic_id)

    # sorted() is stable, so ties keep first-seen order
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:MAX_TEXT_TOPICS]
    return [
        OpenAlexTopic(id=topic_id, display_name=names[topic_id], score=n / len(works))
        for topic_id, n in ordered
    ]
