"""Builders for OpenAlex filter / group-by query strings.

Every function is pure and returns a path plus query string ready for
``OpenAlexClient.call``. Filter clauses are joined with commas, which
OpenAlex reads as AND.
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlencode

GROUP_PAGE_SIZE = 200

FUNDER_GROUP = "grants.funder"
TOPIC_GROUP = "topics.id"
COUNTRY_GROUP = "authorships.institutions.country_code"
FIELD_GROUP = "topics.field.id"
VENUE_GROUP = "primary_location.source.id"
OPEN_ACCESS_GROUP = "open_access.is_oa"

FUNDER_PROFILE_FIELDS = "id,display_name,country_code,counts_by_year"
FUNDER_PANEL_FIELDS = (
    "id,display_name,description,homepage_url,country_code,ids,image_thumbnail_url,"
    "roles,counts_by_year,summary_stats,works_count,grants_count"
)
EXEMPLAR_FIELDS = "id,display_name,publication_year,cited_by_count,open_access,best_oa_location,grants"


def qp(params: dict[str, str | int | bool | None]) -> str:
    """Encode query parameters, dropping ``None`` values."""
    return urlencode({k: str(v) for k, v in params.items() if v is not None})


def join_filter(*clauses: str | None) -> str:
    return ",".join(c for c in clauses if c)


def topics_clause(topic_ids: Iterable[str]) -> str | None:
    ids = [t for t in topic_ids if t]
    if not ids:
        return None
    return f"topics.id:{'|'.join(ids)}"


def year_clause(from_year: int) -> str:
    return f"publication_year:{from_year}-"


def funder_clause(funder_id: str) -> str:
    return f"grants.funder:{funder_id}"


def short_id(openalex_id: str) -> str:
    """``https://openalex.org/F4320332161`` -> ``F4320332161``."""
    return openalex_id.rstrip("/").rsplit("/", 1)[-1] or openalex_id


def group_works_query(
    filter_: str,
    group_by: str,
    per_page: int = GROUP_PAGE_SIZE,
    cursor: str | None = None,
) -> str:
    return "/works?" + qp({
        "filter": filter_,
        "group_by": group_by,
        "per-page": per_page,
        "cursor": cursor,
    })


def top_funders_query(topic_ids: list[str], from_year: int) -> str:
    filter_ = join_filter(topics_clause(topic_ids), year_clause(from_year))
    return group_works_query(filter_, FUNDER_GROUP, cursor="*")


def funder_neighbors_query(funder_id: str, topic_ids: list[str], from_year: int) -> str:
    filter_ = join_filter(
        funder_clause(funder_id), topics_clause(topic_ids), year_clause(from_year)
    )
    return group_works_query(filter_, FUNDER_GROUP)


def funder_topics_query(funder_id: str, from_year: int) -> str:
    filter_ = join_filter(funder_clause(funder_id), year_clause(from_year))
    return group_works_query(filter_, TOPIC_GROUP)


def funder_countries_query(funder_id: str, from_year: int) -> str:
    filter_ = join_filter(funder_clause(funder_id), year_clause(from_year))
    return group_works_query(filter_, COUNTRY_GROUP)


def funder_profile_query(funder_id: str, fields: str = FUNDER_PROFILE_FIELDS) -> str:
    return f"/funders/{short_id(funder_id)}?" + qp({"select": fields})


def topic_autocomplete_query(text: str) -> str:
    return "/autocomplete/topics?" + qp({"q": text})


def works_topic_search_query(text: str, per_page: int = 10) -> str:
    return "/works?" + qp({"search": text, "per-page": per_page, "select": "topics"})


def works_search_query(filter_: str, sort: str, per_page: int, select: str) -> str:
    return "/works?" + qp({
        "filter": filter_,
        "sort": sort,
        "per-page": per_page,
        "select": select,
    })
