"""Co-funding graph assembly: seeds, symmetric edges, and funder enrichment."""

from __future__ import annotations

import asyncio
from typing import Iterable

from pydantic import ValidationError

from src.config import Settings
from src.models.schemas import (
    CountryMix,
    EnrichmentResult,
    FunderGroup,
    GraphEdge,
    GraphMeta,
    GraphNode,
    GraphResponse,
    TopicMix,
    YearCount,
)
from src.openalex.queries import short_id
from src.openalex.schemas import OpenAlexFunder, OpenAlexGroup
from src.services.openalex_service import OpenAlexService
from src.utils.exceptions import ApiError, GraphBuildError, InvalidGraphRequestError
from src.utils.logging import get_logger
from src.utils.retry import SleepFunc

logger = get_logger(__name__)

FUNDER_ID_PREFIX = "F"

# Failures that only cost one funder its edges or breakdowns.
_RECOVERABLE = (ApiError, ValidationError)

EdgeKey = tuple[str, str]


class GraphService:
    """Builds the co-funding network for a set of topics.

    Neighbor queries run in fixed-size concurrent batches separated by a
    fixed delay. Enrichment is strictly sequential per funder, with the
    topic and country breakdowns of one funder fetched together.
    """

    def __init__(
        self,
        openalex: OpenAlexService,
        settings: Settings,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._openalex = openalex
        self._sleep = sleep
        self._default_top_k = settings.TOPK_FUNDERS
        self._default_min_edge = settings.MIN_EDGE
        self._batch_size = settings.NEIGHBOR_BATCH_SIZE
        self._batch_delay = settings.NEIGHBOR_BATCH_DELAY_SECONDS
        self._profile_delay = settings.PROFILE_DELAY_SECONDS
        self._top_n = settings.ENRICHMENT_TOP_N

    async def build_graph(
        self,
        topic_ids: list[str],
        from_year: int,
        top_k: int | None = None,
        min_edge: int | None = None,
    ) -> GraphResponse:
        top_k = self._default_top_k if top_k is None else top_k
        min_edge = self._default_min_edge if min_edge is None else min_edge
        validate_build_params(topic_ids, from_year, top_k, min_edge)

        logger.info(
            "graph_build_started",
            topic_ids=topic_ids,
            from_year=from_year,
            top_k=top_k,
            min_edge=min_edge,
        )

        try:
            groups = await self._openalex.get_top_funders(topic_ids, from_year)
        except ApiError as exc:
            logger.error("seed_fetch_failed", topic_ids=topic_ids, error=str(exc))
            raise GraphBuildError(f"Failed to fetch top funders: {exc}") from exc

        seeds = select_seeds(groups, top_k)
        seed_ids = dedupe_ids(s.key for s in seeds)
        logger.info("seed_funders_selected", seeds=len(seed_ids))

        weights = await self.accumulate_edge_weights(seed_ids, topic_ids, from_year)
        edges = finalize_edges(weights, min_edge)
        logger.info("edges_accumulated", candidate_pairs=len(weights), kept=len(edges))

        results = await self.enrich_funders(seed_ids, from_year)
        nodes = apply_seed_counts([r.node for r in results], seeds)

        degraded = sum(1 for r in results if r.degraded)
        logger.info(
            "graph_build_completed",
            nodes=len(nodes),
            edges=len(edges),
            degraded_nodes=degraded,
        )
        return GraphResponse(
            nodes=nodes,
            edges=edges,
            meta=GraphMeta(from_year=from_year, topic_ids=list(topic_ids)),
        )

    # ── Edges ────────────────────────────────────────────────────────

    async def accumulate_edge_weights(
        self, seed_ids: list[str], topic_ids: list[str], from_year: int
    ) -> dict[EdgeKey, int]:
        """Sum neighbor counts per unordered seed pair.

        Each side of a pair reports the other, so a pair's weight is the sum
        of both reports. Contributions of a batch are merged only after the
        whole batch has been awaited.
        """
        seed_set = set(seed_ids)
        weights: dict[EdgeKey, int] = {}
        batches = [
            seed_ids[i : i + self._batch_size]
            for i in range(0, len(seed_ids), self._batch_size)
        ]

        for index, batch in enumerate(batches):
            partials = await asyncio.gather(
                *(
                    self._neighbor_contributions(seed_id, seed_set, topic_ids, from_year)
                    for seed_id in batch
                )
            )
            for partial in partials:
                for key, count in partial:
                    weights[key] = weights.get(key, 0) + count

            if index < len(batches) - 1:
                await self._sleep(self._batch_delay)

        return weights

    async def _neighbor_contributions(
        self,
        seed_id: str,
        seed_set: set[str],
        topic_ids: list[str],
        from_year: int,
    ) -> list[tuple[EdgeKey, int]]:
        try:
            neighbors = await self._openalex.get_funder_neighbors(seed_id, topic_ids, from_year)
        except _RECOVERABLE as exc:
            logger.warning("neighbors_fetch_failed", funder_id=seed_id, error=str(exc))
            return []

        return [
            (edge_key(seed_id, n.key), n.count)
            for n in neighbors
            if n.key in seed_set and n.key != seed_id
        ]

    # ── Enrichment ───────────────────────────────────────────────────

    async def enrich_funders(self, funder_ids: list[str], from_year: int) -> list[EnrichmentResult]:
        results = []
        for funder_id in funder_ids:
            results.append(await self.enrich_funder(funder_id, from_year))
        return results

    async def enrich_funder(self, funder_id: str, from_year: int) -> EnrichmentResult:
        profile: OpenAlexFunder | None = None
        failure: Exception | None = None
        try:
            profile = await self._openalex.get_funder_profile(funder_id)
        except ApiError as exc:
            failure = exc

        await self._sleep(self._profile_delay)

        if profile is None:
            logger.error("funder_enrichment_degraded", funder_id=funder_id, error=str(failure))
            return EnrichmentResult(
                node=placeholder_node(funder_id),
                status="degraded",
                reason=str(failure),
            )

        node = GraphNode(
            id=funder_id,
            name=profile.display_name,
            country=profile.country_code,
            count=0,
            trend=_trend(profile),
        )

        topic_groups, country_groups = await asyncio.gather(
            self._openalex.get_funder_topics(funder_id, from_year),
            self._openalex.get_funder_countries(funder_id, from_year),
            return_exceptions=True,
        )
        errors = [r for r in (topic_groups, country_groups) if isinstance(r, BaseException)]
        for err in errors:
            if not isinstance(err, _RECOVERABLE):
                raise err
        if errors:
            logger.warning(
                "funder_breakdowns_failed",
                funder_id=funder_id,
                error="; ".join(str(e) for e in errors),
            )
            return EnrichmentResult(node=node, status="partial", reason=str(errors[0]))

        node.topics = top_topics(topic_groups, self._top_n)
        node.countries = top_countries(country_groups, self._top_n)
        return EnrichmentResult(node=node, status="full")


# ── Pure helpers ─────────────────────────────────────────────────────


def validate_build_params(topic_ids: list[str], from_year: int, top_k: int, min_edge: int) -> None:
    if not topic_ids or not all(topic_ids):
        raise InvalidGraphRequestError("At least one topic ID must be provided")
    if not 1000 <= from_year <= 9999:
        raise InvalidGraphRequestError(f"from_year must be a 4-digit year, got {from_year}")
    if top_k <= 0:
        raise InvalidGraphRequestError(f"top_k must be positive, got {top_k}")
    if min_edge < 1:
        raise InvalidGraphRequestError(f"min_edge must be at least 1, got {min_edge}")


def select_seeds(groups: list[FunderGroup], top_k: int) -> list[FunderGroup]:
    """First ``top_k`` groups by descending count.

    OpenAlex already returns groups sorted by count; the stable sort keeps
    that order untouched and only matters if it ever stops doing so.
    """
    ranked = sorted(groups, key=lambda g: g.count, reverse=True)
    return ranked[:top_k]


def dedupe_ids(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def normalize_funder_id(funder_id: str) -> str:
    sid = short_id(funder_id)
    if sid.startswith(FUNDER_ID_PREFIX):
        return sid[len(FUNDER_ID_PREFIX):]
    return sid


def edge_key(a: str, b: str) -> EdgeKey:
    """Canonical (source, target) for an unordered pair of funder IDs."""
    ka = (normalize_funder_id(a), a)
    kb = (normalize_funder_id(b), b)
    return (a, b) if ka <= kb else (b, a)


def finalize_edges(weights: dict[EdgeKey, int], min_edge: int) -> list[GraphEdge]:
    return [
        GraphEdge(source=source, target=target, weight=weight)
        for (source, target), weight in weights.items()
        if weight >= min_edge
    ]


def apply_seed_counts(nodes: list[GraphNode], seeds: list[FunderGroup]) -> list[GraphNode]:
    """Replace each node's count with its seed ranking count."""
    counts: dict[str, int] = {}
    for seed in seeds:
        counts.setdefault(seed.key, seed.count)
    return [node.model_copy(update={"count": counts.get(node.id, 0)}) for node in nodes]


def placeholder_node(funder_id: str) -> GraphNode:
    return GraphNode(id=funder_id, name=f"Funder {short_id(funder_id)}", country=None, count=0)


def top_topics(groups: list[OpenAlexGroup], n: int) -> list[TopicMix]:
    ranked = sorted(groups, key=lambda g: g.count, reverse=True)[:n]
    return [
        TopicMix(id=g.key, name=g.key_display_name or short_id(g.key), count=g.count)
        for g in ranked
    ]


def top_countries(groups: list[OpenAlexGroup], n: int) -> list[CountryMix]:
    coded = [g for g in groups if g.key]
    ranked = sorted(coded, key=lambda g: g.count, reverse=True)[:n]
    return [CountryMix(code=g.key, count=g.count) for g in ranked]


def _trend(profile: OpenAlexFunder) -> list[YearCount] | None:
    if profile.counts_by_year is None:
        return None
    return [YearCount(year=c.year, works_count=c.works_count) for c in profile.counts_by_year]
