"""Build a co-funding graph from OpenAlex and write it to a JSON or GraphML file."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from src.config import calculate_from_year, get_settings
from src.openalex.client import OpenAlexClient
from src.services.graph_export import graph_to_graphml, graph_to_json
from src.services.graph_service import GraphService
from src.services.openalex_service import OpenAlexService
from src.utils.exceptions import FunderScapeError
from src.utils.logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("topic_ids", nargs="+", help="OpenAlex topic IDs, e.g. T10017")
    parser.add_argument("--years", type=int, default=None, help="Lookback window in years")
    parser.add_argument("--top-k", type=int, default=None)
    parser.add_argument("--min-edge", type=int, default=None)
    parser.add_argument("--format", choices=("json", "graphml"), default="json")
    parser.add_argument("--output", type=Path, default=None)
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(log_level="INFO", log_format="console")
    settings = get_settings()
    from_year = calculate_from_year(args.years or settings.FUNDER_YEARS)

    async with OpenAlexClient(settings) as client:
        service = GraphService(OpenAlexService(client), settings)
        try:
            graph = await service.build_graph(
                args.topic_ids, from_year, top_k=args.top_k, min_edge=args.min_edge
            )
        except FunderScapeError as exc:
            print(f"Graph build failed: {exc}", file=sys.stderr)
            return 1

    content = graph_to_json(graph) if args.format == "json" else graph_to_graphml(graph)
    output = args.output or Path(f"funder_graph.{args.format}")
    output.write_text(content, encoding="utf-8")
    print(f"Graph exported to {output}")
    print(f"  Nodes: {len(graph.nodes)}")
    print(f"  Edges: {len(graph.edges)}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
