"""Serialize a co-funding graph to JSON or GraphML."""

from __future__ import annotations

import json

from src.models.schemas import GraphResponse


def graph_to_json(graph: GraphResponse, indent: int | None = 2) -> str:
    return json.dumps(
        graph.model_dump(mode="json", by_alias=True, exclude_none=True), indent=indent
    )


def graph_to_graphml(graph: GraphResponse) -> str:
    """Convert a graph response to undirected GraphML."""
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<graphml xmlns="http://graphml.graphdrawing.org/xmlns">',
        '  <key id="name" for="node" attr.name="name" attr.type="string"/>',
        '  <key id="country" for="node" attr.name="country" attr.type="string"/>',
        '  <key id="count" for="node" attr.name="count" attr.type="int"/>',
        '  <key id="weight" for="edge" attr.name="weight" attr.type="int"/>',
        '  <graph id="G" edgedefault="undirected">',
    ]

    for node in graph.nodes:
        lines.append(f'    <node id="{_xml_escape(node.id)}">')
        lines.append(f'      <data key="name">{_xml_escape(node.name)}</data>')
        if node.country:
            lines.append(f'      <data key="country">{_xml_escape(node.country)}</data>')
        lines.append(f'      <data key="count">{node.count}</data>')
        lines.append("    </node>")

    for i, edge in enumerate(graph.edges):
        lines.append(
            f'    <edge id="e{i}" source="{_xml_escape(edge.source)}" target="{_xml_escape(edge.target)}">'
        )
        lines.append(f'      <data key="weight">{edge.weight}</data>')
        lines.append("    </edge>")

    lines.append("  </graph>")
    lines.append("</graphml>")
    return "\n".join(lines)


def _xml_escape(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")
