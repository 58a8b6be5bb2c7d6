# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Diagram Renderer
Graphviz DOT rendering of a conflation: the before snapshot and the after
snapshot as two clusters, one edge per two-sided link.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from historylink.models.entity import Entity
from historylink.models.output import HistoryEdge
from historylink.utils.logger import get_logger

log = get_logger(__name__)

# Tag values are cut to keep node boxes readable
_MAX_VALUE_CHARS = 21


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', "")


def node_statement(label: str, entity: Entity) -> str:
    """DOT node: title line, blank line, then sorted key=value tags."""
    tags = "\\n".join(
        f"{_escape(k)}={_escape(v[:_MAX_VALUE_CHARS])}"
        for k, v in sorted(entity.tags.items())
    )
    title = f"{entity.kind[0]}{entity.id} v{entity.version}"
    return f'{label} [label="{title}\\n\\n{tags}"];'


def _cluster(index: int, title: str, nodes: list[str]) -> list[str]:
    lines = [
        f"  subgraph cluster_{index} {{",
        f'    label="{_escape(title)}";',
        "    color=gray;",
    ]
    lines.extend(f"    {n}" for n in nodes)
    lines.append("  }")
    return lines


def render_diagram(
    entities: Mapping[str, Entity],
    links: Sequence[HistoryEdge],
    date_start: str,
    date_end: str,
) -> str:
    """
    Render links as a left-to-right digraph.

    Args:
        entities:   label → entity, e.g. from index_entities()
        links:      Edges from build_links()
        date_start: Caption of the before cluster
        date_end:   Caption of the after cluster

    Returns:
        DOT source text.
    """
    before_labels = list(dict.fromkeys(link.before for link in links if link.before))
    after_labels = list(dict.fromkeys(link.after for link in links if link.after))

    before_nodes = [node_statement(lbl, entities[lbl]) for lbl in before_labels if lbl in entities]
    after_nodes = [node_statement(lbl, entities[lbl]) for lbl in after_labels if lbl in entities]
    edges = [
        f"  {link.before} -> {link.after};"
        for link in links if link.before and link.after
    ]

    lines = ["digraph G {", "  rankdir = LR;"]
    lines += _cluster(0, date_start, before_nodes)
    lines += _cluster(1, date_end, after_nodes)
    lines += edges
    lines.append("}")

    log.info(
        "diagram_rendered",
        n_before_nodes=len(before_nodes),
        n_after_nodes=len(after_nodes),
        n_edges=len(edges),
    )
    return "\n".join(lines) + "\n"
