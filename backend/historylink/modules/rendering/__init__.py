# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Rendering Module
Public API for turning conflation results into exchange documents and
diagrams.
"""

from historylink.modules.rendering.diagram import node_statement, render_diagram
from historylink.modules.rendering.document_builder import (
    build_history_document,
    build_links,
    dump_history_document,
    entity_feature,
    entity_label,
    index_entities,
)

__all__ = [
    # Document
    "entity_label",
    "index_entities",
    "build_links",
    "entity_feature",
    "build_history_document",
    "dump_history_document",
    # Diagram
    "node_statement",
    "render_diagram",
]
