# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: History Document Builder
Turns a conflation result plus the two input snapshots into the GeoJSON
exchange document consumed by history viewers.

Features carry the serialized geometry exactly as ingested: remainder and
unioned geometries are engine internals and never leak into the document.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence

from historylink.models.conflation import AnyConflation
from historylink.models.entity import Entity
from historylink.models.output import (
    EntityFeature,
    HistoryDocument,
    HistoryEdge,
    HistoryMetadata,
)
from historylink.utils.logger import get_logger

log = get_logger(__name__)


def entity_label(entity: Entity) -> str:
    """Stable reference for one entity version: n123_4, w42_1, ..."""
    return f"{entity.kind[0]}{entity.id}_{entity.version}"


def index_entities(*snapshots: Iterable[Entity]) -> dict[str, Entity]:
    """label → entity over all snapshots; later snapshots win on collisions."""
    index: dict[str, Entity] = {}
    for snapshot in snapshots:
        for entity in snapshot:
            index[entity_label(entity)] = entity
    return index


def build_links(conflations: Sequence[AnyConflation]) -> list[HistoryEdge]:
    """One edge per conflation record, in result order."""
    return [
        HistoryEdge(
            before=entity_label(c.before) if c.before is not None else None,
            after=entity_label(c.after) if c.after is not None else None,
            point_distance=getattr(c, "point_distance", None),
        )
        for c in conflations
    ]


def entity_feature(label: str, entity: Entity) -> EntityFeature:
    try:
        geometry = json.loads(entity.geom)
    except ValueError:
        log.warning("feature_geometry_unreadable", label=label)
        geometry = None

    return EntityFeature(
        id=label,
        properties={
            "kind": entity.kind,
            "id": entity.id,
            "version": entity.version,
            "deleted": entity.deleted,
            "author": entity.author,
            "created": entity.created,
            "members": entity.members,
            "tags": dict(entity.tags),
        },
        geometry=geometry,
    )


def build_history_document(
    befores: Iterable[Entity],
    afters: Iterable[Entity],
    conflations: Sequence[AnyConflation],
) -> HistoryDocument:
    """
    Assemble the exchange document.

    Args:
        befores:     Entities of the earlier snapshot
        afters:      Entities of the later snapshot
        conflations: Result of conflate() over the same snapshots

    Returns:
        HistoryDocument, ready for dump_history_document().
    """
    entities = index_entities(befores, afters)
    links = build_links(conflations)

    document = HistoryDocument(
        features=[entity_feature(label, e) for label, e in entities.items()],
        metadata=HistoryMetadata(links=links),
    )

    log.info(
        "history_document_built",
        n_features=len(document.features),
        n_links=len(links),
    )
    return document


def dump_history_document(document: HistoryDocument) -> str:
    """
    Serialize to JSON. Absent link sides are omitted, while an unreadable
    feature geometry stays an explicit null as GeoJSON requires.
    """
    payload = document.model_dump(mode="json")
    payload["metadata"]["links"] = [
        link.model_dump(mode="json", exclude_none=True)
        for link in document.metadata.links
    ]
    return json.dumps(payload)
