# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Output Document Models
Structure of the history exchange document: a GeoJSON FeatureCollection of
every entity version, plus the before → after links in its metadata.
Entities are referenced by "{kind initial}{id}_{version}" labels.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class HistoryEdge(BaseModel):
    """
    One conflation record as a link between entity labels.
    One-sided records leave the absent side None.
    """
    before: Optional[str] = None
    after: Optional[str] = None
    point_distance: Optional[float] = None


class EntityFeature(BaseModel):
    """A single entity version as a GeoJSON Feature."""
    type: Literal["Feature"] = "Feature"
    id: str = Field(..., description="Entity label, e.g. w42_3")
    properties: dict[str, Any] = Field(default_factory=dict)
    geometry: Optional[dict[str, Any]] = Field(
        None, description="Original WGS84 GeoJSON geometry, null if unreadable"
    )


class HistoryMetadata(BaseModel):
    links: list[HistoryEdge] = Field(default_factory=list)


class HistoryDocument(BaseModel):
    """Complete exchange document for one conflation result."""
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[EntityFeature] = Field(default_factory=list)
    metadata: HistoryMetadata = Field(default_factory=HistoryMetadata)
