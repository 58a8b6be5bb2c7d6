# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Entity Data Model
One versioned map feature as observed in a snapshot: identity, GeoJSON
geometry (parsed lazily), tags, and version metadata.

Two distinct notions of "same" are exposed on purpose:
  identity  (kind, id)                       lookups across versions
  key       (kind, id, version, geom text)   deduplication of inputs
"""

from __future__ import annotations

from functools import lru_cache
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from shapely.geometry.base import BaseGeometry

from historylink.config import get_settings
from historylink.errors import GeometryDecodeError
from historylink.utils.geometry_utils import build_geometry_decoder
from historylink.utils.logger import get_logger

log = get_logger(__name__)

GeometryDecoder = Callable[[str], BaseGeometry]


class Identity(NamedTuple):
    """Version-independent identity of a feature."""
    kind: str
    id: int


class EntityKey(NamedTuple):
    """Composite key telling two input records apart."""
    kind: str
    id: int
    version: int
    geom: str


@lru_cache(maxsize=16)
def default_geometry_decoder(local_srid: int) -> GeometryDecoder:
    """Shared decoder per SRID so entities do not each build a transformer."""
    return build_geometry_decoder(local_srid)


def _settings_decoder() -> GeometryDecoder:
    return default_geometry_decoder(get_settings().local_srid)


class Entity(BaseModel):
    """
    A single versioned feature from one snapshot.

    Constructed once by the ingestion layer and never mutated afterwards.
    The engine only derives copies (with_geometry) for remainder parts and
    unioned match slots.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: str = Field(..., min_length=1, description="Feature type: node, way, relation")
    id: int = Field(..., description="Feature id, unique within kind")
    geom: str = Field(..., description="WGS84 GeoJSON geometry text")
    deleted: bool = Field(False, description="True if this version deletes the feature")
    version: int = Field(1, ge=0)
    author: str = Field("", description="Username of the editor of this version")
    created: str = Field("", description="ISO timestamp of this version")
    tags: dict[str, str] = Field(default_factory=dict)
    members: Optional[list[int]] = Field(None, description="Member ids for ways/relations")

    decoder: GeometryDecoder = Field(
        default_factory=_settings_decoder, exclude=True, repr=False
    )

    _geometry: Optional[BaseGeometry] = PrivateAttr(default=None)
    _parsed: bool = PrivateAttr(default=False)

    # ─── Identity ────────────────────────────────────────────────────────────

    @property
    def identity(self) -> Identity:
        return Identity(self.kind, self.id)

    @property
    def key(self) -> EntityKey:
        return EntityKey(self.kind, self.id, self.version, self.geom)

    # ─── Geometry ────────────────────────────────────────────────────────────

    @property
    def geometry(self) -> Optional[BaseGeometry]:
        """
        Parsed geometry, decoded on first access and cached.
        None when the serialized form cannot be decoded.
        """
        if not self._parsed:
            self._parsed = True
            try:
                self._geometry = self.decoder(self.geom)
            except GeometryDecodeError as exc:
                log.debug(
                    "geometry_decode_failed",
                    kind=self.kind,
                    id=self.id,
                    version=self.version,
                    error=str(exc),
                )
                self._geometry = None
        return self._geometry

    def with_geometry(self, geometry: BaseGeometry) -> Entity:
        """Return a copy of this entity carrying a replaced geometry."""
        derived = self.model_copy()
        derived._geometry = geometry
        derived._parsed = True
        return derived

    def __repr__(self) -> str:
        return f"Entity({self.kind}{self.id} v{self.version})"

    def __str__(self) -> str:
        return self.__repr__()
