# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Application Configuration
All settings are loaded from environment variables with defaults tuned for
street-level OSM snapshots. Override via backend/.env or environment.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Geometry ────────────────────────────────────────────────────────────
    # Maximum attachment distance, in units of the local projection (metres
    # for any metric SRID). Used when the caller passes no demi_distance.
    demi_distance: float = Field(200.0, gt=0.0)
    # Geometries arrive as WGS84 GeoJSON and are projected into this SRID,
    # whose unit demi_distance is expressed in. Web Mercator works worldwide;
    # a national grid (e.g. 2154 for France) gives true ground metres.
    # 4326 keeps coordinates untouched (degrees).
    local_srid: int = 3857
    # Remainders shorter/smaller than this fraction of their source are noise
    remainder_min_ratio: float = Field(0.01, ge=0.0, lt=1.0)

    # ─── Matching Engine ─────────────────────────────────────────────────────
    # Cost added to cross-identity pairs so same-identity pairs win ties
    identity_epsilon: float = Field(1e-6, ge=0.0)
    # Thread pool width for pairwise cost evaluation; 1 = sequential
    matrix_workers: int = Field(1, ge=1)
    # Optional cap on greedy selections per call, None = unbounded
    max_iterations: Optional[int] = Field(None, ge=1)

    # ─── Logging ─────────────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached singleton Settings instance."""
    return Settings()
