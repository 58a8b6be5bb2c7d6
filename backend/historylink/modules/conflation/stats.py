# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Conflation Statistics
Summary counts and observed-distance statistics for one conflation result,
logged after every run and reusable by reporting layers.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from historylink.models.conflation import (
    AnyConflation,
    CreatedConflation,
    DeletedConflation,
    MatchedConflation,
)
from historylink.utils.logger import get_logger

log = get_logger(__name__)


def compute_conflation_stats(conflations: Sequence[AnyConflation]) -> dict:
    """
    Returns:
        Dict with keys: total, matched, deleted, created, moved,
        mean_point_distance, max_point_distance
    """
    matched = [c for c in conflations if isinstance(c, MatchedConflation)]
    distances = np.array(
        [m.point_distance for m in matched if m.point_distance is not None],
        dtype=np.float64,
    )

    stats = {
        "total": len(conflations),
        "matched": len(matched),
        "deleted": sum(1 for c in conflations if isinstance(c, DeletedConflation)),
        "created": sum(1 for c in conflations if isinstance(c, CreatedConflation)),
        "moved": int(distances.size),
        "mean_point_distance": float(distances.mean()) if distances.size else 0.0,
        "max_point_distance": float(distances.max()) if distances.size else 0.0,
    }

    log.info(
        "conflation_stats",
        total=stats["total"],
        matched=stats["matched"],
        deleted=stats["deleted"],
        created=stats["created"],
        mean_point_distance=round(stats["mean_point_distance"], 3),
    )
    return stats
