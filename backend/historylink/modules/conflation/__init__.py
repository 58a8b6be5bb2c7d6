# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Conflation Engine Module
Public API for the before → after matching pipeline.
"""

from historylink.modules.conflation.conflator import (
    conflate,
    conflate_with_simplification,
)
from historylink.modules.conflation.distance_matrix import (
    MatrixEntry,
    build_matrix,
    conflate_matrix,
    resolve_demi_distance,
    score_pair,
)
from historylink.modules.conflation.greedy_matcher import match_greedy
from historylink.modules.conflation.reconciler import (
    merge_deleted_created,
    merge_duplicate_matches,
    reattach_remainders,
)
from historylink.modules.conflation.reference_matcher import match_by_reference
from historylink.modules.conflation.stats import compute_conflation_stats

__all__ = [
    # Distance matrix
    "MatrixEntry",
    "score_pair",
    "build_matrix",
    "conflate_matrix",
    "resolve_demi_distance",
    # Matching passes
    "match_by_reference",
    "match_greedy",
    # Reconciliation
    "merge_duplicate_matches",
    "reattach_remainders",
    "merge_deleted_created",
    # Statistics
    "compute_conflation_stats",
    # Orchestrator
    "conflate",
    "conflate_with_simplification",
]
