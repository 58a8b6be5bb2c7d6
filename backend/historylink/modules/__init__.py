# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Conflation Entry Points
Public API for matching two snapshots of a feature dataset.
"""

from historylink.modules.conflation import (
    conflate,
    conflate_matrix,
    conflate_with_simplification,
)
from historylink.modules.metrics import DEFAULT_METRICS, Metrics

__all__ = [
    "conflate",
    "conflate_with_simplification",
    "conflate_matrix",
    "Metrics",
    "DEFAULT_METRICS",
]
