# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Error Types
Bad input data never aborts a conflation: an entity whose geometry cannot be
decoded simply stays unmatched. Only logic defects and invalid call
arguments raise out of the engine.
"""

from __future__ import annotations


class GeometryDecodeError(ValueError):
    """Raised when a serialized geometry cannot be turned into a usable shape."""


class InvalidDemiDistanceError(ValueError):
    """Raised when demi_distance is not a finite positive number."""


class ConflationInvariantError(RuntimeError):
    """Raised when the engine reaches a state its own logic forbids."""
