# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Conflation Records
Pydantic models describing what happened to one feature between two
snapshots. Exactly three shapes exist:

  matched  before → after       (unchanged, modified, split part, merge part)
  deleted  before → nothing
  created  nothing → after

before_at_now is the latest known version of the before identity, looked up
independently of matching. It is informational only.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from historylink.models.entity import Entity


class ConflationKind(str, Enum):
    MATCHED = "matched"
    DELETED = "deleted"
    CREATED = "created"


class MatchedConflation(BaseModel):
    """
    A two-sided correspondence produced by reference or distance matching.
    before/after may be replaced with unioned geometry during reconciliation.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal[ConflationKind.MATCHED] = ConflationKind.MATCHED
    before: Entity
    before_at_now: Optional[Entity] = None
    after: Entity
    # Observed distance between the matched geometries, None when they touch.
    # Diagnostic only, never used for matching decisions.
    point_distance: Optional[float] = Field(None, ge=0.0)

    def to_tuple(self) -> tuple[Optional[Entity], Optional[Entity], Optional[Entity]]:
        return (self.before, self.before_at_now, self.after)


class DeletedConflation(BaseModel):
    """A before entity with no counterpart in the after snapshot."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal[ConflationKind.DELETED] = ConflationKind.DELETED
    before: Entity
    before_at_now: Optional[Entity] = None

    @property
    def after(self) -> None:
        return None

    def to_tuple(self) -> tuple[Optional[Entity], Optional[Entity], Optional[Entity]]:
        return (self.before, self.before_at_now, None)


class CreatedConflation(BaseModel):
    """An after entity with no counterpart in the before snapshot."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal[ConflationKind.CREATED] = ConflationKind.CREATED
    after: Entity

    @property
    def before(self) -> None:
        return None

    @property
    def before_at_now(self) -> None:
        return None

    def to_tuple(self) -> tuple[Optional[Entity], Optional[Entity], Optional[Entity]]:
        return (None, None, self.after)


AnyConflation = Union[MatchedConflation, DeletedConflation, CreatedConflation]
