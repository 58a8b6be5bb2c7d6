# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
HistoryLink: Entity Arena
Working set of entities addressed by integer handles.

The greedy matcher removes matched entities and injects remainder entities
on every iteration. Addressing them by handle keeps both operations O(1)
and keeps two parts of the same feature (same identity, different
geometry) apart without any custom hashing of the entity itself.
Iteration always follows handle order, which is insertion order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from historylink.errors import ConflationInvariantError
from historylink.models.entity import Entity, EntityKey


class EntityArena:
    """Insertion-ordered handle → Entity store."""

    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._slots: dict[int, Entity] = {}
        self._next_handle = 0
        for entity in entities:
            self.add(entity)

    @classmethod
    def deduplicated(cls, entities: Iterable[Entity]) -> EntityArena:
        """
        Build an arena keeping the first entity of every EntityKey.
        Exact duplicate input records collapse; two versions of one feature
        never do.
        """
        seen: set[EntityKey] = set()
        arena = cls()
        for entity in entities:
            if entity.key in seen:
                continue
            seen.add(entity.key)
            arena.add(entity)
        return arena

    def add(self, entity: Entity) -> int:
        handle = self._next_handle
        self._slots[handle] = entity
        self._next_handle += 1
        return handle

    def remove(self, handle: int) -> Entity:
        try:
            return self._slots.pop(handle)
        except KeyError:
            raise ConflationInvariantError(
                f"Handle {handle} is not in the working set."
            ) from None

    def __getitem__(self, handle: int) -> Entity:
        try:
            return self._slots[handle]
        except KeyError:
            raise ConflationInvariantError(
                f"Handle {handle} is not in the working set."
            ) from None

    def __contains__(self, handle: object) -> bool:
        return handle in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[tuple[int, Entity]]:
        return iter(list(self._slots.items()))

    def handles(self) -> list[int]:
        return list(self._slots)

    def entities(self) -> list[Entity]:
        return list(self._slots.values())
