"""Case-insensitive lookup tables over a normalized world schema.

Each collection of a ``WorldDef`` (actions, occupations, needs, resources,
skills, building types, ...) gets one ``EntityIndex`` built at construction
time. Lookups are O(1) dict hits keyed by lower-cased identifier, so
``find("EAT")`` and ``find("eat")`` resolve to the same entity.
"""

from __future__ import annotations

from typing import Dict, Generic, Iterable, List, Optional, Protocol, TypeVar


class _HasId(Protocol):
    id: str


EntityT = TypeVar("EntityT", bound=_HasId)


class EntityIndex(Generic[EntityT]):
    """Read-only id → entity map for one schema collection."""

    def __init__(self, entities: Iterable[EntityT]) -> None:
        entries: Dict[str, EntityT] = {}
        for entity in entities:
            key = entity.id.lower()
            # Normalizer already drops duplicates; keep first-wins here too.
            entries.setdefault(key, entity)
        self._entries = entries

    def find(self, entity_id: Optional[str]) -> Optional[EntityT]:
        """Return the entity for ``entity_id`` (any casing) or ``None``."""

        if not entity_id or not isinstance(entity_id, str):
            return None
        return self._entries.get(entity_id.strip().lower())

    def ids(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, str) and entity_id.strip().lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class SchemaIndex:
    """Bundle of per-collection indexes for a ``WorldDef``.

    Built once when the schema is constructed and never mutated afterwards,
    which is what lets every agent share it without locking.
    """

    def __init__(self, world_def) -> None:
        self.actions = EntityIndex(world_def.actions)
        self.occupations = EntityIndex(world_def.occupations)
        self.needs = EntityIndex(world_def.needs)
        self.resources = EntityIndex(world_def.resources)
        self.skills = EntityIndex(world_def.skills)
        self.building_types = EntityIndex(world_def.building_types)
        self.statuses = EntityIndex(world_def.status)
        self.traits = EntityIndex(world_def.traits)
