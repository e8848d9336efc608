from __future__ import annotations

from dataclasses import dataclass, field

from .schema import ATTR_COUNT, Attr

"""Entity and AttributeContainer models.

An Entity groups every raw record sharing one cuid. For each attribute it owns an
AttributeContainer holding one (validated, raw) observation per contributing
record, in arrival order. The first contributing record is canonical.
"""

__all__ = [
    "Observation",
    "AttributeContainer",
    "Entity",
    "EntityGroup",
]


@dataclass(frozen=True)
class Observation:
    validated: str | None  # None when validation rejected the raw value
    raw: str

    @property
    def value(self) -> str:
        return self.validated if self.validated is not None else self.raw


@dataclass
class AttributeContainer:
    attr: Attr
    observations: list[Observation] = field(default_factory=list)

    def add(self, validated: str | None, raw: str) -> None:
        self.observations.append(Observation(validated, raw))

    def value(self, position: int = 0) -> str:
        """Validated-or-raw value observed at `position` (0 = canonical)."""
        return self.observations[position].value

    def raw_values(self) -> list[str]:
        return [o.raw for o in self.observations]

    def validated_values(self) -> list[str]:
        """Values that passed validation, arrival order, duplicates kept."""
        return [o.validated for o in self.observations if o.validated is not None]

    def __len__(self) -> int:
        return len(self.observations)


class Entity:
    """All observations of one real-world entity (one cuid)."""

    def __init__(self, cuid: str, ruid: int) -> None:
        self.cuid = cuid
        self.ruids: list[int] = [ruid]
        self._containers = [AttributeContainer(Attr(i)) for i in range(ATTR_COUNT)]

    @property
    def canonical_ruid(self) -> int:
        return self.ruids[0]

    def add_ruid(self, ruid: int) -> None:
        self.ruids.append(ruid)

    def container(self, attr: Attr) -> AttributeContainer:
        return self._containers[attr]

    def add_value(self, attr: Attr, validated: str | None, raw: str) -> None:
        self._containers[attr].add(validated, raw)

    def is_complete(self) -> bool:
        """Every attribute holds exactly one observation per contributing record."""
        return all(len(c) == len(self.ruids) for c in self._containers)

    def __repr__(self) -> str:
        return f"Entity(cuid={self.cuid!r}, ruids={self.ruids!r})"


# cuid -> Entity, insertion ordered
EntityGroup = dict[str, Entity]
