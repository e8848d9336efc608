from __future__ import annotations

from collections.abc import Iterable, Iterator

from .schema import ATTR_COUNT, Attr

"""Per-entity invalid attribute flags.

Fixed-size boolean vector keyed by attribute index. Ingestion only ever sets
flags; repairers clear the flags of attributes they made a decision for.
"""

__all__ = [
    "InvalidAttrSet",
]


class InvalidAttrSet:
    __slots__ = ("_bits",)

    def __init__(self, attrs: Iterable[Attr] = ()) -> None:
        self._bits = [False] * ATTR_COUNT
        for a in attrs:
            self._bits[a] = True

    def set(self, attr: Attr) -> None:
        self._bits[attr] = True

    def clear(self, attr: Attr) -> None:
        self._bits[attr] = False

    def get(self, attr: Attr) -> bool:
        return self._bits[attr]

    def any_of(self, attrs: Iterable[Attr]) -> bool:
        return any(self._bits[a] for a in attrs)

    def copy(self) -> InvalidAttrSet:
        other = InvalidAttrSet()
        other._bits = list(self._bits)
        return other

    def __iter__(self) -> Iterator[Attr]:
        """Iterate flagged attributes in schema order."""
        return (Attr(i) for i, bit in enumerate(self._bits) if bit)

    def __bool__(self) -> bool:
        return any(self._bits)

    def __len__(self) -> int:
        return sum(self._bits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvalidAttrSet):
            return NotImplemented
        return self._bits == other._bits

    def __repr__(self) -> str:
        return f"InvalidAttrSet({[a.name for a in self]})"
