from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

"""RepairedCell and the shared RepairOutput collection.

RepairedCell is the unit of output: a new value for one attribute of one raw
record. RepairOutput is append-only. Adding the same cell twice is a no-op;
adding a different value for an already repaired (ruid, column) pair is an
error because exactly one repairer owns each attribute of an entity.
"""

__all__ = [
    "RepairedCell",
    "RepairOutput",
    "RepairConflictError",
]


class RepairConflictError(Exception):
    """Raised when two different corrections target the same (ruid, column)."""


@dataclass(frozen=True, order=True)
class RepairedCell:
    ruid: int
    column_name: str
    value: str


class RepairOutput:
    """Append-only, insertion-ordered set of RepairedCell facts."""

    def __init__(self) -> None:
        self._cells: dict[tuple[int, str], RepairedCell] = {}

    def add(self, cell: RepairedCell) -> bool:
        """Add a correction. Returns False when the identical cell was already present."""
        key = (cell.ruid, cell.column_name)
        existing = self._cells.get(key)
        if existing is not None:
            if existing == cell:
                return False
            raise RepairConflictError(
                f"ruid={cell.ruid} column={cell.column_name}: "
                f"{existing.value!r} already emitted, refusing {cell.value!r}"
            )
        self._cells[key] = cell
        return True

    def get(self, ruid: int, column_name: str) -> str | None:
        cell = self._cells.get((ruid, column_name))
        return cell.value if cell is not None else None

    def __contains__(self, cell: object) -> bool:
        if not isinstance(cell, RepairedCell):
            return False
        return self._cells.get((cell.ruid, cell.column_name)) == cell

    def __iter__(self) -> Iterator[RepairedCell]:
        return iter(self._cells.values())

    def __len__(self) -> int:
        return len(self._cells)

    def as_set(self) -> frozenset[RepairedCell]:
        return frozenset(self._cells.values())
