from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

"""Fixed person/address schema for the record feed.

Feed columns are RUID, CUID followed by the attributes below in schema order.
Attribute indices are stable and double as positions in per-entity vectors
(AttributeContainer list, InvalidAttrSet).
"""

__all__ = [
    "Attr",
    "ATTR_COUNT",
    "OFFSET",
    "RUID_COLUMN",
    "CUID_COLUMN",
    "COLUMN_NAMES",
    "ADDRESS_GROUP",
    "BIRTH_AGE_GROUP",
    "SALARY_TAX_GROUP",
    "ColumnNames",
    "FeedHeaderError",
]


class FeedHeaderError(Exception):
    """Raised when the feed header is missing or lacks schema columns."""


class Attr(IntEnum):
    FNAME = 0
    MINIT = 1
    LNAME = 2
    STADD = 3
    STNUM = 4
    APMT = 5
    CITY = 6
    STATE = 7
    ZIP = 8
    SSN = 9
    BIRTH = 10
    AGE = 11
    SALARY = 12
    TAX = 13

    @property
    def column(self) -> int:
        """Position of the attribute in a schema-ordered feed row."""
        return int(self) + OFFSET

    @property
    def column_name(self) -> str:
        return self.name


ATTR_COUNT = len(Attr)
OFFSET = 2  # RUID, CUID

RUID_COLUMN = "RUID"
CUID_COLUMN = "CUID"
COLUMN_NAMES: tuple[str, ...] = (RUID_COLUMN, CUID_COLUMN, *(a.column_name for a in Attr))

ADDRESS_GROUP: tuple[Attr, ...] = (Attr.STADD, Attr.STNUM, Attr.APMT)
BIRTH_AGE_GROUP: tuple[Attr, ...] = (Attr.BIRTH, Attr.AGE)
SALARY_TAX_GROUP: tuple[Attr, ...] = (Attr.SALARY, Attr.TAX)


@dataclass(frozen=True)
class ColumnNames:
    """Header line of the feed mapped onto the fixed schema.

    The header declares the column order of the feed. Every schema column must be
    present (case-insensitive); extra columns are tolerated and ignored.
    """
    names: tuple[str, ...]
    positions: dict[str, int]  # upper-cased schema column name -> feed position

    @classmethod
    def from_header(cls, header: list[str] | tuple[str, ...]) -> ColumnNames:
        names = tuple(str(h).strip() for h in header)
        if not any(names):
            raise FeedHeaderError("feed header line is empty")
        positions: dict[str, int] = {}
        for i, name in enumerate(names):
            # 重複列は先勝ち
            positions.setdefault(name.upper(), i)
        missing = [c for c in COLUMN_NAMES if c not in positions]
        if missing:
            raise FeedHeaderError(f"feed header missing columns: {missing}")
        return cls(names=names, positions=positions)

    @property
    def width(self) -> int:
        return len(self.names)

    def position_of(self, column_name: str) -> int:
        return self.positions[column_name.upper()]

    def name_at(self, position: int) -> str:
        return self.names[position]

    def is_canonical(self) -> bool:
        """True when the header already lists the schema columns in schema order."""
        return all(self.positions[c] == i for i, c in enumerate(COLUMN_NAMES))

    def to_schema_order(self, row: list[str] | tuple[str, ...]) -> tuple[str, ...]:
        """Reorder a feed row (already padded to header width) into schema order."""
        return tuple(row[self.positions[c]] for c in COLUMN_NAMES)
