from __future__ import annotations

from dataclasses import dataclass

from .schema import ATTR_COUNT, Attr

"""RawRecord model for the record feed.

A RawRecord is one data line of the feed after header mapping: the record id,
the entity-cluster id and the attribute values in schema order. Values are kept
exactly as read (no trimming, no NA conversion).
"""

__all__ = [
    "RawRecord",
]


@dataclass(frozen=True)
class RawRecord:
    """One raw observation of an entity.

    `malformed` marks rows whose column count did not match the header; such rows
    are still ingested but every attribute fails validation.
    """
    ruid: int
    cuid: str
    values: tuple[str, ...]  # schema order, len == ATTR_COUNT
    malformed: bool = False
    line_number: int = -1  # feed line (header = 1), -1 when unknown

    def __post_init__(self) -> None:
        if len(self.values) != ATTR_COUNT:
            raise ValueError(f"expected {ATTR_COUNT} attribute values, got {len(self.values)}")

    def value(self, attr: Attr) -> str:
        return self.values[attr]
