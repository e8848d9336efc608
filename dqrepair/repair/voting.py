from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Hashable, Iterable
from typing import TypeVar

from ..models.entity import Entity
from ..models.invalid_attrs import InvalidAttrSet
from ..models.repaired_cell import RepairedCell, RepairOutput
from ..models.schema import Attr

"""Plurality voting and correction emission shared by all repairers."""

__all__ = [
    "plurality",
    "emit_corrections",
    "majority_vote",
    "resolved_value",
]

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


def plurality(values: Iterable[T]) -> T | None:
    """Most frequent value; ties go to the value seen first. None for no values."""
    counts = Counter(values)
    if not counts:
        return None
    # most_common は同数なら初出順
    return counts.most_common(1)[0][0]


def emit_corrections(output: RepairOutput, entity: Entity, attr: Attr, value: str) -> int:
    """Emit `value` for every record of `entity` whose raw `attr` differs. Returns count."""
    emitted = 0
    for ruid, obs in zip(entity.ruids, entity.container(attr).observations, strict=True):
        if obs.raw != value and output.add(RepairedCell(ruid, attr.column_name, value)):
            emitted += 1
    return emitted


def majority_vote(entity: Entity, attr: Attr, output: RepairOutput) -> str | None:
    """Generic repair: align every record on the plurality raw value.

    Returns the chosen value (None only for an attribute without observations).
    """
    winner = plurality(entity.container(attr).raw_values())
    if winner is None:
        return None
    n = emit_corrections(output, entity, attr, winner)
    if n:
        logger.debug(f"majority vote cuid={entity.cuid} attr={attr.name} value={winner!r} fixed={n}")
    return winner


def resolved_value(entity: Entity, attr: Attr, invalid: InvalidAttrSet, output: RepairOutput) -> str | None:
    """Current best value of `attr` for `entity`.

    A correction already emitted for the canonical record wins; otherwise the
    canonical value if the attribute is not flagged; otherwise None.
    """
    repaired = output.get(entity.canonical_ruid, attr.column_name)
    if repaired is not None:
        return repaired
    if invalid.get(attr):
        return None
    return entity.container(attr).value(0)
