from __future__ import annotations

import logging

from ..models.entity import Entity
from ..models.invalid_attrs import InvalidAttrSet
from ..models.repaired_cell import RepairOutput
from ..models.schema import BIRTH_AGE_GROUP, Attr
from ..validation.composite import BirthAgeValidator
from .voting import emit_corrections, plurality

"""Birth/age repairer, working from the entity's own duplicate observations."""

__all__ = [
    "BirthAgeRepairer",
]

logger = logging.getLogger(__name__)


class BirthAgeRepairer:
    def __init__(self, validator: BirthAgeValidator | None = None) -> None:
        self.validator = validator or BirthAgeValidator()

    def decide(self, entity: Entity) -> tuple[str | None, str | None]:
        """(birth, age) to align the entity on; either side may stay undecided (None).

        Order of preference: plurality jointly valid pair; plurality valid birth with
        an age consistent with it; plurality valid age with a raw birth consistent
        with it.
        """
        births = entity.container(Attr.BIRTH).observations
        ages = entity.container(Attr.AGE).observations
        pairs = [
            (b.validated, a.validated)
            for b, a in zip(births, ages, strict=True)
            if b.validated is not None and a.validated is not None
        ]
        if pairs:
            return plurality(pairs)  # type: ignore[return-value]

        valid_ages = entity.container(Attr.AGE).validated_values()
        birth = plurality(entity.container(Attr.BIRTH).validated_values())
        if birth is not None:
            parsed = self.validator.parse_birth(birth)
            if parsed is None:
                return None, None
            age = plurality(a for a in valid_ages if self.validator.consistent(parsed, int(a)))
            if age is None:
                age = str(self.validator.expected_ages(parsed)[0])
            return birth, age

        age = plurality(valid_ages)
        if age is None:
            return None, None
        candidates = []
        for b in births:
            parsed = self.validator.parse_birth(b.raw)
            if parsed is not None and self.validator.consistent(parsed, int(age)):
                candidates.append(b.raw)
        return plurality(candidates), age

    def repair(self, entity: Entity, output: RepairOutput, invalid: InvalidAttrSet) -> None:
        target = self.decide(entity)
        for attr, value in zip(BIRTH_AGE_GROUP, target, strict=True):
            if value is None or not invalid.get(attr):
                continue
            emit_corrections(output, entity, attr, value)
            invalid.clear(attr)
        if invalid.any_of(BIRTH_AGE_GROUP):
            logger.debug(f"birth/age partly unresolved for cuid={entity.cuid}: {invalid!r}")
