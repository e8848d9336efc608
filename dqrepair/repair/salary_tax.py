from __future__ import annotations

import logging
from collections.abc import Mapping

from ..models.entity import Entity
from ..models.invalid_attrs import InvalidAttrSet
from ..models.repaired_cell import RepairOutput
from ..models.schema import SALARY_TAX_GROUP, Attr
from ..services.indices import SSNIndex, StateSalaryTaxIndex
from ..validation.composite import SalaryTaxValidator
from .voting import emit_corrections, plurality, resolved_value

"""Salary/tax repairer.

Per entity (invoked through the SSN repairer) the decision uses, in order:

1. the plurality (salary, tax) pair among records where both were valid;
2. separately valid salary and tax values when they are consistent together;
3. one known side plus the tax rate of the nearest-ranked entry of the entity's
   state in the finalized state index.

Entities left undecided are remembered and revisited by `repair_dataset()`, which
runs once after every entity has been repaired locally and copies the salary/tax
of another entity linked through the SSN index.
"""

__all__ = [
    "SalaryTaxRepairer",
]

logger = logging.getLogger(__name__)


class SalaryTaxRepairer:
    def __init__(
        self,
        index: StateSalaryTaxIndex,
        ssn_index: SSNIndex,
        validator: SalaryTaxValidator | None = None,
    ) -> None:
        self.index = index
        self.ssn_index = ssn_index
        self.validator = validator or SalaryTaxValidator()
        self._unresolved: list[str] = []

    @property
    def unresolved(self) -> tuple[str, ...]:
        return tuple(self._unresolved)

    def reset(self) -> None:
        self._unresolved.clear()

    def _state_of(self, entity: Entity) -> str | None:
        return plurality(entity.container(Attr.STATE).validated_values())

    def decide(self, entity: Entity) -> tuple[str, str] | None:
        """Local (salary, tax) decision for one entity, None when evidence is insufficient."""
        salaries = entity.container(Attr.SALARY).observations
        taxes = entity.container(Attr.TAX).observations
        pairs = [
            (s.validated, t.validated)
            for s, t in zip(salaries, taxes, strict=True)
            if s.validated is not None and t.validated is not None
        ]
        if pairs:
            return plurality(pairs)

        salary = plurality(entity.container(Attr.SALARY).validated_values())
        tax = plurality(entity.container(Attr.TAX).validated_values())
        if salary is not None and tax is not None:
            return (salary, tax) if self.validator.validate(salary, tax) else None

        state = self._state_of(entity)
        if state is None:
            return None
        if salary is not None:
            estimated = self.index.estimate_tax(state, int(salary))
            return (salary, str(estimated)) if estimated is not None else None
        if tax is not None:
            estimated = self.index.estimate_salary(state, int(tax))
            return (str(estimated), tax) if estimated is not None else None
        return None

    def _apply(self, entity: Entity, output: RepairOutput, invalid: InvalidAttrSet, target: tuple[str, str]) -> None:
        for attr, value in zip(SALARY_TAX_GROUP, target, strict=True):
            if invalid.get(attr):
                emit_corrections(output, entity, attr, value)
                invalid.clear(attr)

    def repair_entity(self, entity: Entity, output: RepairOutput, invalid: InvalidAttrSet) -> tuple[str, str] | None:
        if not invalid.any_of(SALARY_TAX_GROUP):
            return None
        target = self.decide(entity)
        if target is None:
            if entity.cuid not in self._unresolved:
                self._unresolved.append(entity.cuid)
            logger.debug(f"salary/tax undecided for cuid={entity.cuid}; deferred to dataset pass")
            return None
        self._apply(entity, output, invalid, target)
        return target

    def repair_dataset(
        self,
        entities: Mapping[str, Entity],
        output: RepairOutput,
        invalid: Mapping[str, InvalidAttrSet],
    ) -> int:
        """Cross-entity pass over entities left undecided by `repair_entity`.

        Sources are restricted to entities that are not themselves pending, so the
        result does not depend on iteration order. Returns the number of entities fixed.
        """
        empty = InvalidAttrSet()
        pending = [c for c in self._unresolved if invalid.get(c, empty).any_of(SALARY_TAX_GROUP)]
        pending_set = set(pending)
        fixed = 0
        for cuid in pending:
            entity = entities[cuid]
            flags = invalid[cuid]
            ssn = resolved_value(entity, Attr.SSN, flags, output)
            if ssn is None:
                continue
            for other in self.ssn_index.linked(ssn):
                if other == cuid or other in pending_set or other not in entities:
                    continue
                source = entities[other]
                source_flags = invalid.get(other, empty)
                if resolved_value(source, Attr.SSN, source_flags, output) != ssn:
                    continue
                salary = resolved_value(source, Attr.SALARY, source_flags, output)
                tax = resolved_value(source, Attr.TAX, source_flags, output)
                if salary is None or tax is None:
                    continue
                self._apply(entity, output, flags, (salary, tax))
                fixed += 1
                logger.debug(f"salary/tax for cuid={cuid} taken from cuid={other} via ssn link")
                break
        return fixed
