from __future__ import annotations

import logging

from ..models.entity import Entity
from ..models.invalid_attrs import InvalidAttrSet
from ..models.repaired_cell import RepairOutput
from ..models.schema import SALARY_TAX_GROUP, Attr
from ..services.indices import SSNIndex
from .salary_tax import SalaryTaxRepairer
from .voting import emit_corrections, plurality

"""SSN repairer; also the entry point for salary/tax repair of an entity."""

__all__ = [
    "SSNRepairer",
]

logger = logging.getLogger(__name__)


class SSNRepairer:
    def __init__(self, ssn_index: SSNIndex) -> None:
        self.ssn_index = ssn_index

    def decide(self, entity: Entity) -> str | None:
        """Plurality of the entity's well-formed ssn observations.

        Values the SSN index attributes exclusively to other entities are ignored.
        """
        allowed = []
        for ssn in entity.container(Attr.SSN).validated_values():
            linked = self.ssn_index.linked(ssn)
            if not linked or entity.cuid in linked:
                allowed.append(ssn)
        return plurality(allowed)

    def repair(
        self,
        entity: Entity,
        output: RepairOutput,
        invalid: InvalidAttrSet,
        salary_tax: SalaryTaxRepairer,
    ) -> None:
        if invalid.get(Attr.SSN):
            target = self.decide(entity)
            if target is None:
                logger.debug(f"ssn left unresolved for cuid={entity.cuid}")
            else:
                emit_corrections(output, entity, Attr.SSN, target)
                invalid.clear(Attr.SSN)
        if invalid.any_of(SALARY_TAX_GROUP):
            salary_tax.repair_entity(entity, output, invalid)
