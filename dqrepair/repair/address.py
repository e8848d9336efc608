from __future__ import annotations

import logging

from ..models.entity import Entity
from ..models.invalid_attrs import InvalidAttrSet
from ..models.repaired_cell import RepairOutput
from ..models.schema import ADDRESS_GROUP
from ..validation.composite import AddressValidator
from .voting import emit_corrections, plurality

"""Street address / street number / apartment repairer.

The group is repaired as a whole so a decision is always one of the accepted
address shapes.
"""

__all__ = [
    "AddressRepairer",
]

logger = logging.getLogger(__name__)


class AddressRepairer:
    def __init__(self, validator: AddressValidator | None = None) -> None:
        self.validator = validator or AddressValidator()

    def decide(self, entity: Entity) -> tuple[str, str, str] | None:
        columns = [entity.container(a).observations for a in ADDRESS_GROUP]
        triples = [
            (s.validated, n.validated, p.validated)
            for s, n, p in zip(*columns, strict=True)
            if s.validated is not None and n.validated is not None and p.validated is not None
        ]
        if triples:
            return plurality(triples)  # type: ignore[return-value]

        parts = tuple(plurality(entity.container(a).validated_values()) for a in ADDRESS_GROUP)
        if None in parts or not self.validator.validate(*parts):
            return None
        return parts  # type: ignore[return-value]

    def repair(self, entity: Entity, output: RepairOutput, invalid: InvalidAttrSet) -> None:
        target = self.decide(entity)
        if target is None:
            logger.debug(f"address left unresolved for cuid={entity.cuid}")
            return
        for attr, value in zip(ADDRESS_GROUP, target, strict=True):
            if invalid.get(attr):
                emit_corrections(output, entity, attr, value)
                invalid.clear(attr)
