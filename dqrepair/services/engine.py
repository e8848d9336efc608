from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..models.config_models import RepairConfig
from ..models.entity import Entity, EntityGroup
from ..models.invalid_attrs import InvalidAttrSet
from ..models.record import RawRecord
from ..models.repaired_cell import RepairOutput
from ..models.schema import ADDRESS_GROUP, BIRTH_AGE_GROUP, SALARY_TAX_GROUP, Attr
from ..repair.address import AddressRepairer
from ..repair.birth_age import BirthAgeRepairer
from ..repair.salary_tax import SalaryTaxRepairer
from ..repair.ssn import SSNRepairer
from ..repair.voting import majority_vote
from ..validation.composite import AddressValidator, BirthAgeValidator, SalaryTaxValidator
from .indices import SSNIndex, StateSalaryTaxIndex

"""Two-phase validate-then-repair engine.

Phase 1 (ingest): each raw record is attached to its entity, validated field by
field and group by group, compared against the entity's canonical record, and
registered in the evidence indices when its values are jointly valid.

Phase 2 (repair): only after finish_ingestion(). The state index is finalized,
each entity with invalid attributes goes through the dedicated repairers and the
majority vote, then one dataset-wide salary/tax pass runs.

The repair phase works on copies of the invalid flags, so running it again over
the same ingested data yields the same corrections.
"""

__all__ = [
    "EngineStateError",
    "DuplicateRuidError",
    "RepairEngine",
]

logger = logging.getLogger(__name__)

_STATE_SALARY_TAX = (Attr.STATE, Attr.SALARY, Attr.TAX)
_SSN_SALARY_TAX = (Attr.SSN, *SALARY_TAX_GROUP)


class EngineStateError(Exception):
    """Raised when ingest/repair are called out of phase order."""


class DuplicateRuidError(Exception):
    """Raised when a ruid is ingested twice."""


class RepairEngine:
    def __init__(self, config: RepairConfig | None = None) -> None:
        self.config = config or RepairConfig.default()
        self.entities: EntityGroup = {}
        self.invalid: dict[str, InvalidAttrSet] = {}
        self.unresolved: dict[str, InvalidAttrSet] = {}

        self.ssn_index = SSNIndex()
        self.salary_tax_index = StateSalaryTaxIndex()

        self.address_validator = AddressValidator()
        self.birth_age_validator = BirthAgeValidator(self.config.reference_year, self.config.birth_formats)
        self.salary_tax_validator = SalaryTaxValidator()

        self.salary_tax_repairer = SalaryTaxRepairer(
            self.salary_tax_index, self.ssn_index, self.salary_tax_validator
        )
        self.ssn_repairer = SSNRepairer(self.ssn_index)
        self.birth_age_repairer = BirthAgeRepairer(self.birth_age_validator)
        self.address_repairer = AddressRepairer(self.address_validator)

        self._ruids: set[int] = set()
        self._ingestion_complete = False

    # ------------------------------------------------------------------ ingest

    @property
    def ingestion_complete(self) -> bool:
        return self._ingestion_complete

    def ingest(self, record: RawRecord) -> Entity:
        """Validate one raw record and fold it into its entity."""
        if self._ingestion_complete:
            raise EngineStateError("ingestion already finished; no more records accepted")
        if record.ruid in self._ruids:
            raise DuplicateRuidError(f"ruid {record.ruid} already ingested")
        self._ruids.add(record.ruid)

        entity = self.entities.get(record.cuid)
        created = entity is None
        if entity is None:
            entity = Entity(record.cuid, record.ruid)
            self.entities[record.cuid] = entity
        else:
            entity.add_ruid(record.ruid)
        invalid = self.invalid.setdefault(record.cuid, InvalidAttrSet())

        validated = self.validate_record(record)
        for attr in Attr:
            if validated[attr] is None:
                invalid.set(attr)
            entity.add_value(attr, validated[attr], record.value(attr))

        if not created:
            # 重複観測の不一致はそれ自体が検証失敗
            for attr in Attr:
                if not invalid.get(attr) and record.value(attr) != entity.container(attr).value(0):
                    invalid.set(attr)

        self._register_evidence(record.cuid, validated, invalid)
        return entity

    def ingest_all(self, records: Iterable[RawRecord]) -> int:
        n = 0
        for record in records:
            self.ingest(record)
            n += 1
        return n

    def validate_record(self, record: RawRecord) -> dict[Attr, str | None]:
        """Row-level validation: validated value per attribute, None when rejected."""
        if record.malformed:
            return {attr: None for attr in Attr}
        raw = {attr: record.value(attr) for attr in Attr}
        validated: dict[Attr, str | None] = dict(raw)

        for attr, validator in self.config.atomic_validators.items():
            if not validator.validate(raw[attr]):
                validated[attr] = None

        result = self.address_validator.strict_validate(*(raw[a] for a in ADDRESS_GROUP))
        validated.update(self.address_validator.resolve(result, raw))

        result = self.birth_age_validator.strict_validate(raw[Attr.BIRTH], raw[Attr.AGE])
        validated.update(self.birth_age_validator.resolve(result, raw))

        result = self.salary_tax_validator.strict_validate(raw[Attr.SALARY], raw[Attr.TAX], validated[Attr.SSN])
        validated.update(self.salary_tax_validator.resolve(result, raw))
        return validated

    def _register_evidence(self, cuid: str, validated: dict[Attr, str | None], invalid: InvalidAttrSet) -> None:
        state, salary, tax = (validated[a] for a in _STATE_SALARY_TAX)
        if state is not None and salary is not None and tax is not None and not invalid.any_of(_STATE_SALARY_TAX):
            self.salary_tax_index.add(state, salary, tax, cuid)
        ssn = validated[Attr.SSN]
        if ssn is not None and not invalid.get(Attr.SSN):
            self.ssn_index.add(ssn, cuid)

    def finish_ingestion(self) -> None:
        """Barrier between the phases. Idempotent."""
        if not self._ingestion_complete:
            self._ingestion_complete = True
            logger.debug(
                f"ingestion complete: records={len(self._ruids)} entities={len(self.entities)} "
                f"invalid_entities={len(self.invalid_entities())}"
            )

    def invalid_entities(self) -> list[str]:
        return [cuid for cuid, flags in self.invalid.items() if flags]

    # ------------------------------------------------------------------ repair

    def repair(
        self,
        output: RepairOutput | None = None,
        on_entity: Callable[[Entity], None] | None = None,
    ) -> RepairOutput:
        """Run the repair pass and return the corrections.

        `on_entity` is called after each invalid entity is processed (progress display).
        """
        if not self._ingestion_complete:
            raise EngineStateError("repair requested before ingestion finished")
        if output is None:
            output = RepairOutput()

        self.salary_tax_index.finalize(self.invalid)
        self.salary_tax_repairer.reset()

        working = {cuid: flags.copy() for cuid, flags in self.invalid.items() if flags}
        for cuid, flags in working.items():
            entity = self.entities[cuid]
            self._repair_entity(entity, output, flags)
            if on_entity is not None:
                on_entity(entity)

        linked = self.salary_tax_repairer.repair_dataset(self.entities, output, working)
        self.unresolved = {cuid: flags for cuid, flags in working.items() if flags}
        logger.debug(
            f"repair pass: entities={len(working)} cells={len(output)} "
            f"ssn_linked={linked} unresolved={len(self.unresolved)}"
        )
        return output

    def _repair_entity(self, entity: Entity, output: RepairOutput, flags: InvalidAttrSet) -> None:
        if flags.any_of(_SSN_SALARY_TAX):
            self.ssn_repairer.repair(entity, output, flags, self.salary_tax_repairer)
        if flags.any_of(BIRTH_AGE_GROUP):
            self.birth_age_repairer.repair(entity, output, flags)
        if flags.any_of(ADDRESS_GROUP):
            self.address_repairer.repair(entity, output, flags)
        for attr in list(flags):
            if self.config.is_auto_repair(attr):
                majority_vote(entity, attr, output)
                flags.clear(attr)
