from __future__ import annotations

import pytest

from dqrepair.models.invalid_attrs import InvalidAttrSet
from dqrepair.models.record import RawRecord
from dqrepair.models.schema import ADDRESS_GROUP, ATTR_COUNT, Attr
from dqrepair.services.engine import DuplicateRuidError, EngineStateError, RepairEngine
from dqrepair.services.indices import IndexNotFinalizedError


def test_valid_record_registers_evidence(make_record):
    engine = RepairEngine()
    entity = engine.ingest(make_record(1, "c1"))

    assert entity.ruids == [1]
    assert engine.invalid["c1"] == InvalidAttrSet()
    assert engine.ssn_index.owner("123456789") == "c1"
    assert len(engine.salary_tax_index) == 1


def test_atomic_failure_flags_attribute_and_keeps_raw(make_record):
    engine = RepairEngine()
    entity = engine.ingest(make_record(1, "c1", ZIP="6060x"))

    assert list(engine.invalid["c1"]) == [Attr.ZIP]
    obs = entity.container(Attr.ZIP).observations[0]
    assert obs.validated is None
    assert obs.raw == "6060x"


def test_address_hard_conflict_flags_whole_group(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", STNUM="12a", APMT="44a"))
    assert list(engine.invalid["c1"]) == list(ADDRESS_GROUP)


def test_address_field_invalid_flags_only_blamed_field(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", APMT="44a"))
    assert list(engine.invalid["c1"]) == [Attr.APMT]


def test_birth_age_conflict_flags_both(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", AGE="54"))
    assert list(engine.invalid["c1"]) == [Attr.BIRTH, Attr.AGE]


def test_zero_salary_with_valid_ssn(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", SALARY="0", TAX="0"))
    assert list(engine.invalid["c1"]) == [Attr.SALARY]


def test_zero_salary_without_valid_ssn_is_not_blamed(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", SSN="bad", SALARY="0", TAX="0"))
    assert list(engine.invalid["c1"]) == [Attr.SSN]


def test_malformed_record_flags_everything(make_record):
    engine = RepairEngine()
    good = make_record(1, "c1")
    engine.ingest(RawRecord(good.ruid, good.cuid, good.values, malformed=True))

    assert len(engine.invalid["c1"]) == ATTR_COUNT
    assert "123456789" not in engine.ssn_index
    assert len(engine.salary_tax_index) == 0


def test_divergent_duplicate_flags_attribute(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", FNAME="Anne"))
    entity = engine.ingest(make_record(2, "c1", FNAME="Ann"))

    assert entity.ruids == [1, 2]
    assert list(engine.invalid["c1"]) == [Attr.FNAME]


def test_identical_duplicates_stay_valid(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1"))
    engine.ingest(make_record(2, "c1"))
    assert not engine.invalid["c1"]
    assert engine.invalid_entities() == []


def test_divergent_ssn_is_not_registered(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", SSN="111111111"))
    engine.ingest(make_record(2, "c1", SSN="222222222"))
    assert engine.ssn_index.linked("111111111") == ("c1",)
    assert "222222222" not in engine.ssn_index


def test_invalid_tax_is_not_registered_in_state_index(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1", TAX="abc"))
    assert len(engine.salary_tax_index) == 0


def test_later_divergence_drops_entity_from_state_index(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1"))
    engine.ingest(make_record(2, "c1", SALARY="60000"))
    engine.ingest(make_record(3, "c2", SSN="999999999"))
    engine.finish_ingestion()
    engine.repair()
    assert [e.cuid for e in engine.salary_tax_index.entries("IL")] == ["c2"]


def test_duplicate_ruid_is_refused(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1"))
    with pytest.raises(DuplicateRuidError):
        engine.ingest(make_record(1, "c2"))
    assert "c2" not in engine.entities


def test_state_index_unreadable_during_ingestion(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1"))
    with pytest.raises(IndexNotFinalizedError):
        engine.salary_tax_index.entries("IL")


def test_ingest_after_barrier_is_refused(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1"))
    engine.finish_ingestion()
    engine.finish_ingestion()
    assert engine.ingestion_complete is True
    with pytest.raises(EngineStateError):
        engine.ingest(make_record(2, "c1"))


def test_repair_before_barrier_is_refused(make_record):
    engine = RepairEngine()
    engine.ingest(make_record(1, "c1"))
    with pytest.raises(EngineStateError):
        engine.repair()


def test_ingest_all_counts(make_record):
    engine = RepairEngine()
    n = engine.ingest_all(make_record(i, f"c{i % 2}") for i in range(1, 6))
    assert n == 5
    assert engine.entities["c1"].ruids == [1, 3, 5]
    assert all(e.is_complete() for e in engine.entities.values())
