from __future__ import annotations

import pytest

from dqrepair.models.config_models import RepairConfig
from dqrepair.models.invalid_attrs import InvalidAttrSet
from dqrepair.models.repaired_cell import RepairedCell, RepairOutput
from dqrepair.models.schema import Attr
from dqrepair.services.engine import RepairEngine


def _run(records, config: RepairConfig | None = None) -> tuple[RepairEngine, RepairOutput]:
    engine = RepairEngine(config)
    engine.ingest_all(records)
    engine.finish_ingestion()
    return engine, engine.repair()


def test_majority_vote_repairs_minority_record(make_record):
    _, out = _run([
        make_record(1, "c1", FNAME="Anne"),
        make_record(2, "c1", FNAME="Ann"),
        make_record(3, "c1", FNAME="Anne"),
    ])
    assert out.as_set() == {RepairedCell(2, "FNAME", "Anne")}


def test_majority_vote_tie_goes_to_canonical_record(make_record):
    _, out = _run([
        make_record(1, "c1", CITY="Chicago"),
        make_record(2, "c1", CITY="Evanston"),
    ])
    assert out.as_set() == {RepairedCell(2, "CITY", "Chicago")}


def test_auto_repair_can_be_disabled(make_record):
    engine, out = _run(
        [make_record(1, "c1", FNAME="Anne"), make_record(2, "c1", FNAME="Ann")],
        RepairConfig.default(auto_repair=frozenset()),
    )
    assert len(out) == 0
    assert list(engine.unresolved["c1"]) == [Attr.FNAME]


def test_clean_dataset_produces_no_corrections(make_record):
    engine, out = _run([make_record(1, "c1"), make_record(2, "c1"), make_record(3, "c2", SSN="222222222")])
    assert len(out) == 0
    assert engine.unresolved == {}


def test_ssn_repaired_from_entity_duplicates(make_record):
    _, out = _run([
        make_record(1, "c1"),
        make_record(2, "c1"),
        make_record(3, "c1", SSN="12345678x"),
    ])
    assert out.as_set() == {RepairedCell(3, "SSN", "123456789")}


def test_ssn_owned_by_other_entity_is_not_chosen(make_record):
    _, out = _run([
        make_record(1, "c2", SSN="222222222"),
        make_record(2, "c1", SSN="111111111"),
        make_record(3, "c1", SSN="222222222"),
    ])
    assert out.as_set() == {RepairedCell(3, "SSN", "111111111")}


def test_ssn_without_valid_candidate_stays_unresolved(make_record):
    engine, out = _run([make_record(1, "c1", SSN="12")])
    assert len(out) == 0
    assert list(engine.unresolved["c1"]) == [Attr.SSN]


def test_salary_repaired_from_jointly_valid_pairs(make_record):
    _, out = _run([
        make_record(1, "c1"),
        make_record(2, "c1"),
        make_record(3, "c1", SALARY="5000"),
    ])
    assert out.as_set() == {RepairedCell(3, "SALARY", "50000")}


def test_tax_estimated_from_state_index(make_record):
    _, out = _run([
        make_record(1, "a", SSN="100000001", SALARY="40000", TAX="2000"),
        make_record(2, "b", SSN="100000002", SALARY="80000", TAX="8000"),
        make_record(3, "e", SSN="100000003", SALARY="45000", TAX="abc"),
    ])
    assert out.as_set() == {RepairedCell(3, "TAX", "2250")}


def test_salary_estimated_from_state_index(make_record):
    _, out = _run([
        make_record(1, "a", SSN="100000001", SALARY="40000", TAX="2000"),
        make_record(2, "b", SSN="100000002", SALARY="80000", TAX="8000"),
        make_record(3, "e", SSN="100000003", SALARY="", TAX="7000"),
    ])
    assert out.as_set() == {RepairedCell(3, "SALARY", "70000")}


def test_state_index_only_uses_same_state(make_record):
    engine, out = _run([
        make_record(1, "a", SSN="100000001", STATE="CA", SALARY="40000", TAX="2000"),
        make_record(2, "e", SSN="100000003", SALARY="45000", TAX="abc"),
    ])
    assert len(out) == 0
    assert list(engine.unresolved["e"]) == [Attr.TAX]


def test_dataset_pass_copies_salary_tax_via_ssn_link(make_record):
    engine, out = _run([
        make_record(1, "e", SSN="333333333", SALARY="x", TAX="y"),
        make_record(2, "g", SSN="333333333", SALARY="60000", TAX="3000"),
    ])
    assert out.as_set() == {
        RepairedCell(1, "SALARY", "60000"),
        RepairedCell(1, "TAX", "3000"),
    }
    assert engine.unresolved == {}


def test_dataset_pass_does_not_chain_pending_entities(make_record):
    engine, out = _run([
        make_record(1, "e", SSN="333333333", SALARY="x", TAX="y"),
        make_record(2, "f", SSN="333333333", SALARY="x", TAX="y"),
    ])
    assert len(out) == 0
    assert set(engine.unresolved) == {"e", "f"}


def test_birth_age_repaired_from_jointly_valid_pairs(make_record):
    _, out = _run([
        make_record(1, "c1"),
        make_record(2, "c1"),
        make_record(3, "c1", AGE="54"),
    ])
    assert out.as_set() == {RepairedCell(3, "AGE", "45")}


def test_age_derived_from_valid_birth(make_record):
    _, out = _run([make_record(1, "c1", AGE="abc")])
    assert out.as_set() == {RepairedCell(1, "AGE", "45")}


def test_birth_and_age_taken_from_different_records(make_record):
    _, out = _run([
        make_record(1, "c1", BIRTH="4-12-2020", AGE="45"),
        make_record(2, "c1", BIRTH="4-12-1970", AGE="x"),
    ])
    # 2020 年生は基準年より後なので無効
    assert out.as_set() == {
        RepairedCell(1, "BIRTH", "4-12-1970"),
        RepairedCell(2, "AGE", "45"),
    }


def test_birth_taken_from_raw_consistent_with_valid_age(make_record):
    _, out = _run([
        make_record(1, "c1", BIRTH="4-12-1970", AGE="30"),
        make_record(2, "c1", BIRTH="bad", AGE="45"),
    ])
    assert out.as_set() == {
        RepairedCell(1, "AGE", "45"),
        RepairedCell(2, "BIRTH", "4-12-1970"),
    }


def test_address_repaired_from_valid_triples(make_record):
    _, out = _run([
        make_record(1, "c1"),
        make_record(2, "c1"),
        make_record(3, "c1", APMT="1A2"),
    ])
    assert out.as_set() == {RepairedCell(3, "APMT", "1a2")}


def test_address_without_evidence_is_not_guessed(make_record):
    engine, out = _run([make_record(1, "c1", STNUM="12345", APMT="4A5")])
    assert len(out) == 0
    assert set(engine.unresolved["c1"]) == {Attr.STADD, Attr.STNUM, Attr.APMT}


def test_repair_is_idempotent(make_record):
    engine = RepairEngine()
    engine.ingest_all([
        make_record(1, "c1", FNAME="Anne"),
        make_record(2, "c1", FNAME="Ann", AGE="54"),
        make_record(3, "c1", SSN="12345678x"),
        make_record(4, "c2", SSN="222222222", TAX="abc"),
    ])
    engine.finish_ingestion()
    before = {cuid: flags.copy() for cuid, flags in engine.invalid.items()}

    first = engine.repair().as_set()
    second = engine.repair().as_set()

    assert first == second
    assert len(first) > 0
    assert engine.invalid == before


def test_repair_into_shared_output_is_stable(make_record):
    engine = RepairEngine()
    engine.ingest_all([make_record(1, "c1", FNAME="Anne"), make_record(2, "c1", FNAME="Ann")])
    engine.finish_ingestion()
    out = RepairOutput()
    engine.repair(out)
    engine.repair(out)
    assert out.as_set() == {RepairedCell(2, "FNAME", "Anne")}


def test_on_entity_callback_sees_each_invalid_entity(make_record):
    engine = RepairEngine()
    engine.ingest_all([
        make_record(1, "c1", ZIP="x"),
        make_record(2, "c2", SSN="222222222"),
        make_record(3, "c3", SSN="333333333", CITY="1"),
    ])
    engine.finish_ingestion()
    seen: list[str] = []
    engine.repair(on_entity=lambda e: seen.append(e.cuid))
    assert seen == ["c1", "c3"]


@pytest.mark.parametrize("attr", [Attr.FNAME, Attr.LNAME, Attr.ZIP])
def test_single_record_atomic_failure_keeps_value(make_record, attr):
    # 単独レコードでは多数決の結果は自分自身の値
    engine, out = _run([make_record(1, "c1", **{attr.name: "9"})])
    assert len(out) == 0
    assert engine.unresolved == {}
    assert engine.invalid["c1"] == InvalidAttrSet([attr])
