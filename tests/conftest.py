# Shared pytest fixtures
from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

from dqrepair.models.record import RawRecord
from dqrepair.models.schema import COLUMN_NAMES, Attr

# One row that passes every atomic and composite check (reference year 2015).
VALID_VALUES: dict[str, str] = {
    "FNAME": "Anne",
    "MINIT": "M",
    "LNAME": "Smith",
    "STADD": "Main St.",
    "STNUM": "12",
    "APMT": "1a2",
    "CITY": "Chicago",
    "STATE": "IL",
    "ZIP": "60601",
    "SSN": "123456789",
    "BIRTH": "4-12-1970",
    "AGE": "45",
    "SALARY": "50000",
    "TAX": "2500",
}

HEADER = ":".join(COLUMN_NAMES)

_ENV_PATH_VARS = ("DQREPAIR_SOURCE_FILE", "DQREPAIR_OUTPUT_FILE")


@pytest.fixture(autouse=True)
def _isolate_env_path_vars():
    """Restore the .env path overrides after each test so a loaded .env cannot leak into later tests."""
    saved = {k: os.environ.get(k) for k in _ENV_PATH_VARS}
    yield
    for k, v in saved.items():
        if v is None:
            os.environ.pop(k, None)
        else:
            os.environ[k] = v


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_file: ./data/records.txt
output_file: ./out/repairs.csv
separator: ":"
reference_year: 2015
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "repair.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_record():
    """Factory: RawRecord built from VALID_VALUES with per-attribute overrides."""

    def _make(ruid: int, cuid: str, **overrides: str) -> RawRecord:
        values = {**VALID_VALUES, **overrides}
        return RawRecord(ruid=ruid, cuid=cuid, values=tuple(values[a.name] for a in Attr))

    return _make


@pytest.fixture()
def feed_line():
    """Factory: one ':'-separated feed line in schema column order."""

    def _line(ruid: int | str, cuid: str, **overrides: str) -> str:
        values = {**VALID_VALUES, **overrides}
        return ":".join([str(ruid), cuid, *(values[a.name] for a in Attr)])

    return _line


@pytest.fixture()
def write_feed(temp_workdir: Path):
    """Factory: write header + lines to data/records.txt and return the path."""

    def _write(lines: list[str], header: str = HEADER, name: str = "records.txt") -> Path:
        path = temp_workdir / "data" / name
        path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")
        return path

    return _write
