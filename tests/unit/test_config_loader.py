from __future__ import annotations

from pathlib import Path

import pytest

from dqrepair.config.loader import AppConfig, ConfigError, apply_env_overrides, load_config
from dqrepair.models.config_models import DEFAULT_AUTO_REPAIR, DEFAULT_BIRTH_FORMATS
from dqrepair.models.schema import Attr


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_file == "./data/records.txt"
    assert cfg.output_file == "./out/repairs.csv"
    assert cfg.separator == ":"
    assert cfg.reference_year == 2015
    assert cfg.birth_formats == DEFAULT_BIRTH_FORMATS
    assert cfg.auto_repair == DEFAULT_AUTO_REPAIR
    assert cfg.error_log_dir == "./logs"


def test_load_config_missing_file(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    with pytest.raises(ConfigError, match="not found"):
        load_config(missing)


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("output_file: ./out/repairs.csv\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_unknown_attribute(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "auto_repair: [FNAME, NICKNAME]\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


@pytest.mark.parametrize("name", ["SSN", "BIRTH", "AGE", "SALARY", "TAX", "STADD", "STNUM", "APMT"])
def test_load_config_rejects_attribute_with_dedicated_repairer(write_config: Path, name: str):
    text = write_config.read_text(encoding="utf-8") + f"auto_repair: [FNAME, {name}]\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("source_file: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config)


def test_load_config_non_mapping_root(write_config: Path):
    write_config.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(write_config)


def test_load_config_overrides(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + (
        "auto_repair: [FNAME, ZIP]\n"
        'birth_formats: ["%Y-%m-%d"]\n'
    )
    write_config.write_text(text, encoding="utf-8")
    cfg = load_config(write_config)
    assert cfg.auto_repair == frozenset({Attr.FNAME, Attr.ZIP})
    assert cfg.birth_formats == ("%Y-%m-%d",)

    repair_config = cfg.to_repair_config()
    assert repair_config.is_auto_repair(Attr.ZIP) is True
    assert repair_config.is_auto_repair(Attr.CITY) is False
    assert repair_config.birth_formats == ("%Y-%m-%d",)


def test_apply_env_overrides(monkeypatch):
    cfg = AppConfig(source_file="a.txt", output_file="b.csv")
    monkeypatch.setenv("DQREPAIR_SOURCE_FILE", "/tmp/in.txt")
    monkeypatch.delenv("DQREPAIR_OUTPUT_FILE", raising=False)
    out = apply_env_overrides(cfg)
    assert out.source_file == "/tmp/in.txt"
    assert out.output_file == "b.csv"
    assert cfg.source_file == "a.txt"
