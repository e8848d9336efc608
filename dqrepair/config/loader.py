from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_AUTO_REPAIR, DEFAULT_BIRTH_FORMATS, DEFAULT_REFERENCE_YEAR, RepairConfig
from ..models.schema import Attr

"""Config loader.

Responsibilities:
- Load the YAML run configuration (default config/repair.yml)
- Validate it against the packaged JSON schema
- Apply defaults and environment overrides for the input/output paths
- Convert to the per-run RepairConfig handed to the engine
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/repair.yml")

ENV_SOURCE_FILE = "DQREPAIR_SOURCE_FILE"
ENV_OUTPUT_FILE = "DQREPAIR_OUTPUT_FILE"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    source_file: str
    output_file: str
    separator: str = ":"
    reference_year: int = DEFAULT_REFERENCE_YEAR
    birth_formats: tuple[str, ...] = DEFAULT_BIRTH_FORMATS
    auto_repair: frozenset[Attr] = DEFAULT_AUTO_REPAIR
    error_log_dir: str = "./logs"

    def to_repair_config(self) -> RepairConfig:
        return RepairConfig.default(
            auto_repair=self.auto_repair,
            reference_year=self.reference_year,
            birth_formats=self.birth_formats,
            separator=self.separator,
        )


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or not JSON, or the data violates it
            (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def apply_env_overrides(cfg: AppConfig) -> AppConfig:
    """Environment (typically loaded from .env) takes precedence over the YAML paths."""
    source = os.getenv(ENV_SOURCE_FILE)
    output = os.getenv(ENV_OUTPUT_FILE)
    if source:
        cfg = replace(cfg, source_file=source)
    if output:
        cfg = replace(cfg, output_file=output)
    return cfg


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    auto_repair = DEFAULT_AUTO_REPAIR
    if "auto_repair" in data:
        auto_repair = frozenset(Attr[name] for name in data["auto_repair"])
    return AppConfig(
        source_file=data["source_file"],
        output_file=data["output_file"],
        separator=data.get("separator", ":"),
        reference_year=data.get("reference_year", DEFAULT_REFERENCE_YEAR),
        birth_formats=tuple(data.get("birth_formats", DEFAULT_BIRTH_FORMATS)),
        auto_repair=auto_repair,
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
