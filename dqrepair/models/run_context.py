from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .entity import EntityGroup
from .repaired_cell import RepairOutput
from .schema import ColumnNames

"""Shared run context.

Handed to the orchestrator by the caller and filled during the run, so that
writers/reporters downstream can read the corrections, the built entity group
and the feed's column mapping without re-reading the feed.
"""

__all__ = [
    "RunContext",
]


@dataclass
class RunContext:
    source_file: Path | None = None
    repairs: RepairOutput = field(default_factory=RepairOutput)
    entities: EntityGroup = field(default_factory=dict)
    column_names: ColumnNames | None = None
