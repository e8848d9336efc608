from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Run result model for the repair tool.

Aggregated counters of one run, used for the SUMMARY line and the CLI exit code.
"""


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of one ingest + repair run."""
    total_rows: int  # data lines read from the feed
    ingested_rows: int  # rows that reached an entity
    rejected_rows: int  # rows dropped before ingestion (bad ruid/cuid, duplicate ruid)
    malformed_rows: int  # data lines with a wrong column count
    entities: int
    invalid_entities: int  # entities with at least one invalid flag after ingestion
    repaired_cells: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    output_path: str | None = None

    @property
    def has_rejections(self) -> bool:
        return self.rejected_rows > 0
