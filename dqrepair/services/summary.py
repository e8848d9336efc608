from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering.

Format:
SUMMARY rows={total} ingested={ingested} rejected={rejected} malformed={malformed}
entities={entities} invalid_entities={invalid} repairs={cells} elapsed_sec={elapsed}
(on one line)
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = ProcessingResult(
        ...     total_rows=10, ingested_rows=9, rejected_rows=1, malformed_rows=0,
        ...     entities=4, invalid_entities=2, repaired_cells=3,
        ...     start_time=t, end_time=t, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(r)
        'SUMMARY rows=10 ingested=9 rejected=1 malformed=0 entities=4 invalid_entities=2 repairs=3 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"ingested={result.ingested_rows} "
        f"rejected={result.rejected_rows} "
        f"malformed={result.malformed_rows} "
        f"entities={result.entities} "
        f"invalid_entities={result.invalid_entities} "
        f"repairs={result.repaired_cells} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
