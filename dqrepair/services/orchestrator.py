from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import AppConfig
from ..feed.reader import FeedHeaderError, FeedReadError, iter_records, read_feed
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.processing_result import ProcessingResult
from ..models.run_context import RunContext
from ..output.writer import write_repairs
from .engine import DuplicateRuidError, RepairEngine
from .progress import ProgressTracker

"""Run orchestration: read -> ingest -> barrier -> repair -> write.

The feed is read completely before anything is ingested, and ingestion completes
before the repair pass starts. A feed that cannot be read aborts the run before
any repair; row-level problems only produce error records.
"""

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal run error (feed unreadable, output not writable)."""


def process_feed(config: AppConfig, context: RunContext | None = None) -> ProcessingResult:
    """Run one complete repair over `config.source_file`.

    Args:
        config: loaded application configuration
        context: optional shared context filled with repairs, entities and column names

    Returns:
        ProcessingResult with the run counters

    Raises:
        ProcessingError: feed missing/unreadable/headerless, or output not writable
    """
    start_time = datetime.now(UTC)
    source = Path(config.source_file)
    if context is None:
        context = RunContext()
    context.source_file = source
    error_log = ErrorLogBuffer(Path(config.error_log_dir))

    try:
        feed = read_feed(source, config.separator)
    except (FeedReadError, FeedHeaderError) as e:
        raise ProcessingError(str(e)) from e
    context.column_names = feed.column_names
    logger.info(f"feed {source.name}: {feed.row_count} rows, {len(feed.column_names.names)} columns")

    engine = RepairEngine(config.to_repair_config())
    errors: list[ErrorRecord] = []
    ingested = 0
    with ProgressTracker(feed.row_count, description="Ingesting", unit="row") as progress:
        for record in iter_records(feed, errors):
            try:
                engine.ingest(record)
            except DuplicateRuidError as e:
                errors.append(
                    ErrorRecord.create(source.name, record.line_number, str(record.ruid), "DUPLICATE_RUID", str(e))
                )
                continue
            finally:
                progress.advance()
            ingested += 1
    engine.finish_ingestion()
    context.entities = engine.entities

    invalid_entities = engine.invalid_entities()
    logger.info(f"ingested {ingested} rows into {len(engine.entities)} entities; {len(invalid_entities)} need repair")

    with ProgressTracker(len(invalid_entities), description="Repairing", unit="entity") as progress:
        engine.repair(context.repairs, on_entity=lambda _e: progress.advance())
    if engine.unresolved:
        logger.info(f"{len(engine.unresolved)} entities keep unresolved attributes")

    output_path = Path(config.output_file)
    try:
        written = write_repairs(output_path, context.repairs)
    except OSError as e:
        raise ProcessingError(f"cannot write output '{output_path}': {e}") from e
    logger.info(f"wrote {written} repaired cells to {output_path}")

    error_log.extend(errors)
    try:
        log_path = error_log.flush()
    except OSError as e:
        # Don't fail the run after the output has been written
        logger.warning(f"error log not written: {e}")
    else:
        if log_path is not None:
            logger.warning(f"{len(errors)} row problems recorded in {log_path}")

    end_time = datetime.now(UTC)
    return ProcessingResult(
        total_rows=feed.row_count,
        ingested_rows=ingested,
        rejected_rows=feed.row_count - ingested,
        malformed_rows=feed.malformed_count,
        entities=len(engine.entities),
        invalid_entities=len(invalid_entities),
        repaired_cells=len(context.repairs),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        output_path=str(output_path),
    )
