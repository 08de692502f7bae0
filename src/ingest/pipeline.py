"""Ingest orchestration for uploaded delimited files.

This module drives one streamed object through line parsing, field
validation, and batched persistence, and summarizes the run.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from core.constants import (
    DEFAULT_BATCH_SIZE,
    EMPTY_ROW_LINE,
    ERROR_CATEGORIES,
    ERROR_SNIPPET_LENGTH,
    HEADER_LINE_OFFSET,
    RETAINED_ERROR_SAMPLES,
    STREAM_CHUNK_SIZE,
    SURFACED_ERROR_SAMPLES,
)
from core.logging_config import get_logger
from core.types import (
    ErrorCategory,
    ErrorSample,
    IngestPerformance,
    IngestResult,
    ValidationFailure,
    ValidationOutcome,
)
from ingest.batch_writer import BatchWriter, RecordSink
from ingest.field_validation import validate_fields
from ingest.line_parser import parse_line
from ingest.line_reader import iter_stream_lines

_LOGGER = get_logger(__name__)


@dataclass
class IngestStats:
    """Mutable per-run counters."""

    total_lines: int = 0
    failed_lines: int = 0
    error_categories: dict[ErrorCategory, int] = field(
        default_factory=lambda: {category: 0 for category in ERROR_CATEGORIES}
    )
    samples: list[ErrorSample] = field(default_factory=list)

    def record_failure(self, failure: ValidationFailure, line: str) -> None:
        """Count one rejected line and keep a sample while under the cap."""
        self.failed_lines += 1
        self.error_categories[failure.category] += 1
        if len(self.samples) < RETAINED_ERROR_SAMPLES:
            self.samples.append(
                ErrorSample(
                    line=self.total_lines + HEADER_LINE_OFFSET,
                    error=failure.message,
                    data=line[:ERROR_SNIPPET_LENGTH],
                )
            )


class StreamIngestRunner:
    """Stateful runner for one streamed ingest."""

    def __init__(
        self,
        file_id: str,
        sink: RecordSink,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_flush: Callable[[int], None] | None = None,
        chunk_size: int = STREAM_CHUNK_SIZE,
    ) -> None:
        self._file_id = file_id
        self._writer = BatchWriter(sink, batch_size=batch_size, on_flush=on_flush)
        self._chunk_size = chunk_size
        self._stats = IngestStats()

    def run(self, stream: Any) -> IngestResult:
        """Consume the stream and return the run summary.

        Raises:
            IntakeIngestError: If the stream cannot be read.
            IntakeStoreError: If a bulk insert fails.
        """
        started_at = time.monotonic()
        lines = iter_stream_lines(stream, self._chunk_size)
        next(lines, None)
        for raw_line in lines:
            self._process_line(raw_line)
        self._writer.flush()
        elapsed_seconds = time.monotonic() - started_at
        result = self._build_result(elapsed_seconds)
        _log_ingest_summary(self._file_id, result)
        return result

    def _process_line(self, raw_line: str) -> None:
        line = raw_line.strip()
        if not line or line == EMPTY_ROW_LINE:
            return
        self._stats.total_lines += 1
        outcome = _validate_line(line, self._file_id)
        if isinstance(outcome, ValidationFailure):
            self._stats.record_failure(outcome, line)
            _LOGGER.debug(
                "line_rejected",
                file_id=self._file_id,
                line=self._stats.total_lines + HEADER_LINE_OFFSET,
                category=outcome.category,
                error=outcome.message,
            )
            return
        self._writer.add(outcome.record)

    def _build_result(self, elapsed_seconds: float) -> IngestResult:
        stats = self._stats
        successful_inserts = self._writer.inserted_count
        return IngestResult(
            total_lines=stats.total_lines,
            successful_inserts=successful_inserts,
            failed_lines=stats.failed_lines,
            success_rate=compute_success_rate(successful_inserts, stats.total_lines),
            error_categories=dict(stats.error_categories),
            errors=tuple(stats.samples[:SURFACED_ERROR_SAMPLES]),
            performance=IngestPerformance(
                elapsed_seconds=round(elapsed_seconds, 3),
                lines_per_second=_lines_per_second(stats.total_lines, elapsed_seconds),
            ),
        )


def ingest_stream(
    stream: Any,
    file_id: str,
    sink: RecordSink,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_flush: Callable[[int], None] | None = None,
) -> IngestResult:
    """Parse, validate, and persist every data line of a stream.

    The first line is treated as a header and discarded. Per-line failures
    are counted and sampled in the result rather than raised.

    Args:
        stream: Binary stream exposing ``read(size)``.
        file_id: Upload identifier stamped on every record.
        sink: Record store receiving bulk inserts.
        batch_size: Records per bulk insert.
        on_flush: Optional callback receiving the running insert total.

    Returns:
        Run summary with counts, categories, and sampled errors.

    Raises:
        IntakeIngestError: If the stream cannot be read.
        IntakeStoreError: If a bulk insert fails.
    """
    runner = StreamIngestRunner(file_id, sink, batch_size=batch_size, on_flush=on_flush)
    return runner.run(stream)


def compute_success_rate(successful: int, total: int) -> int:
    """Return the rounded success percentage, 0 for an empty run."""
    if total <= 0:
        return 0
    return int(math.floor(successful / total * 100 + 0.5))


def _validate_line(line: str, file_id: str) -> ValidationOutcome:
    """Parse and validate one trimmed line, classifying unexpected errors."""
    try:
        return validate_fields(parse_line(line), file_id)
    except Exception as error:
        return ValidationFailure(category="other", message=str(error) or type(error).__name__)


def _lines_per_second(total_lines: int, elapsed_seconds: float) -> float:
    if elapsed_seconds <= 0:
        return 0.0
    return round(total_lines / elapsed_seconds, 1)


def _log_ingest_summary(file_id: str, result: IngestResult) -> None:
    """Log run completion with contextual metadata."""
    _LOGGER.info(
        "ingest_summary",
        file_id=file_id,
        total_lines=result.total_lines,
        successful_inserts=result.successful_inserts,
        failed_lines=result.failed_lines,
        success_rate=result.success_rate,
        error_categories=dict(result.error_categories),
    )
