"""Shared typed models.

This module defines immutable data models used by ingest, store,
job dispatch, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Mapping

ErrorCategory = Literal[
    "missing_fields",
    "invalid_email",
    "invalid_age",
    "malformed_line",
    "other",
]


@dataclass(frozen=True)
class IntakeRecord:
    """One validated input row ready for persistence.

    Attributes:
        name: Trimmed non-empty name.
        email: Trimmed, lower-cased email address.
        age: Parsed age in [0, 150], or None when absent.
        department: Trimmed department, or None when absent.
        uploaded_file_id: Identifier of the source upload.
        processed_at: UTC timestamp of validation.
    """

    name: str
    email: str
    age: int | None
    department: str | None
    uploaded_file_id: str
    processed_at: datetime


@dataclass(frozen=True)
class ValidRecord:
    """Successful field validation outcome."""

    record: IntakeRecord


@dataclass(frozen=True)
class ValidationFailure:
    """Failed field validation outcome.

    Attributes:
        category: Error category counted for the failure.
        message: Human readable failure reason.
    """

    category: ErrorCategory
    message: str


ValidationOutcome = ValidRecord | ValidationFailure


@dataclass(frozen=True)
class ErrorSample:
    """Sampled detail for one rejected line.

    Attributes:
        line: One-based line number in the source file, header included.
        error: Failure message.
        data: Leading characters of the trimmed raw line.
    """

    line: int
    error: str
    data: str


@dataclass(frozen=True)
class IngestPerformance:
    """Timing figures for one ingestion run."""

    elapsed_seconds: float
    lines_per_second: float


@dataclass(frozen=True)
class IngestResult:
    """Outcome summary of one ingestion run.

    Attributes:
        total_lines: Data lines counted, header and skipped lines excluded.
        successful_inserts: Records persisted through bulk inserts.
        failed_lines: Lines rejected by validation.
        success_rate: Integer percentage of successful lines.
        error_categories: Failure counts keyed by category.
        errors: Up to ten sampled failures in file order.
        performance: Run timing figures.
    """

    total_lines: int
    successful_inserts: int
    failed_lines: int
    success_rate: int
    error_categories: Mapping[ErrorCategory, int]
    errors: tuple[ErrorSample, ...]
    performance: IngestPerformance | None = None

    @property
    def summary(self) -> str:
        """Human readable one-line outcome."""
        return (
            f"Processed {self.successful_inserts}/{self.total_lines} records successfully "
            f"({self.success_rate}% success rate)"
        )


@dataclass(frozen=True)
class UploadedFile:
    """Stored upload reference.

    Attributes:
        file_id: Generated upload identifier.
        source_name: Object name in the object store.
        original_name: Client-side file name.
        size: Stored size in bytes.
    """

    file_id: str
    source_name: str
    original_name: str
    size: int

