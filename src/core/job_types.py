"""Typed job lifecycle models and validation helpers.

This module defines job states, the allowed transition table, and the
payload parsing used by the job store and status lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, cast

from core.constants import ERROR_CATEGORIES
from core.errors import IntakeJobError, IntakeStoreError
from core.types import ErrorCategory, ErrorSample, IngestPerformance, IngestResult

JobState = Literal["pending", "processing", "completed", "failed"]
ALLOWED_STATE_TRANSITIONS: dict[JobState, tuple[JobState, ...]] = {
    "pending": ("processing",),
    "processing": ("completed", "failed"),
    "completed": (),
    "failed": (),
}
TERMINAL_STATES: tuple[JobState, ...] = ("completed", "failed")


@dataclass(frozen=True)
class Job:
    """Persisted ingestion job document.

    Attributes:
        job_id: Generated unique job identifier.
        file_id: Identifier of the uploaded file.
        source_name: Object name of the uploaded file.
        state: Current lifecycle state.
        created_at: UTC creation timestamp.
        started_at: UTC timestamp of the claim, once processing.
        completed_at: UTC timestamp of completion or failure.
        progress: Records persisted so far by the running ingest.
        result: Ingest outcome once completed.
        error: Failure message once failed.
    """

    job_id: str
    file_id: str
    source_name: str
    state: JobState
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    progress: int = 0
    result: IngestResult | None = None
    error: str | None = None


def validate_transition(current: JobState, next_state: JobState) -> None:
    """Validate one lifecycle transition against allowed state machine edges."""
    allowed_states = ALLOWED_STATE_TRANSITIONS[current]
    if next_state not in allowed_states:
        raise IntakeJobError(
            f"Invalid job state transition {current!r} -> {next_state!r}. "
            f"Allowed: {', '.join(allowed_states) or 'none'}."
        )


def job_to_payload(job: Job) -> dict[str, Any]:
    """Serialize a job into a JSON-safe document."""
    return {
        "job_id": job.job_id,
        "file_id": job.file_id,
        "source_name": job.source_name,
        "state": job.state,
        "created_at": job.created_at.isoformat(),
        "started_at": _optional_isoformat(job.started_at),
        "completed_at": _optional_isoformat(job.completed_at),
        "progress": job.progress,
        "result": result_to_payload(job.result) if job.result is not None else None,
        "error": job.error,
    }


def job_from_payload(payload: dict[str, Any], payload_path: Path) -> Job:
    """Deserialize a job document loaded from JSON."""
    raw_result = payload.get("result")
    try:
        return Job(
            job_id=str(payload["job_id"]),
            file_id=str(payload["file_id"]),
            source_name=str(payload["source_name"]),
            state=parse_state(payload.get("state"), payload_path),
            created_at=datetime.fromisoformat(str(payload["created_at"])),
            started_at=_optional_datetime(payload.get("started_at")),
            completed_at=_optional_datetime(payload.get("completed_at")),
            progress=int(payload.get("progress") or 0),
            result=result_from_payload(raw_result) if isinstance(raw_result, dict) else None,
            error=str(payload["error"]) if payload.get("error") is not None else None,
        )
    except KeyError as error:
        raise IntakeStoreError(
            f"Invalid job document at {payload_path}: missing required field {error.args[0]!r}."
        ) from error


def result_to_payload(result: IngestResult) -> dict[str, Any]:
    """Serialize an ingest result in the shape surfaced by status lookups."""
    payload: dict[str, Any] = {
        "total_lines": result.total_lines,
        "successful_inserts": result.successful_inserts,
        "failed_lines": result.failed_lines,
        "success_rate": result.success_rate,
        "error_categories": {
            category: int(result.error_categories.get(category, 0))
            for category in ERROR_CATEGORIES
        },
        "errors": [
            {"line": sample.line, "error": sample.error, "data": sample.data}
            for sample in result.errors
        ],
        "summary": result.summary,
        "performance": None,
    }
    if result.performance is not None:
        payload["performance"] = {
            "elapsed_seconds": result.performance.elapsed_seconds,
            "lines_per_second": result.performance.lines_per_second,
        }
    return payload


def result_from_payload(payload: dict[str, Any]) -> IngestResult:
    """Deserialize an ingest result document."""
    raw_categories = payload.get("error_categories") or {}
    categories = {
        cast(ErrorCategory, category): int(raw_categories.get(category, 0))
        for category in ERROR_CATEGORIES
    }
    samples = tuple(
        ErrorSample(line=int(item["line"]), error=str(item["error"]), data=str(item["data"]))
        for item in payload.get("errors") or []
    )
    raw_performance = payload.get("performance")
    performance = None
    if isinstance(raw_performance, dict):
        performance = IngestPerformance(
            elapsed_seconds=float(raw_performance.get("elapsed_seconds", 0.0)),
            lines_per_second=float(raw_performance.get("lines_per_second", 0.0)),
        )
    return IngestResult(
        total_lines=int(payload.get("total_lines", 0)),
        successful_inserts=int(payload.get("successful_inserts", 0)),
        failed_lines=int(payload.get("failed_lines", 0)),
        success_rate=int(payload.get("success_rate", 0)),
        error_categories=categories,
        errors=samples,
        performance=performance,
    )


def parse_state(raw_state: object, payload_path: Path) -> JobState:
    """Parse one job state value from a persisted document."""
    if isinstance(raw_state, str) and raw_state in ALLOWED_STATE_TRANSITIONS:
        return cast(JobState, raw_state)
    allowed = ", ".join(ALLOWED_STATE_TRANSITIONS.keys())
    raise IntakeStoreError(f"Invalid job state at {payload_path}: expected one of {allowed}.")


def _optional_isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _optional_datetime(raw_value: object) -> datetime | None:
    if raw_value is None:
        return None
    return datetime.fromisoformat(str(raw_value))
