"""Public SDK surface for Intake.

This module provides a stable import path for SDK users.
It re-exports the primary client and typed models.
"""

from __future__ import annotations

from core.config import IntakeConfig
from core.job_types import Job, JobState
from core.types import ErrorSample, IngestResult, IntakeRecord, UploadedFile
from ingest.pipeline import ingest_stream
from jobs.dispatcher import JobDispatcher
from jobs.intake_client import IntakeClient

__all__ = [
    "ErrorSample",
    "IngestResult",
    "IntakeClient",
    "IntakeConfig",
    "IntakeRecord",
    "Job",
    "JobDispatcher",
    "JobState",
    "UploadedFile",
    "ingest_stream",
]
