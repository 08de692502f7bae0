"""Core constants used across Intake modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".intake")
OBJECTS_DIR_NAME = "objects"
JOBS_DIR_NAME = "jobs"
RECORDS_DIR_NAME = "records"
JOB_STATE_FILE_NAME = "job.json"
JOB_INDEX_FILE_NAME = "index.json"
RECORDS_FILE_SUFFIX = ".jsonl"
LANCE_DIR_NAME = "records.lance"
DEFAULT_BATCH_SIZE = 100
DEFAULT_RECORD_BACKEND = "jsonl"
SUPPORTED_RECORD_BACKENDS = ("jsonl", "lance")
STREAM_CHUNK_SIZE = 64 * 1024
MIN_FIELD_COUNT = 2
MIN_AGE = 0
MAX_AGE = 150
RETAINED_ERROR_SAMPLES = 50
SURFACED_ERROR_SAMPLES = 10
ERROR_SNIPPET_LENGTH = 100
HEADER_LINE_OFFSET = 1
EMPTY_ROW_LINE = ",,,"
ERROR_CATEGORIES = (
    "missing_fields",
    "invalid_email",
    "invalid_age",
    "malformed_line",
    "other",
)
