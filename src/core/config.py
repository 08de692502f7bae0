"""Runtime configuration model for Intake.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DATA_ROOT,
    DEFAULT_RECORD_BACKEND,
    SUPPORTED_RECORD_BACKENDS,
)
from core.errors import IntakeConfigError


@dataclass(frozen=True)
class IntakeConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for jobs, records, and local objects.
        object_store_uri: Optional ``s3://bucket/prefix`` holding uploaded files.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        batch_size: Number of validated records flushed per bulk insert.
        record_backend: Record store backend name (``jsonl`` or ``lance``).
    """

    data_root: Path
    object_store_uri: str | None
    s3_region: str | None
    s3_profile: str | None
    batch_size: int = DEFAULT_BATCH_SIZE
    record_backend: str = DEFAULT_RECORD_BACKEND

    @classmethod
    def from_env(cls) -> "IntakeConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            IntakeConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("INTAKE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        object_store_uri = os.getenv("INTAKE_OBJECT_STORE_URI") or None
        s3_region = os.getenv("INTAKE_S3_REGION")
        s3_profile = os.getenv("INTAKE_S3_PROFILE")
        batch_size = _parse_batch_size(os.getenv("INTAKE_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)))
        record_backend = _parse_record_backend(
            os.getenv("INTAKE_RECORD_BACKEND", DEFAULT_RECORD_BACKEND)
        )
        if object_store_uri and not object_store_uri.startswith("s3://"):
            raise IntakeConfigError(
                f"Invalid INTAKE_OBJECT_STORE_URI value '{object_store_uri}': "
                "expected s3://bucket/prefix. Unset it to use the local object directory."
            )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            object_store_uri=object_store_uri,
            s3_region=s3_region,
            s3_profile=s3_profile,
            batch_size=batch_size,
            record_backend=record_backend,
        )


def _parse_batch_size(raw_value: str) -> int:
    """Parse the batch size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive batch size.

    Raises:
        IntakeConfigError: If value is not a positive integer.
    """
    try:
        batch_size = int(raw_value)
    except ValueError as error:
        raise IntakeConfigError(
            "Invalid INTAKE_BATCH_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set INTAKE_BATCH_SIZE to a positive number."
        ) from error
    if batch_size < 1:
        raise IntakeConfigError(
            f"Invalid INTAKE_BATCH_SIZE value: expected at least 1, got {batch_size}."
        )
    return batch_size


def _parse_record_backend(raw_value: str) -> str:
    """Validate the record backend name."""
    backend = raw_value.strip().lower()
    if backend not in SUPPORTED_RECORD_BACKENDS:
        raise IntakeConfigError(
            f"Invalid INTAKE_RECORD_BACKEND value '{raw_value}'. "
            f"Supported backends: {', '.join(SUPPORTED_RECORD_BACKENDS)}."
        )
    return backend
