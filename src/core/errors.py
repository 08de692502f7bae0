"""Intake exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class IntakeError(Exception):
    """Base exception for all Intake failures."""


class IntakeConfigError(IntakeError):
    """Raised for invalid runtime configuration."""


class IntakeIngestError(IntakeError):
    """Raised for stream-level read and decode failures."""


class IntakeStoreError(IntakeError):
    """Raised for job, record, and object store failures."""


class IntakeSourceNotFoundError(IntakeStoreError):
    """Raised when a stored object name does not exist."""


class IntakeJobError(IntakeError):
    """Raised for unknown jobs and illegal job state transitions."""
