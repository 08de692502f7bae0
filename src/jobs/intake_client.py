"""Python SDK for upload and job operations.

This module wires configuration to the object, job, and record stores
and exposes upload, submit, and status lookups over one dispatcher.
"""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from core.config import IntakeConfig
from core.errors import IntakeStoreError
from core.job_types import Job
from core.logging_config import get_logger
from core.types import IntakeRecord, UploadedFile
from jobs.dispatcher import JobDispatcher
from store.job_store import FileJobStore
from store.object_source import create_object_source
from store.record_store import create_record_store

_LOGGER = get_logger(__name__)


class IntakeClient:
    """Primary SDK entry point for ingestion workflows."""

    def __init__(self, config: IntakeConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or IntakeConfig.from_env()
        self._object_source = create_object_source(self._config)
        self._record_store = create_record_store(self._config)
        self._dispatcher = JobDispatcher(
            job_store=FileJobStore(self._config.data_root),
            record_store=self._record_store,
            object_source=self._object_source,
            batch_size=self._config.batch_size,
        )

    @property
    def dispatcher(self) -> JobDispatcher:
        """Dispatcher running this client's jobs."""
        return self._dispatcher

    def upload(self, local_path: str | Path) -> UploadedFile:
        """Store a local file in the object store under a generated id.

        Args:
            local_path: File to upload.

        Returns:
            Stored upload reference.

        Raises:
            IntakeStoreError: If the file is missing or the store write fails.
        """
        source_path = Path(local_path).expanduser()
        if not source_path.is_file():
            raise IntakeStoreError(
                f"Cannot upload {source_path}: file does not exist. Provide an existing file."
            )
        file_id = str(uuid4())
        source_name = f"{file_id}-{source_path.name}"
        size = self._object_source.put(source_name, source_path)
        _LOGGER.info("upload_completed", file_id=file_id, source_name=source_name, size=size)
        return UploadedFile(
            file_id=file_id,
            source_name=source_name,
            original_name=source_path.name,
            size=size,
        )

    def submit(self, file_id: str, source_name: str, start_drain: bool = True) -> Job:
        """Enqueue an ingestion job for a stored object.

        Args:
            file_id: Upload identifier.
            source_name: Object name returned by ``upload``.
            start_drain: Whether to start a background drain when idle.

        Returns:
            Created pending job.
        """
        return self._dispatcher.enqueue(file_id, source_name, start_drain=start_drain)

    def drain(self) -> int:
        """Run pending jobs in the foreground and return how many ran."""
        return self._dispatcher.drain()

    def job_status(self, job_id: str) -> Job | None:
        """Look up a job by id.

        Args:
            job_id: Job identifier.

        Returns:
            Job document, or None when unknown.
        """
        return self._dispatcher.get_status(job_id)

    def wait_for_idle(self, timeout: float | None = None) -> bool:
        """Block until queued jobs finish or the timeout elapses."""
        return self._dispatcher.wait_for_idle(timeout)

    def records(self, file_id: str) -> list[IntakeRecord]:
        """Load persisted records of one upload."""
        return self._record_store.read_records(file_id)
