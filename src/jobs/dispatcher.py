"""Sequential job dispatch loop.

This module owns the in-process drain guard. Enqueueing a job starts a
background drain when none is active; the drain claims pending jobs in
creation order and runs each to completion before claiming the next.
"""

from __future__ import annotations

import threading
from contextlib import closing
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4

from core.constants import DEFAULT_BATCH_SIZE
from core.errors import IntakeJobError
from core.job_types import TERMINAL_STATES, Job
from core.logging_config import get_logger
from core.types import IngestResult
from ingest.batch_writer import RecordSink
from ingest.pipeline import ingest_stream

_LOGGER = get_logger(__name__)


class JobStore(Protocol):
    """Job persistence operations required by the dispatcher."""

    def create(self, job: Job) -> Job: ...

    def save(self, job: Job) -> Job: ...

    def find_by_id(self, job_id: str) -> Job | None: ...

    def claim_next_pending(self, started_at: datetime) -> Job | None: ...


class ObjectSource(Protocol):
    """Readable object lookup by stored name."""

    def get(self, name: str) -> Any: ...


class JobDispatcher:
    """Claim and run ingestion jobs one at a time.

    Each dispatcher owns its own guard, so independent instances never
    share drain state.
    """

    def __init__(
        self,
        job_store: JobStore,
        record_store: RecordSink,
        object_source: ObjectSource,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._job_store = job_store
        self._record_store = record_store
        self._object_source = object_source
        self._batch_size = batch_size
        self._lock = threading.Lock()
        self._draining = False
        self._idle = threading.Event()
        self._idle.set()

    @property
    def is_draining(self) -> bool:
        """Whether a drain is currently active."""
        with self._lock:
            return self._draining

    def enqueue(self, file_id: str, source_name: str, start_drain: bool = True) -> Job:
        """Persist a pending job and start a background drain if idle.

        Args:
            file_id: Identifier of the uploaded file.
            source_name: Object name to stream.
            start_drain: When False, only persist the job for a later ``drain``.

        Returns:
            The created pending job.
        """
        job = Job(
            job_id=str(uuid4()),
            file_id=file_id,
            source_name=source_name,
            state="pending",
            created_at=_utc_now(),
        )
        self._job_store.create(job)
        _LOGGER.info("job_enqueued", job_id=job.job_id, file_id=file_id, source_name=source_name)
        if start_drain and self._acquire_guard():
            thread = threading.Thread(target=self._drain_guarded, name="intake-drain", daemon=True)
            thread.start()
        return job

    def drain(self) -> int:
        """Run pending jobs synchronously until none remain.

        Returns:
            Number of jobs run, or 0 when another drain is already active.
        """
        if not self._acquire_guard():
            return 0
        return self._drain_guarded()

    def run_one(self, job: Job) -> Job:
        """Run one job to a terminal state.

        A pending job is first moved to ``processing``. Any failure from
        streaming or ingest marks the job ``failed`` instead of raising.

        Returns:
            The job in its terminal state.

        Raises:
            IntakeJobError: If the job has already finished.
        """
        if job.state in TERMINAL_STATES:
            raise IntakeJobError(
                f"Job {job.job_id} is already {job.state}. Enqueue a new job to reprocess the file."
            )
        if job.state == "pending":
            job = self._job_store.save(replace(job, state="processing", started_at=_utc_now()))
        _LOGGER.info(
            "job_started", job_id=job.job_id, file_id=job.file_id, source_name=job.source_name
        )
        tracker = _ProgressTracker(self._job_store, job)
        try:
            result = self._ingest(job, tracker)
        except Exception as error:
            message = str(error) or type(error).__name__
            failed = self._job_store.save(
                replace(tracker.job, state="failed", completed_at=_utc_now(), error=message)
            )
            _LOGGER.error("job_failed", job_id=job.job_id, error=message)
            return failed
        completed = self._job_store.save(
            replace(
                tracker.job,
                state="completed",
                completed_at=_utc_now(),
                progress=result.successful_inserts,
                result=result,
            )
        )
        _LOGGER.info("job_completed", job_id=job.job_id, summary=result.summary)
        return completed

    def get_status(self, job_id: str) -> Job | None:
        """Look up one job, or None when unknown."""
        return self._job_store.find_by_id(job_id)

    def wait_for_idle(self, timeout: float | None = None) -> bool:
        """Block until no drain is active.

        Returns:
            False if the timeout elapsed first.
        """
        return self._idle.wait(timeout)

    def _ingest(self, job: Job, tracker: "_ProgressTracker") -> IngestResult:
        stream = self._object_source.get(job.source_name)
        with closing(stream):
            return ingest_stream(
                stream,
                job.file_id,
                self._record_store,
                batch_size=self._batch_size,
                on_flush=tracker.update,
            )

    def _drain_guarded(self) -> int:
        """Drain while holding the guard; the guard is released exactly once."""
        processed = 0
        released = False
        _LOGGER.info("drain_started")
        try:
            while True:
                job, released = self._claim_next_or_release()
                if job is None:
                    break
                self._run_claimed(job)
                processed += 1
        finally:
            if not released:
                self._release_guard()
            _LOGGER.info("drain_finished", jobs_processed=processed)
        return processed

    def _run_claimed(self, job: Job) -> None:
        try:
            self.run_one(job)
        except Exception as error:
            _LOGGER.error("job_outcome_not_saved", job_id=job.job_id, error=str(error))

    def _claim_next_or_release(self) -> tuple[Job | None, bool]:
        """Claim the oldest pending job, releasing the guard when none remain.

        The empty check and the release share the lock with ``_acquire_guard``,
        so a job created concurrently is either claimed here or starts a new drain.
        """
        with self._lock:
            job = self._job_store.claim_next_pending(_utc_now())
            if job is not None:
                _LOGGER.info("job_claimed", job_id=job.job_id, file_id=job.file_id)
                return job, False
            self._draining = False
            self._idle.set()
            return None, True

    def _acquire_guard(self) -> bool:
        with self._lock:
            if self._draining:
                return False
            self._draining = True
            self._idle.clear()
            return True

    def _release_guard(self) -> None:
        with self._lock:
            self._draining = False
            self._idle.set()


class _ProgressTracker:
    """Persist the running insert total on the job after each flush."""

    def __init__(self, job_store: JobStore, job: Job) -> None:
        self._job_store = job_store
        self.job = job

    def update(self, inserted_total: int) -> None:
        self.job = self._job_store.save(replace(self.job, progress=inserted_total))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
