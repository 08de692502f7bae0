"""Job document persistence.

This module stores one JSON document per job under the configured
data-root, plus an index holding every job id in creation order and the
ids still waiting to run.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from core.constants import JOB_INDEX_FILE_NAME, JOB_STATE_FILE_NAME, JOBS_DIR_NAME
from core.errors import IntakeJobError, IntakeStoreError
from core.job_types import (
    TERMINAL_STATES,
    Job,
    job_from_payload,
    job_to_payload,
    validate_transition,
)
from store.json_io import read_json_file, write_json_file


class FileJobStore:
    """Filesystem-backed job store.

    Claims are atomic within one process: the pending lookup and the
    transition to ``processing`` run under the same lock. Pending lookups
    only read documents listed in the pending index, so their cost does
    not grow with finished jobs.
    """

    def __init__(self, data_root: Path) -> None:
        self._jobs_root = data_root.expanduser().resolve() / JOBS_DIR_NAME
        self._jobs_root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def create(self, job: Job) -> Job:
        """Persist a new job document and register it in the index."""
        with self._lock:
            job_path = self._job_path(job.job_id)
            if job_path.exists():
                raise IntakeStoreError(f"Job {job.job_id} already exists at {job_path}.")
            job_path.parent.mkdir(parents=True, exist_ok=True)
            write_json_file(job_path, job_to_payload(job))
            job_ids, pending_ids = self._read_index()
            job_ids.append(job.job_id)
            if job.state == "pending":
                pending_ids.append(job.job_id)
            self._write_index(job_ids, pending_ids)
        return job

    def save(self, job: Job) -> Job:
        """Replace a stored job document, enforcing forward-only state changes."""
        with self._lock:
            current = self.find_by_id(job.job_id)
            if current is None:
                raise IntakeStoreError(f"Cannot save job {job.job_id}: job does not exist.")
            if current.state in TERMINAL_STATES:
                raise IntakeJobError(
                    f"Cannot save job {job.job_id}: job is already {current.state}."
                )
            if current.state != job.state:
                validate_transition(current.state, job.state)
            write_json_file(self._job_path(job.job_id), job_to_payload(job))
            if current.state == "pending" and job.state != "pending":
                self._drop_pending(job.job_id)
        return job

    def find_by_id(self, job_id: str) -> Job | None:
        """Load one job by id, or None when unknown."""
        job_path = self._job_path(job_id)
        if not job_path.exists():
            return None
        payload = read_json_file(job_path)
        if not isinstance(payload, dict):
            raise IntakeStoreError(f"Invalid job document at {job_path}: expected object.")
        return job_from_payload(payload, job_path)

    def find_oldest_pending(self) -> Job | None:
        """Return the earliest created pending job, ties broken by creation order."""
        with self._lock:
            _, pending_ids = self._read_index()
            pending = []
            for position, job_id in enumerate(pending_ids):
                job = self.find_by_id(job_id)
                if job is not None and job.state == "pending":
                    pending.append((job.created_at, position, job))
        if not pending:
            return None
        return min(pending, key=lambda item: (item[0], item[1]))[2]

    def claim_next_pending(self, started_at: datetime) -> Job | None:
        """Atomically select the oldest pending job and mark it processing."""
        with self._lock:
            job = self.find_oldest_pending()
            if job is None:
                return None
            return self.save(replace(job, state="processing", started_at=started_at))

    def list_jobs(self) -> tuple[Job, ...]:
        """List jobs in creation order."""
        job_ids, _ = self._read_index()
        jobs: list[Job] = []
        for job_id in job_ids:
            job = self.find_by_id(job_id)
            if job is not None:
                jobs.append(job)
        return tuple(jobs)

    def _job_path(self, job_id: str) -> Path:
        if not job_id or "/" in job_id or job_id in {".", ".."}:
            raise IntakeStoreError(f"Invalid job id {job_id!r}.")
        return self._jobs_root / job_id / JOB_STATE_FILE_NAME

    def _read_index(self) -> tuple[list[str], list[str]]:
        index_path = self._jobs_root / JOB_INDEX_FILE_NAME
        payload = read_json_file(index_path, default_value={"jobs": [], "pending": []})
        if not isinstance(payload, dict) or not isinstance(payload.get("jobs"), list):
            raise IntakeStoreError(f"Invalid job index format at {index_path}: expected jobs list.")
        pending = payload.get("pending", [])
        if not isinstance(pending, list):
            raise IntakeStoreError(f"Invalid job index format at {index_path}: expected pending list.")
        return [str(item) for item in payload["jobs"]], [str(item) for item in pending]

    def _write_index(self, job_ids: list[str], pending_ids: list[str]) -> None:
        write_json_file(
            self._jobs_root / JOB_INDEX_FILE_NAME,
            {"jobs": job_ids, "pending": pending_ids},
        )

    def _drop_pending(self, job_id: str) -> None:
        job_ids, pending_ids = self._read_index()
        if job_id in pending_ids:
            pending_ids.remove(job_id)
            self._write_index(job_ids, pending_ids)
