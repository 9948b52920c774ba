from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Optional, Sequence

from src.errors.api import AlreadyRunningError, InvalidInputError, InvalidTransitionError
from .model import Job, JobSnapshot, JobStatus, generate_job_id
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

# A job that is not Completed never reports 100%.
MAX_RUNNING_PROGRESS = 99.9


class JobStore:
    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._job: Optional[Job] = None

    def submit(self, main_file: str, additional_files: Sequence[str], output_path: str, batch: bool = False) -> str:
        if not main_file:
            raise InvalidInputError("main file is required")
        if not additional_files:
            raise InvalidInputError("at least one additional file is required")
        if not output_path:
            raise InvalidInputError("output path is required")

        with self._lock.write_locked():
            if self._job is not None and not self._job.status.is_terminal:
                raise AlreadyRunningError(self._job.id)
            job = Job(
                id=generate_job_id(),
                main_file=main_file,
                additional_files=tuple(additional_files),
                output_path=output_path,
                batch=batch,
            )
            self._job = job
        logger.info("job %s submitted (%d files)", job.id, job.total_files)
        return job.id

    def current(self) -> Optional[JobSnapshot]:
        with self._lock.read_locked():
            return self._job

    def is_running(self) -> bool:
        with self._lock.read_locked():
            return self._job is not None and not self._job.status.is_terminal

    def update_progress(self, job_id: str, pct: float) -> None:
        with self._lock.write_locked():
            job = self._get(job_id)
            if job is None or job.status is not JobStatus.RUNNING:
                return
            pct = min(max(pct, 0.0), 100.0)
            pct = min(pct, MAX_RUNNING_PROGRESS)
            if pct > job.progress:
                self._job = dataclasses.replace(job, progress=pct)

    def mark_running(self, job_id: str) -> None:
        with self._lock.write_locked():
            job = self._require(job_id)
            if job.status is not JobStatus.PENDING:
                raise InvalidTransitionError(job_id, job.status.value, JobStatus.RUNNING.value)
            self._job = dataclasses.replace(job, status=JobStatus.RUNNING)

    def mark_completed(self, job_id: str) -> None:
        with self._lock.write_locked():
            job = self._require(job_id)
            if job.status is not JobStatus.RUNNING:
                raise InvalidTransitionError(job_id, job.status.value, JobStatus.COMPLETED.value)
            self._job = dataclasses.replace(
                job, status=JobStatus.COMPLETED, progress=100.0, completed_at=datetime.now()
            )
        logger.info("job %s completed", job_id)

    def mark_failed(self, job_id: str, error: str) -> bool:
        """Returns False when the job was already terminal (first failure wins)."""
        with self._lock.write_locked():
            job = self._get(job_id)
            if job is None or job.status.is_terminal:
                return False
            self._job = dataclasses.replace(
                job, status=JobStatus.FAILED, error=str(error), completed_at=datetime.now()
            )
        logger.info("job %s failed: %s", job_id, error)
        return True

    def clear_terminal(self) -> bool:
        with self._lock.write_locked():
            if self._job is not None and self._job.status.is_terminal:
                self._job = None
                return True
            return False

    def _get(self, job_id: str) -> Optional[Job]:
        if self._job is not None and self._job.id == job_id:
            return self._job
        return None

    def _require(self, job_id: str) -> Job:
        job = self._get(job_id)
        if job is None:
            raise InvalidTransitionError(job_id, "missing", "any")
        return job
