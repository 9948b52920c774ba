from __future__ import annotations

from .jobstore import MAX_RUNNING_PROGRESS, JobStore
from .model import Job, JobSnapshot, JobStatus, generate_job_id
from .rwlock import ReadWriteLock


def new_job_store() -> JobStore:
    """Public API (JobStore)

    Contract:
    - Holds at most one Job.
    - submit fails with AlreadyRunningError while a non-terminal job exists.
    - Forward-only status path Pending -> Running -> Completed|Failed.
    - progress == 100 iff Completed; Failed keeps its last progress.
    - Readers get frozen Job snapshots.
    """
    return JobStore()


__all__ = [
    "Job",
    "JobSnapshot",
    "JobStatus",
    "JobStore",
    "MAX_RUNNING_PROGRESS",
    "ReadWriteLock",
    "generate_job_id",
    "new_job_store",
]
