from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class JobStatus(Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_job_counter = itertools.count(1)


def generate_job_id() -> str:
    return f"job_{next(_job_counter)}_{time.time_ns()}"


@dataclass(frozen=True)
class Job:
    """Immutable view of one merge request. The store swaps whole instances."""

    id: str
    main_file: str
    additional_files: Tuple[str, ...]
    output_path: str
    status: JobStatus = JobStatus.PENDING
    progress: float = 0.0
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    batch: bool = False

    @property
    def all_files(self) -> Tuple[str, ...]:
        return (self.main_file,) + self.additional_files

    @property
    def total_files(self) -> int:
        return 1 + len(self.additional_files)

    @property
    def cancelled(self) -> bool:
        return self.status is JobStatus.FAILED and self.error is not None and "cancelled by user" in self.error


# Readers only ever see frozen Job instances.
JobSnapshot = Job
