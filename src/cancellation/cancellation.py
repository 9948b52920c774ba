from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List

from src.errors.api import CancelTimeoutError, UnknownJobError
from src.jobstore.rwlock import ReadWriteLock
from .model import CancelHandle, CleanupTask

logger = logging.getLogger(__name__)

POLL_INTERVAL: float = 0.1


class CancellationRegistry:
    def __init__(self, is_running: Callable[[], bool], poll_interval: float = POLL_INTERVAL) -> None:
        self._is_running = is_running
        self._poll_interval = poll_interval
        self._handles: Dict[str, CancelHandle] = {}
        self._handles_lock = ReadWriteLock()
        self._cleanup: List[CleanupTask] = []
        self._cleanup_lock = threading.Lock()

    def register(self, job_id: str, handle: CancelHandle) -> None:
        with self._handles_lock.write_locked():
            self._handles[job_id] = handle

    def is_registered(self, job_id: str) -> bool:
        with self._handles_lock.read_locked():
            return job_id in self._handles

    def add_cleanup(self, task: CleanupTask) -> None:
        with self._cleanup_lock:
            self._cleanup.append(task)

    def pending_cleanup(self) -> List[str]:
        with self._cleanup_lock:
            return [t.description for t in self._cleanup]

    def cancel(self, job_id: str) -> None:
        with self._handles_lock.write_locked():
            handle = self._handles.pop(job_id, None)
        if handle is None:
            raise UnknownJobError(job_id)

        logger.info("cancelling job %s", job_id)
        handle()
        self.run_cleanup()

    def cancel_all(self) -> int:
        with self._handles_lock.write_locked():
            handles = list(self._handles.values())
            self._handles.clear()

        for handle in handles:
            handle()
        self.run_cleanup()
        return len(handles)

    def release(self, job_id: str) -> None:
        """Unregister a finished job without firing its handle, then drain cleanup."""
        with self._handles_lock.write_locked():
            self._handles.pop(job_id, None)
        self.run_cleanup()

    def graceful_cancel(self, job_id: str, timeout: float) -> None:
        self.cancel(job_id)

        deadline = time.monotonic() + timeout
        while self._is_running():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise CancelTimeoutError(job_id, timeout)
            time.sleep(min(self._poll_interval, remaining))

    def run_cleanup(self) -> None:
        with self._cleanup_lock:
            tasks = list(self._cleanup)
            self._cleanup.clear()

        for task in tasks:
            try:
                ok = task.execute()
            except Exception as e:
                logger.warning("cleanup task failed (%s): %s", task.description, e)
                continue
            if ok is False:
                logger.warning("cleanup task reported failure (%s)", task.description)
