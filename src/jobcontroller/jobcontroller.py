from __future__ import annotations

import logging
import os
import threading
from typing import Optional, Sequence

from src.cancellation.api import (
    CancellationToken,
    JobStateCleanupTask,
    MemoryCleanupTask,
    TempFileCleanupTask,
    new_registry,
)
from src.config.api import Config
from src.errors.api import AlreadyRunningError, InvalidInputError, NoRunningJobError
from src.fileops.api import new_file_ops
from src.filelist.api import FileEntry, FileList, describe_file, validate_file_list
from src.jobstore.api import JobSnapshot, new_job_store
from src.memorymonitor.api import CHECK_INTERVAL, HeapProbe, new_memory_monitor
from src.notifications.api import NotificationBus, new_bus
from src.pdfops.api import new_pdf_ops
from src.progress.api import ProgressSnapshot
from src.strategy.api import StrategySettings, new_selector
from src.workflow.api import MAX_RETRIES, RETRY_DELAY, PasswordProvider, new_driver
from .model import JobResult

logger = logging.getLogger(__name__)

CANCEL_TIMEOUT: float = 5.0


class MergeController:
    """Facade wiring job store, cancellation, workflow and notifications for one job at a time."""

    def __init__(
        self,
        config: Optional[Config] = None,
        pdf_ops=None,
        file_ops=None,
        bus: Optional[NotificationBus] = None,
        settings: Optional[StrategySettings] = None,
        heap_probe: Optional[HeapProbe] = None,
        check_interval: float = CHECK_INTERVAL,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        password_provider: Optional[PasswordProvider] = None,
    ) -> None:
        self.config = config or Config()
        self._pdf_ops = pdf_ops or new_pdf_ops()
        self._file_ops = file_ops or new_file_ops(self.config.temp_directory or None)
        self.bus = bus or new_bus()
        self.store = new_job_store()
        self.registry = new_registry(self.is_job_running)
        self.monitor = new_memory_monitor(self.config.max_memory_usage, check_interval, heap_probe)
        self.selector = new_selector(
            self._pdf_ops, self._file_ops, self.monitor, settings, register_cleanup=self.registry.add_cleanup
        )
        self.driver = new_driver(
            self.store,
            self.registry,
            self.bus,
            self._pdf_ops,
            self._file_ops,
            self.selector,
            self.monitor,
            self.config,
            max_retries=max_retries,
            retry_delay=retry_delay,
            password_provider=password_provider,
        )
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def file_ops(self):
        return self._file_ops

    # file helpers

    def validate_file(self, path: str) -> None:
        self._pdf_ops.validate(path)

    def validate_files(self, paths: Sequence[str]) -> None:
        files = self.build_file_list(paths)
        validate_file_list(files)
        for path in files.all_file_paths():
            self.validate_file(path)

    def file_entry(self, path: str, order: int = 0) -> FileEntry:
        return describe_file(path, order, self._pdf_ops, self._file_ops)

    def build_file_list(self, paths: Sequence[str]) -> FileList:
        files = FileList()
        if paths:
            files.set_main_file(paths[0])
            for path in paths[1:]:
                files.add_file(path)
        return files

    # job lifecycle

    def start_merge_job(self, main_file: str, additional_files: Sequence[str], output_path: str) -> str:
        return self._start(main_file, additional_files, output_path, batch=False)

    def start_batch_job(self, files: Sequence[str], output_path: str) -> str:
        if len(files) < 2:
            raise InvalidInputError("at least two files are required for a batch merge")
        return self._start(files[0], files[1:], output_path, batch=True)

    def _start(self, main_file: str, additional_files: Sequence[str], output_path: str, batch: bool) -> str:
        output_path = self._resolve_output(output_path)
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                job = self.store.current()
                raise AlreadyRunningError(job.id if job else "unknown")

            job_id = self.store.submit(main_file, list(additional_files), output_path, batch=batch)
            token = CancellationToken()
            self.registry.register(job_id, token.cancel)
            self.registry.add_cleanup(TempFileCleanupTask(self._file_ops))
            self.registry.add_cleanup(MemoryCleanupTask())
            self.registry.add_cleanup(JobStateCleanupTask(self.store, job_id))

            thread = threading.Thread(target=self._drive, args=(job_id, token), name=f"merge-{job_id}", daemon=True)
            self._thread = thread
        thread.start()
        logger.info("started job %s -> %s", job_id, output_path)
        return job_id

    def _drive(self, job_id: str, token: CancellationToken) -> None:
        try:
            self.driver.run(job_id, token)
        except Exception:
            logger.exception("workflow for job %s aborted", job_id)

    def _resolve_output(self, output_path: str) -> str:
        if output_path and not os.path.isabs(output_path) and self.config.output_directory:
            return os.path.join(self.config.output_directory, output_path)
        return output_path

    def cancel_current_job(self, timeout: float = CANCEL_TIMEOUT) -> None:
        job = self.store.current()
        if job is None or not self.store.is_running():
            raise NoRunningJobError()
        self.registry.graceful_cancel(job.id, timeout)

    def current_job(self) -> Optional[JobSnapshot]:
        return self.store.current()

    def is_job_running(self) -> bool:
        if self.store.is_running():
            return True
        thread = self._thread
        return thread is not None and thread.is_alive()

    def progress(self) -> Optional[ProgressSnapshot]:
        tracker = self.driver.tracker
        return tracker.snapshot() if tracker is not None else None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker thread exits. False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def merge_pdfs(
        self,
        main_file: str,
        additional_files: Sequence[str],
        output_path: str,
        timeout: Optional[float] = None,
    ) -> JobResult:
        job_id = self.start_merge_job(main_file, additional_files, output_path)
        self.wait(timeout)
        return self._result(job_id)

    def _result(self, job_id: str) -> JobResult:
        job = self.store.current()
        details: dict = {"progress": job.progress, "files": job.total_files}
        if job.error:
            details["error"] = job.error
        if self.selector.last_strategy is not None:
            details["strategy"] = self.selector.last_strategy.value
        return JobResult(job_id=job_id, output_path=job.output_path, status=job.status.value, details=details)
