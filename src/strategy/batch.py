from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from src.cancellation.api import CancellationToken, CleanupTask, ResourceCleanupTask
from src.errors.api import InvalidInputError, MergeError
from .model import NO_PROGRESS, MergeProgress, MergeStrategy

logger = logging.getLogger(__name__)


def create_batches(files: Sequence[str], batch_size: int) -> List[List[str]]:
    return [list(files[i:i + batch_size]) for i in range(0, len(files), batch_size)]


class BatchProcessor:
    def __init__(
        self,
        selector,
        file_ops,
        batch_size: int,
        max_concurrency: int,
        register_cleanup: Optional[Callable[[CleanupTask], None]] = None,
    ) -> None:
        self._selector = selector
        self._file_ops = file_ops
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self._register_cleanup = register_cleanup
        self._lock = threading.Lock()
        self._scratch: List[str] = []
        self._active = 0
        self.peak_active = 0
        self.batches_processed = 0

    def process(
        self,
        files: Sequence[str],
        output_path: str,
        token: CancellationToken,
        progress: MergeProgress = NO_PROGRESS,
    ) -> MergeStrategy:
        if len(files) < 2:
            raise InvalidInputError("at least two files are required for a batch merge")
        if len(files) <= self.batch_size:
            return self._selector.merge(files[0], files[1:], output_path, token, progress)

        batches = create_batches(files, self.batch_size)
        outputs: List[Optional[str]] = [None] * len(batches)
        steps = len(batches) + 1
        semaphore = threading.Semaphore(self.max_concurrency)
        if self._register_cleanup is not None:
            self._register_cleanup(ResourceCleanupTask("batch scratch files", self.cleanup_temp_files))

        def run(index: int, batch: List[str]) -> None:
            with semaphore:
                token.raise_if_cancelled()
                with self._lock:
                    self._active += 1
                    self.peak_active = max(self.peak_active, self._active)
                try:
                    scratch, handle = self._file_ops.create_temp_file(f"batch_{index}_", ".pdf")
                    handle.close()
                    with self._lock:
                        self._scratch.append(scratch)
                    self._selector.merge(batch[0], batch[1:], scratch, token)
                    outputs[index] = scratch
                finally:
                    with self._lock:
                        self._active -= 1
                        self.batches_processed += 1
                        done = self.batches_processed
                progress(done / steps, f"Batch {index + 1}/{len(batches)} merged")

        logger.info("batched merge: %d files in %d batches", len(files), len(batches))
        try:
            with ThreadPoolExecutor(max_workers=len(batches), thread_name_prefix="merge-batch") as pool:
                futures = [pool.submit(run, i, b) for i, b in enumerate(batches)]
            for i, future in enumerate(futures):
                err = future.exception()
                if err is not None:
                    logger.warning("batch %d failed: %s", i, err)
                    raise err

            token.raise_if_cancelled()
            final = [p for p in outputs if p is not None]
            self._selector.merge(final[0], final[1:], output_path, token)
            progress(1.0, f"Merged {len(batches)} batches")
        finally:
            self.cleanup_temp_files()
        return MergeStrategy.BATCHED

    def cleanup_temp_files(self) -> None:
        with self._lock:
            files = list(self._scratch)
            self._scratch.clear()
        for path in files:
            try:
                self._file_ops.remove_temp_file(path)
            except MergeError as e:
                logger.warning("cannot remove batch scratch file %s: %s", path, e)
