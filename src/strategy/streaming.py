from __future__ import annotations

import logging
import os
import threading
from typing import Callable, List, Optional, Sequence

from src.cancellation.api import CancellationToken, CleanupTask, ResourceCleanupTask
from src.errors.api import MergeError
from .model import NO_PROGRESS, MergeProgress, StrategySettings

logger = logging.getLogger(__name__)


class StreamingMerger:
    """Memory-aware merge: inputs are staged in chunks, then appended page range by page range."""

    def __init__(
        self,
        pdf_ops,
        file_ops,
        monitor,
        settings: StrategySettings,
        register_cleanup: Optional[Callable[[CleanupTask], None]] = None,
    ) -> None:
        self._pdf_ops = pdf_ops
        self._file_ops = file_ops
        self._monitor = monitor
        self._settings = settings
        self._register_cleanup = register_cleanup
        self._registered = False
        self._temp_files: List[str] = []
        self._temp_lock = threading.Lock()
        self.pause_count = 0
        self.chunk_count = 0

    def merge(
        self,
        files: Sequence[str],
        output_path: str,
        token: CancellationToken,
        progress: MergeProgress = NO_PROGRESS,
    ) -> int:
        total = len(files)
        try:
            staged: List[str] = []
            for i, path in enumerate(files):
                token.raise_if_cancelled()
                progress(0.3 * i / total, f"Preprocessing {os.path.basename(path)} ({i + 1}/{total})")
                staged.append(self._preprocess(path, token))

            with self._pdf_ops.open_appender(output_path) as appender:
                for i, path in enumerate(staged):
                    token.raise_if_cancelled()
                    progress(0.3 + 0.7 * i / total, f"Merging {os.path.basename(files[i])} ({i + 1}/{total})")
                    self._stream_file(appender, path, token)
                    if i % self._settings.reclaim_every == 0:
                        self._monitor.reclaim()
                token.raise_if_cancelled()
                appender.save()
                pages = appender.page_count
            progress(1.0, f"Streamed {total} files ({pages} pages)")
            return pages
        finally:
            self.cleanup_temp_files()

    def _preprocess(self, path: str, token: CancellationToken) -> str:
        size = self._file_ops.info(path).size
        if size <= 2 * self._settings.chunk_size:
            return path

        scratch, handle = self._file_ops.create_temp_file("preprocessed_", ".pdf")
        self._track(scratch)
        chunk_size = self._settings.chunk_size
        with handle, open(path, "rb") as src:
            for chunk in iter(lambda: src.read(chunk_size), b""):
                token.raise_if_cancelled()
                handle.write(chunk)
                self._after_chunk(token)
        return scratch

    def _stream_file(self, appender, path: str, token: CancellationToken) -> None:
        pages = self._pdf_ops.page_count(path)
        size = self._file_ops.info(path).size
        bytes_per_page = max(1, size // max(1, pages))
        pages_per_chunk = max(1, self._settings.chunk_size // bytes_per_page)

        for start in range(0, pages, pages_per_chunk):
            token.raise_if_cancelled()
            appender.append(path, start, start + pages_per_chunk - 1)
            self._after_chunk(token)

    def _after_chunk(self, token: CancellationToken) -> None:
        self.chunk_count += 1
        if self._monitor.is_above(self._settings.pause_ratio):
            self.pause_count += 1
            self._monitor.reclaim()
            if token.wait(self._settings.pause_seconds):
                token.raise_if_cancelled()

    def _track(self, path: str) -> None:
        with self._temp_lock:
            self._temp_files.append(path)
            register = self._register_cleanup is not None and not self._registered
            self._registered = True
        if register:
            self._register_cleanup(ResourceCleanupTask("streaming scratch files", self.cleanup_temp_files))

    def temp_files(self) -> List[str]:
        with self._temp_lock:
            return list(self._temp_files)

    def cleanup_temp_files(self) -> None:
        with self._temp_lock:
            files = list(self._temp_files)
            self._temp_files.clear()
        for path in files:
            try:
                self._file_ops.remove_temp_file(path)
            except MergeError as e:
                logger.warning("cannot remove scratch file %s: %s", path, e)
