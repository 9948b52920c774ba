from __future__ import annotations

import logging
import os
from typing import Callable, Optional, Sequence

from src.cancellation.api import CancellationToken, CleanupTask
from .batch import BatchProcessor
from .model import NO_PROGRESS, MergeProgress, MergeStrategy, StrategySettings
from .streaming import StreamingMerger

logger = logging.getLogger(__name__)


class StrategySelector:
    def __init__(
        self,
        pdf_ops,
        file_ops,
        monitor,
        settings: Optional[StrategySettings] = None,
        register_cleanup: Optional[Callable[[CleanupTask], None]] = None,
    ) -> None:
        self._pdf_ops = pdf_ops
        self._file_ops = file_ops
        self._monitor = monitor
        self.settings = settings or StrategySettings()
        self._register_cleanup = register_cleanup
        self.last_strategy: Optional[MergeStrategy] = None
        self.last_streamer: Optional[StreamingMerger] = None
        self.last_batch: Optional[BatchProcessor] = None

    def choose(self) -> MergeStrategy:
        usage = self._monitor.current_usage()
        if usage < self._monitor.budget * self.settings.direct_ratio:
            return MergeStrategy.DIRECT
        return MergeStrategy.STREAMING

    def merge(
        self,
        main_path: str,
        additional_paths: Sequence[str],
        output_path: str,
        token: CancellationToken,
        progress: MergeProgress = NO_PROGRESS,
    ) -> MergeStrategy:
        strategy = self.choose()
        logger.info("merging %d files into %s using %s strategy", 1 + len(additional_paths), output_path, strategy.value)
        token.raise_if_cancelled()

        if strategy is MergeStrategy.DIRECT:
            def sink(done: int, total: int, path: str) -> None:
                token.raise_if_cancelled()
                progress(done / total, f"Merged {os.path.basename(path)} ({done}/{total})")

            self._pdf_ops.merge(main_path, additional_paths, output_path, sink)
        else:
            streamer = StreamingMerger(
                self._pdf_ops, self._file_ops, self._monitor, self.settings, self._register_cleanup
            )
            self.last_streamer = streamer
            streamer.merge([main_path] + list(additional_paths), output_path, token, progress)

        self.last_strategy = strategy
        return strategy

    def merge_batch(
        self,
        files: Sequence[str],
        output_path: str,
        token: CancellationToken,
        progress: MergeProgress = NO_PROGRESS,
    ) -> MergeStrategy:
        processor = BatchProcessor(
            self,
            self._file_ops,
            self.settings.batch_size,
            self.settings.max_concurrency,
            self._register_cleanup,
        )
        self.last_batch = processor
        strategy = processor.process(files, output_path, token, progress)
        self.last_strategy = strategy
        return strategy
