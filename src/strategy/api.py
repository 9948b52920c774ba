from __future__ import annotations

from typing import Callable, Optional

from src.cancellation.api import CleanupTask
from .batch import BatchProcessor, create_batches
from .model import (
    BATCH_SIZE,
    CHUNK_SIZE,
    MAX_CONCURRENCY,
    NO_PROGRESS,
    MergeProgress,
    MergeStrategy,
    StrategySettings,
)
from .selector import StrategySelector
from .streaming import StreamingMerger


def new_selector(
    pdf_ops,
    file_ops,
    monitor,
    settings: Optional[StrategySettings] = None,
    register_cleanup: Optional[Callable[[CleanupTask], None]] = None,
) -> StrategySelector:
    """Public API (StrategySelector)

    Contract:
    - Direct when heap usage < 70% of the monitor's budget, Streaming otherwise.
    - Streaming stages inputs larger than 2 x chunk_size into scratch files, appends
      page ranges of about chunk_size bytes, pauses ~10 ms above 90% of budget and
      reclaims every 5th input.
    - merge_batch: > batch_size inputs are split into contiguous batches merged to
      scratch files (at most max_concurrency at once), then merged again.
    - Scratch files are registered for cleanup on creation and removed on every exit path.
    """
    return StrategySelector(pdf_ops, file_ops, monitor, settings, register_cleanup)


__all__ = [
    "BATCH_SIZE",
    "BatchProcessor",
    "CHUNK_SIZE",
    "MAX_CONCURRENCY",
    "MergeProgress",
    "MergeStrategy",
    "NO_PROGRESS",
    "StrategySelector",
    "StrategySettings",
    "StreamingMerger",
    "create_batches",
    "new_selector",
]
