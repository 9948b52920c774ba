from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

CHUNK_SIZE: int = 1024 * 1024
BATCH_SIZE: int = 10
MAX_CONCURRENCY: int = 2

DIRECT_RATIO: float = 0.70
PAUSE_RATIO: float = 0.90
PAUSE_SECONDS: float = 0.01
RECLAIM_EVERY: int = 5

# fraction of the merge in [0, 1], human detail
MergeProgress = Callable[[float, str], None]


class MergeStrategy(Enum):
    DIRECT = "direct"
    STREAMING = "streaming"
    BATCHED = "batched"


@dataclass(frozen=True)
class StrategySettings:
    chunk_size: int = CHUNK_SIZE
    batch_size: int = BATCH_SIZE
    max_concurrency: int = MAX_CONCURRENCY
    direct_ratio: float = DIRECT_RATIO
    pause_ratio: float = PAUSE_RATIO
    pause_seconds: float = PAUSE_SECONDS
    reclaim_every: int = RECLAIM_EVERY

    def __post_init__(self) -> None:
        if self.chunk_size <= 0 or self.batch_size <= 0 or self.max_concurrency <= 0:
            raise ValueError("chunk_size, batch_size and max_concurrency must be positive")


def _ignore_progress(fraction: float, detail: str) -> None:
    pass


NO_PROGRESS: MergeProgress = _ignore_progress
