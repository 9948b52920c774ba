from __future__ import annotations

from typing import Callable, Optional

from .memorymonitor import (
    CHECK_INTERVAL,
    LOW_MEMORY_RATIO,
    HeapProbe,
    MemoryMonitor,
    reclaim,
    traced_heap_usage,
)


def new_memory_monitor(
    budget: int,
    check_interval: float = CHECK_INTERVAL,
    probe: Optional[HeapProbe] = None,
    on_reclaim: Callable[[], None] = reclaim,
) -> MemoryMonitor:
    """Public API (MemoryMonitor)

    Contract:
    - Samples heap usage every check_interval seconds while started.
    - is_low(): usage > 80% of budget; a low sample triggers a reclamation hint.
    - start/stop are idempotent; at most one sampling thread.
    - Default probe is tracemalloc (started/stopped by the monitor when it owns it).
    """
    return MemoryMonitor(budget, check_interval, probe, on_reclaim)


__all__ = [
    "CHECK_INTERVAL",
    "HeapProbe",
    "LOW_MEMORY_RATIO",
    "MemoryMonitor",
    "new_memory_monitor",
    "reclaim",
    "traced_heap_usage",
]
