from __future__ import annotations

import gc
import logging
import threading
import tracemalloc
from typing import Callable, Optional

logger = logging.getLogger(__name__)

CHECK_INTERVAL: float = 1.0
LOW_MEMORY_RATIO: float = 0.80

HeapProbe = Callable[[], int]


def traced_heap_usage() -> int:
    """Bytes currently allocated by the interpreter (0 while tracing is off)."""
    if not tracemalloc.is_tracing():
        return 0
    current, _peak = tracemalloc.get_traced_memory()
    return current


def reclaim() -> None:
    gc.collect()


class MemoryMonitor:
    def __init__(
        self,
        budget: int,
        check_interval: float = CHECK_INTERVAL,
        probe: Optional[HeapProbe] = None,
        on_reclaim: Callable[[], None] = reclaim,
    ) -> None:
        if budget <= 0:
            raise ValueError("memory budget must be positive")
        self.budget = budget
        self.check_interval = check_interval
        self._probe = probe or traced_heap_usage
        self._owns_tracing = False
        self._on_reclaim = on_reclaim
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._peak = 0
        self.reclaim_count = 0

    def current_usage(self) -> int:
        usage = self._probe()
        if usage > self._peak:
            self._peak = usage
        return usage

    @property
    def peak_usage(self) -> int:
        return self._peak

    def usage_ratio(self) -> float:
        return self.current_usage() / self.budget

    def is_above(self, ratio: float) -> bool:
        return self.current_usage() > self.budget * ratio

    def is_low(self) -> bool:
        return self.is_above(LOW_MEMORY_RATIO)

    def reclaim(self) -> None:
        self.reclaim_count += 1
        self._on_reclaim()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            if self._probe is traced_heap_usage and not tracemalloc.is_tracing():
                tracemalloc.start()
                self._owns_tracing = True
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="memory-monitor", daemon=True)
            self._thread.start()
        logger.debug("memory monitor started (budget=%d bytes)", self.budget)

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._thread = None
            self._stop.set()
        thread.join()
        with self._lock:
            if self._owns_tracing and self._thread is None:
                tracemalloc.stop()
                self._owns_tracing = False
        logger.debug("memory monitor stopped (peak=%d bytes)", self._peak)

    def _run(self) -> None:
        while not self._stop.wait(self.check_interval):
            if self.is_low():
                logger.debug("memory above %.0f%% of budget, reclaiming", LOW_MEMORY_RATIO * 100)
                self.reclaim()
