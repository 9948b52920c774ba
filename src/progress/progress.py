from __future__ import annotations

import threading
import time
from typing import Callable, List

from .model import ProgressSnapshot, compose_total

TrackerCallback = Callable[[ProgressSnapshot], None]


class ProgressTracker:
    def __init__(self, total_steps: int) -> None:
        if total_steps <= 0:
            raise ValueError("total_steps must be positive")
        self._lock = threading.Lock()
        self._total_steps = total_steps
        self._current_step = 0
        self._step_progress = 0.0
        self._message = ""
        self._started = time.monotonic()
        self._completed = False
        self._cancelled = False
        self._callbacks: List[TrackerCallback] = []

    def set_current_step(self, step: int, message: str) -> None:
        with self._lock:
            self._current_step = min(max(step, 0), self._total_steps)
            self._step_progress = 0.0
            self._message = message
            snap = self._snapshot()
        self._notify(snap)

    def update_step_progress(self, progress: float, message: str = "") -> None:
        with self._lock:
            self._step_progress = min(max(progress, 0.0), 100.0)
            if message:
                self._message = message
            snap = self._snapshot()
        self._notify(snap)

    def complete(self, message: str = "") -> None:
        with self._lock:
            self._current_step = self._total_steps
            self._step_progress = 100.0
            self._completed = True
            if message:
                self._message = message
            snap = self._snapshot()
        self._notify(snap)

    def cancel(self, message: str = "") -> None:
        with self._lock:
            self._cancelled = True
            if message:
                self._message = message
            snap = self._snapshot()
        self._notify(snap)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot()

    def add_callback(self, callback: TrackerCallback) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def _snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            total_steps=self._total_steps,
            current_step=self._current_step,
            step_progress=self._step_progress,
            total_progress=compose_total(self._current_step, self._step_progress, self._total_steps),
            message=self._message,
            elapsed=time.monotonic() - self._started,
            completed=self._completed,
            cancelled=self._cancelled,
        )

    def _notify(self, snap: ProgressSnapshot) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb(snap)
