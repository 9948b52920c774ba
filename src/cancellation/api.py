from __future__ import annotations

from typing import Callable

from .cancellation import POLL_INTERVAL, CancellationRegistry
from .cleanup import (
    CANCELLED_MESSAGE,
    JobStateCleanupTask,
    MemoryCleanupTask,
    ResourceCleanupTask,
    TempFileCleanupTask,
)
from .model import CancelHandle, CancellationToken, CleanupTask


def new_registry(is_running: Callable[[], bool], poll_interval: float = POLL_INTERVAL) -> CancellationRegistry:
    """Public API (CancellationRegistry)

    Contract:
    - job id -> cancel handle, plus one ordered list of cleanup tasks.
    - cancel: unregister, fire, then run cleanup in insertion order;
      failures are logged and never stop later tasks.
    - cancel on an unknown (or already cancelled) id raises UnknownJobError.
    - graceful_cancel polls is_running() and raises CancelTimeoutError past timeout.
    """
    return CancellationRegistry(is_running, poll_interval)


__all__ = [
    "CANCELLED_MESSAGE",
    "CancelHandle",
    "CancellationRegistry",
    "CancellationToken",
    "CleanupTask",
    "JobStateCleanupTask",
    "MemoryCleanupTask",
    "ResourceCleanupTask",
    "TempFileCleanupTask",
    "new_registry",
]
