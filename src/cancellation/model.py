from __future__ import annotations

import threading
from typing import Callable, Optional, Protocol

from src.errors.api import CancelledError

CancelHandle = Callable[[], None]


class CleanupTask(Protocol):
    description: str

    def execute(self) -> bool:
        ...


class CancellationToken:
    """Cooperative cancellation flag checked at every suspension point."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError()

    def wait(self, timeout: Optional[float]) -> bool:
        """Sleep up to timeout; True means cancellation arrived."""
        return self._event.wait(timeout)
