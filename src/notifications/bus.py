from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from .model import (
    CompletionCallback,
    ErrorCallback,
    EventType,
    ProgressCallback,
    UIStateCallback,
)

logger = logging.getLogger(__name__)


class NotificationBus:
    """Synchronous fan-out. Callbacks run on the publishing thread, in order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[EventType, List[Callable[..., Any]]] = {t: [] for t in EventType}
        self._terminal_sent = False

    def subscribe(self, event: EventType, callback: Optional[Callable[..., Any]]) -> Callable[[], None]:
        if callback is None:
            return lambda: None
        with self._lock:
            self._subscribers[event].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers[event].remove(callback)
                except ValueError:
                    pass

        return unsubscribe

    def on_progress(self, callback: Optional[ProgressCallback]) -> Callable[[], None]:
        return self.subscribe(EventType.PROGRESS, callback)

    def on_error(self, callback: Optional[ErrorCallback]) -> Callable[[], None]:
        return self.subscribe(EventType.ERROR, callback)

    def on_completion(self, callback: Optional[CompletionCallback]) -> Callable[[], None]:
        return self.subscribe(EventType.COMPLETION, callback)

    def on_ui_state(self, callback: Optional[UIStateCallback]) -> Callable[[], None]:
        return self.subscribe(EventType.UI_STATE, callback)

    def subscriber_count(self, event: EventType) -> int:
        with self._lock:
            return len(self._subscribers[event])

    def begin_job(self) -> None:
        with self._lock:
            self._terminal_sent = False

    def publish_progress(self, pct: float, status: str, detail: str = "") -> None:
        pct = min(max(pct, 0.0), 1.0)
        self._dispatch(EventType.PROGRESS, pct, status, detail)

    def publish_error(self, err: BaseException) -> bool:
        if not self._claim_terminal():
            logger.debug("terminal event already sent, dropping error: %s", err)
            return False
        self._dispatch(EventType.ERROR, err)
        return True

    def publish_completion(self, output_path: str) -> bool:
        if not self._claim_terminal():
            logger.debug("terminal event already sent, dropping completion")
            return False
        self._dispatch(EventType.COMPLETION, output_path)
        return True

    def publish_ui_state(self, enabled: bool) -> None:
        self._dispatch(EventType.UI_STATE, enabled)

    def _claim_terminal(self) -> bool:
        with self._lock:
            if self._terminal_sent:
                return False
            self._terminal_sent = True
            return True

    def _dispatch(self, event: EventType, *args: Any) -> None:
        with self._lock:
            callbacks = list(self._subscribers[event])
        for callback in callbacks:
            callback(*args)
