from __future__ import annotations

from .bus import NotificationBus
from .model import (
    CompletionCallback,
    ErrorCallback,
    EventType,
    ProgressCallback,
    UIStateCallback,
)


def new_bus() -> NotificationBus:
    """Public API (NotificationBus)

    Contract:
    - Four events: progress(pct in [0,1], status, detail), error(err),
      completion(output_path), ui_state(enabled).
    - None subscribers are accepted and ignored.
    - Delivery is synchronous on the publisher's thread, in source order.
    - Subscriber lists are copied under the lock; callbacks run unlocked.
    - error/completion: at most one terminal event per begin_job().
    """
    return NotificationBus()


__all__ = [
    "CompletionCallback",
    "ErrorCallback",
    "EventType",
    "NotificationBus",
    "ProgressCallback",
    "UIStateCallback",
    "new_bus",
]
