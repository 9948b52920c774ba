from __future__ import annotations

from enum import Enum
from typing import Callable

ProgressCallback = Callable[[float, str, str], None]
ErrorCallback = Callable[[BaseException], None]
CompletionCallback = Callable[[str], None]
UIStateCallback = Callable[[bool], None]


class EventType(Enum):
    PROGRESS = "progress"
    ERROR = "error"
    COMPLETION = "completion"
    UI_STATE = "ui_state"
