from __future__ import annotations

from .model import ProgressSnapshot, compose_total
from .progress import ProgressTracker, TrackerCallback


def new_tracker(total_steps: int) -> ProgressTracker:
    """Public API (ProgressTracker)

    Contract:
    - total = ((current_step - 1) + step_progress/100) / total_steps * 100, clamped to [0, 100].
    - step_progress inputs are clamped to [0, 100].
    - Snapshots are immutable and safe to hand across threads.
    """
    return ProgressTracker(total_steps)


__all__ = ["ProgressSnapshot", "ProgressTracker", "TrackerCallback", "compose_total", "new_tracker"]
