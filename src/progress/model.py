from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressSnapshot:
    total_steps: int
    current_step: int
    step_progress: float
    total_progress: float
    message: str
    elapsed: float
    completed: bool
    cancelled: bool


def compose_total(current_step: int, step_progress: float, total_steps: int) -> float:
    if total_steps <= 0:
        return 0.0
    total = ((current_step - 1) + step_progress / 100.0) / total_steps * 100.0
    return min(max(total, 0.0), 100.0)
