from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

MAX_RETRIES: int = 3
RETRY_DELAY: float = 1.0

COMPLETED_STATUS = "Completed"

# path -> password, or None to give up
PasswordProvider = Callable[[str], Optional[str]]


class Stage(Enum):
    VALIDATION = ("Validation", 0.0, 0.2)
    PREPARATION = ("Preparation", 0.2, 0.3)
    DECRYPTION = ("Decryption", 0.3, 0.4)
    MERGING = ("Merging", 0.4, 0.9)
    FINALIZATION = ("Finalization", 0.9, 1.0)

    def __init__(self, label: str, start: float, end: float) -> None:
        self.label = label
        self.start = start
        self.end = end

    @property
    def step(self) -> int:
        return list(Stage).index(self) + 1

    def scale(self, fraction: float) -> float:
        fraction = min(max(fraction, 0.0), 1.0)
        return self.start + (self.end - self.start) * fraction

    def fraction_of(self, pct: float) -> float:
        return min(max((pct - self.start) / (self.end - self.start), 0.0), 1.0)


@dataclass
class RunContext:
    """Mutable per-run state handed from stage to stage."""

    job_id: str
    inputs: List[str]
    output_path: str
    batch: bool = False
    total_size: int = 0
    decrypted: List[str] = field(default_factory=list)
    strategy: Optional[str] = None
    output_size: int = 0
    attempts: Dict[str, int] = field(default_factory=dict)
