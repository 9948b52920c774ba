from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class JobResult:
    job_id: str
    output_path: str
    status: str  # Completed|Failed
    details: Dict[str, object]

    @property
    def ok(self) -> bool:
        return self.status == "Completed"
