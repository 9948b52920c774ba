from __future__ import annotations

from typing import Optional, Sequence

from src.config.api import Config
from .jobcontroller import CANCEL_TIMEOUT, MergeController
from .model import JobResult


def submit(
    main_file: str,
    additional_files: Sequence[str],
    output_path: str,
    config: Optional[Config] = None,
) -> JobResult:
    """Public API (MergeController)

    Contract:
    - One job per controller; a second start while one is in flight raises AlreadyRunningError.
    - Relative output names land under config.output_directory when it is set.
    - Blocks until the job is terminal and returns its status (Completed|Failed).
    - Scratch files are gone when this returns.
    """
    return MergeController(config).merge_pdfs(main_file, additional_files, output_path)


__all__ = ["CANCEL_TIMEOUT", "JobResult", "MergeController", "submit"]
