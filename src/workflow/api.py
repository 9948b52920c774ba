from __future__ import annotations

from .model import COMPLETED_STATUS, MAX_RETRIES, RETRY_DELAY, PasswordProvider, RunContext, Stage
from .workflow import WorkflowDriver


def new_driver(
    store,
    registry,
    bus,
    pdf_ops,
    file_ops,
    selector,
    monitor,
    config,
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY,
    password_provider=None,
) -> WorkflowDriver:
    """Public API (WorkflowDriver)

    Contract:
    - Stages in order: Validation [0, .2], Preparation [.2, .3], Decryption [.3, .4],
      Merging [.4, .9], Finalization [.9, 1]; bus progress never decreases.
    - Each stage retries retryable errors up to max_retries times, waiting
      retry_delay * attempt between attempts (cancellable).
    - Exhausted or non-retryable errors fail the job with "<Stage> failed: <cause>".
    - Cancellation fails the job with "cancelled by user".
    - Terminal events: uiState(True) first, then exactly one of error / completion.
    - Scratch files are swept and the registry entry released on every exit path.
    """
    return WorkflowDriver(
        store,
        registry,
        bus,
        pdf_ops,
        file_ops,
        selector,
        monitor,
        config,
        max_retries=max_retries,
        retry_delay=retry_delay,
        password_provider=password_provider,
    )


__all__ = [
    "COMPLETED_STATUS",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "PasswordProvider",
    "RunContext",
    "Stage",
    "WorkflowDriver",
    "new_driver",
]
