from __future__ import annotations

from .errors import (
    AlreadyRunningError,
    CancelledError,
    CancelTimeoutError,
    EncryptedError,
    InvalidInputError,
    InvalidPdfError,
    InvalidTransitionError,
    MergeError,
    MergeIOError,
    NoRunningJobError,
    NotFoundError,
    OperationTimeoutError,
    OutOfMemoryError,
    PermissionDeniedError,
    StageError,
    UnknownJobError,
)
from .model import ErrorKind
from .retry import classify, should_retry as _should_retry


def should_retry(err: BaseException) -> bool:
    """Public API (Errors)

    Contract:
    - Tagged errors answer from their ErrorKind.
    - Unknown/untagged errors: substring scan of the message, case-insensitive.
      Non-retryable keywords win over retryable ones; no match -> retryable.
    - Cancellation is never retryable.
    """
    return _should_retry(err)


__all__ = [
    "AlreadyRunningError",
    "CancelledError",
    "CancelTimeoutError",
    "EncryptedError",
    "ErrorKind",
    "InvalidInputError",
    "InvalidPdfError",
    "InvalidTransitionError",
    "MergeError",
    "MergeIOError",
    "NoRunningJobError",
    "NotFoundError",
    "OperationTimeoutError",
    "OutOfMemoryError",
    "PermissionDeniedError",
    "StageError",
    "UnknownJobError",
    "classify",
    "should_retry",
]
