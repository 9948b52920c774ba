from __future__ import annotations

from .errors import CancelledError, MergeError
from .model import NON_RETRYABLE_KEYWORDS, RETRYABLE_KEYWORDS, ErrorKind


def classify(err: BaseException) -> ErrorKind:
    if isinstance(err, MergeError) and err.kind is not ErrorKind.UNKNOWN:
        return err.kind
    if isinstance(err, MemoryError):
        return ErrorKind.OUT_OF_MEMORY
    if isinstance(err, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(err, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(err, TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(err, OSError):
        return ErrorKind.IO
    return ErrorKind.UNKNOWN


def _contains_any(text: str, keywords) -> bool:
    lowered = text.lower()
    return any(k.lower() in lowered for k in keywords)


def should_retry(err: BaseException) -> bool:
    if err is None or isinstance(err, CancelledError):
        return False

    kind = classify(err)
    if kind is not ErrorKind.UNKNOWN:
        return kind.retryable

    # untagged: message scan, non-retryable wins
    message = str(err)
    if _contains_any(message, NON_RETRYABLE_KEYWORDS):
        return False
    if _contains_any(message, RETRYABLE_KEYWORDS):
        return True
    return True
