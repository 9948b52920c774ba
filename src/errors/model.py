from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    INVALID_PDF = "invalid_pdf"
    ENCRYPTED = "encrypted"
    IO = "io"
    OUT_OF_MEMORY = "out_of_memory"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset({ErrorKind.IO, ErrorKind.OUT_OF_MEMORY, ErrorKind.TIMEOUT, ErrorKind.UNKNOWN})

# Fallback keywords for untagged errors (matched case-insensitively).
RETRYABLE_KEYWORDS = ("network", "temp file", "out of memory", "I/O", "timeout")
NON_RETRYABLE_KEYWORDS = ("file not found", "permission denied", "invalid PDF format", "cancelled by user")
