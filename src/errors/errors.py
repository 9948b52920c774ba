from __future__ import annotations

from typing import Optional

from .model import ErrorKind


class MergeError(RuntimeError):
    """Base error of the merge engine, tagged with an ErrorKind."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, path: Optional[str] = None, kind: Optional[ErrorKind] = None) -> None:
        if kind is not None:
            self.kind = kind
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}" if path else message)


class NotFoundError(MergeError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: Optional[str] = None, message: str = "file not found") -> None:
        super().__init__(message, path)


class PermissionDeniedError(MergeError):
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, path: Optional[str] = None, message: str = "permission denied") -> None:
        super().__init__(message, path)


class InvalidPdfError(MergeError):
    kind = ErrorKind.INVALID_PDF

    def __init__(self, path: Optional[str] = None, message: str = "invalid PDF format") -> None:
        super().__init__(message, path)


class EncryptedError(MergeError):
    kind = ErrorKind.ENCRYPTED

    def __init__(self, path: Optional[str] = None, message: str = "password required") -> None:
        super().__init__(message, path)


class MergeIOError(MergeError):
    kind = ErrorKind.IO

    def __init__(self, message: str = "I/O error", path: Optional[str] = None) -> None:
        super().__init__(message, path)


class OutOfMemoryError(MergeError):
    kind = ErrorKind.OUT_OF_MEMORY

    def __init__(self, message: str = "out of memory", path: Optional[str] = None) -> None:
        super().__init__(message, path)


class OperationTimeoutError(MergeError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "operation timeout", path: Optional[str] = None) -> None:
        super().__init__(message, path)


class CancelledError(MergeError):
    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "cancelled by user") -> None:
        super().__init__(message)


class StageError(MergeError):
    """Last error of a failed stage, annotated with the stage name."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        kind = cause.kind if isinstance(cause, MergeError) else ErrorKind.UNKNOWN
        path = cause.path if isinstance(cause, MergeError) else None
        super().__init__(f"{stage} failed: {cause}", kind=kind)
        self.path = path


# Lifecycle errors. These never reach the retry policy.

class AlreadyRunningError(MergeError):
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"a merge job is already running ({job_id})")


class UnknownJobError(MergeError):
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"job {job_id} does not exist or has already finished")


class CancelTimeoutError(MergeError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, job_id: str, timeout: float) -> None:
        self.job_id = job_id
        self.timeout = timeout
        super().__init__(f"cancellation of job {job_id} timed out after {timeout:.1f}s")


class NoRunningJobError(MergeError):
    def __init__(self) -> None:
        super().__init__("no running job")


class InvalidTransitionError(MergeError):
    def __init__(self, job_id: str, current: str, target: str) -> None:
        super().__init__(f"job {job_id} cannot move from {current} to {target}")


class InvalidInputError(MergeError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
