from __future__ import annotations

from typing import IO, Optional, Protocol, Tuple

from .fileops import WRITE_PROBE_NAME, LocalFileOps
from .model import SESSION_PREFIX, FileInfo


class FileOps(Protocol):
    def validate(self, path: str) -> None: ...

    def info(self, path: str) -> FileInfo: ...

    def ensure_dir_exists(self, directory: str) -> None: ...

    def check_writable(self, directory: str) -> None: ...

    def create_temp_file(self, prefix: str, suffix: str) -> Tuple[str, IO[bytes]]: ...

    def copy_file(self, src: str, dst: str) -> None: ...

    def remove_temp_file(self, path: str) -> None: ...

    def cleanup_temp_files(self) -> None: ...


def new_file_ops(temp_root: Optional[str] = None) -> LocalFileOps:
    """Public API (FileOps)

    Contract:
    - Scratch files live under {temp_root | OS temp}/pdf-merger-*.
    - OS errors are translated into tagged MergeErrors (NotFound, PermissionDenied, IO).
    - cleanup_temp_files is idempotent and removes the session directory.
    """
    return LocalFileOps(temp_root)


__all__ = ["FileInfo", "FileOps", "LocalFileOps", "SESSION_PREFIX", "WRITE_PROBE_NAME", "new_file_ops"]
