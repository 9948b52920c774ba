from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import IO, List, Optional, Tuple

from src.errors.api import MergeIOError, NotFoundError, PermissionDeniedError
from .model import SESSION_PREFIX, FileInfo

logger = logging.getLogger(__name__)

WRITE_PROBE_NAME = ".pdf-merger-write-probe"


class LocalFileOps:
    """Filesystem capability with a per-session scratch directory."""

    def __init__(self, temp_root: Optional[str] = None) -> None:
        self._temp_root = temp_root or None
        self._session_dir: Optional[Path] = None
        self._temp_files: List[str] = []
        self._lock = threading.Lock()

    @property
    def temp_root(self) -> str:
        return self._temp_root or tempfile.gettempdir()

    def session_dir(self) -> Path:
        with self._lock:
            return self._ensure_session()

    def validate(self, path: str) -> None:
        p = Path(path)
        if not p.exists():
            raise NotFoundError(path)
        if not p.is_file():
            raise NotFoundError(path, "not a regular file")
        if not os.access(p, os.R_OK):
            raise PermissionDeniedError(path)

    def info(self, path: str) -> FileInfo:
        try:
            st = os.stat(path)
        except FileNotFoundError as e:
            raise NotFoundError(path) from e
        except PermissionError as e:
            raise PermissionDeniedError(path) from e
        return FileInfo(name=os.path.basename(path), path=path, size=st.st_size, mtime=st.st_mtime)

    def ensure_dir_exists(self, directory: str) -> None:
        try:
            Path(directory or ".").mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionDeniedError(directory) from e
        except OSError as e:
            raise MergeIOError(f"cannot create directory ({e})", directory) from e

    def check_writable(self, directory: str) -> None:
        probe = Path(directory or ".") / WRITE_PROBE_NAME
        try:
            fd = os.open(str(probe), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            os.close(fd)
        except FileExistsError:
            # stale probe from an earlier crash
            pass
        except PermissionError as e:
            raise PermissionDeniedError(directory, "permission denied (directory not writable)") from e
        except OSError as e:
            raise MergeIOError(f"write probe failed ({e})", directory) from e
        probe.unlink(missing_ok=True)

    def create_temp_file(self, prefix: str, suffix: str) -> Tuple[str, IO[bytes]]:
        with self._lock:
            session = self._ensure_session()
            try:
                fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=str(session))
            except OSError as e:
                raise MergeIOError(f"cannot create temp file ({e})", str(session)) from e
            self._temp_files.append(path)
        return path, os.fdopen(fd, "wb")

    def copy_file(self, src: str, dst: str) -> None:
        try:
            shutil.copyfile(src, dst)
        except FileNotFoundError as e:
            raise NotFoundError(src) from e
        except PermissionError as e:
            raise PermissionDeniedError(dst) from e
        except OSError as e:
            raise MergeIOError(f"copy failed ({e})", src) from e

    def remove_temp_file(self, path: str) -> None:
        with self._lock:
            if path in self._temp_files:
                self._temp_files.remove(path)
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            raise MergeIOError(f"cannot remove temp file ({e})", path) from e

    def cleanup_temp_files(self) -> None:
        with self._lock:
            files = list(self._temp_files)
            self._temp_files.clear()
            session = self._session_dir
            self._session_dir = None

        failures = 0
        for path in files:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                failures += 1
                logger.warning("cannot remove temp file %s: %s", path, e)
        if session is not None:
            shutil.rmtree(session, ignore_errors=True)
        if failures:
            raise MergeIOError(f"temp file cleanup left {failures} file(s) behind")

    def temp_file_count(self) -> int:
        with self._lock:
            return len(self._temp_files)

    def _ensure_session(self) -> Path:
        if self._session_dir is None or not self._session_dir.exists():
            root = Path(self.temp_root)
            root.mkdir(parents=True, exist_ok=True)
            self._session_dir = Path(tempfile.mkdtemp(prefix=SESSION_PREFIX, dir=str(root)))
        return self._session_dir
