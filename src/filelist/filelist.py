from __future__ import annotations

import threading
from typing import List, Optional

from src.errors.api import InvalidInputError, MergeError
from .model import FileEntry, new_entry


def build_file_entry(path: str, order: int, pdf_ops, file_ops) -> FileEntry:
    entry = new_entry(path, order)
    try:
        file_ops.validate(path)
        size = file_ops.info(path).size
        pdf_ops.validate(path)
        info = pdf_ops.info(path)
    except MergeError as e:
        return entry.with_error(str(e))
    return FileEntry(
        path=path,
        display_name=entry.display_name,
        size=size,
        page_count=info.page_count,
        is_encrypted=info.is_encrypted,
        order=order,
    )


class FileList:
    """Main file plus ordered additional files. Orders of additional files start at 1."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._main: Optional[FileEntry] = None
        self._files: List[FileEntry] = []

    def set_main_file(self, entry_or_path) -> FileEntry:
        entry = entry_or_path if isinstance(entry_or_path, FileEntry) else new_entry(entry_or_path, 0)
        with self._lock:
            self._main = entry.with_order(0)
            return self._main

    @property
    def main_file(self) -> Optional[FileEntry]:
        with self._lock:
            return self._main

    def add_file(self, entry_or_path) -> FileEntry:
        entry = entry_or_path if isinstance(entry_or_path, FileEntry) else new_entry(entry_or_path)
        with self._lock:
            for existing in self._files:
                if existing.path == entry.path:
                    return existing
            entry = entry.with_order(len(self._files) + 1)
            self._files.append(entry)
            return entry

    def remove_file(self, path: str) -> bool:
        with self._lock:
            for i, existing in enumerate(self._files):
                if existing.path == path:
                    del self._files[i]
                    self._renumber()
                    return True
            return False

    def move_file(self, path: str, new_order: int) -> bool:
        with self._lock:
            index = next((i for i, f in enumerate(self._files) if f.path == path), None)
            if index is None or not 1 <= new_order <= len(self._files):
                return False
            entry = self._files.pop(index)
            self._files.insert(new_order - 1, entry)
            self._renumber()
            return True

    def files(self) -> List[FileEntry]:
        with self._lock:
            return list(self._files)

    def all_files(self) -> List[FileEntry]:
        with self._lock:
            head = [self._main] if self._main is not None else []
            return head + list(self._files)

    def file_paths(self) -> List[str]:
        return [f.path for f in self.files()]

    def all_file_paths(self) -> List[str]:
        return [f.path for f in self.all_files()]

    def valid_files(self) -> List[FileEntry]:
        return [f for f in self.all_files() if f.is_valid]

    def clear(self) -> None:
        with self._lock:
            self._files.clear()
            self._main = None

    def count(self) -> int:
        with self._lock:
            return len(self._files)

    def total_count(self) -> int:
        with self._lock:
            return len(self._files) + (1 if self._main is not None else 0)

    def is_empty(self) -> bool:
        return self.total_count() == 0

    def _renumber(self) -> None:
        self._files = [f.with_order(i + 1) for i, f in enumerate(self._files)]


def validate_file_list(file_list: FileList) -> None:
    seen = set()
    for i, entry in enumerate(file_list.all_files()):
        if not entry.path:
            raise InvalidInputError(f"file {i}: path cannot be empty")
        if entry.path in seen:
            raise InvalidInputError(f"duplicate file path: {entry.path}")
        seen.add(entry.path)
