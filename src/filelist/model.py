from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Optional


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@dataclass(frozen=True)
class FileEntry:
    path: str
    display_name: str
    size: int = 0
    page_count: int = 0
    is_encrypted: bool = False
    order: int = 0
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.size < 0 or self.page_count < 0 or self.order < 0:
            raise ValueError("size, page_count and order must be >= 0")

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def size_string(self) -> str:
        return format_size(self.size)

    def with_error(self, error: str) -> "FileEntry":
        return dataclasses.replace(self, error=error)

    def with_order(self, order: int) -> "FileEntry":
        return dataclasses.replace(self, order=order)


def new_entry(path: str, order: int = 0) -> FileEntry:
    return FileEntry(path=path, display_name=os.path.basename(path), order=order)
