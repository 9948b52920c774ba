from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FileInfo:
    name: str
    path: str
    size: int
    mtime: float


SESSION_PREFIX = "pdf-merger-"
