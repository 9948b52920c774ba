from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PdfInfo
from .pdfops import FitzAppender, FitzPdfOps, ProgressSink


class PdfAppender(Protocol):
    page_count: int

    def append(self, path: str, from_page: int = 0, to_page: int = -1) -> int: ...

    def save(self) -> None: ...

    def close(self) -> None: ...


class PdfOps(Protocol):
    def validate(self, path: str) -> None: ...

    def info(self, path: str) -> PdfInfo: ...

    def is_encrypted(self, path: str) -> bool: ...

    def page_count(self, path: str) -> int: ...

    def authenticate(self, path: str, password: str) -> bool: ...

    def decrypt(self, path: str, password: str, output_path: str) -> None: ...

    def merge(
        self,
        main_path: str,
        additional_paths: Sequence[str],
        output_path: str,
        progress_sink: Optional[ProgressSink] = None,
    ) -> int: ...

    def open_appender(self, output_path: str) -> PdfAppender: ...


def new_pdf_ops() -> FitzPdfOps:
    """Public API (PdfOps)

    Contract:
    - Structural page-tree merging with PyMuPDF (insert_pdf), never byte concatenation.
    - validate raises NotFound / PermissionDenied / InvalidPdf (empty files included).
    - is_encrypted means "needs a password to open".
    - A failed merge leaves no output file behind.
    """
    return FitzPdfOps()


__all__ = ["FitzAppender", "FitzPdfOps", "PdfAppender", "PdfInfo", "PdfOps", "ProgressSink", "new_pdf_ops"]
