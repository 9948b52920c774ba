import time
from pathlib import Path
from typing import Callable, List, Optional

import fitz

from src.pdfops.api import FitzPdfOps


def write_pdf(path: Path, pages: int = 1, password: Optional[str] = None, text: str = "page") -> str:
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"{text} {i + 1}")
    if password:
        doc.save(
            str(path),
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw=password + "-owner",
            user_pw=password,
        )
    else:
        doc.save(str(path))
    doc.close()
    return str(path)


def page_count(path: str) -> int:
    doc = fitz.open(path)
    try:
        return doc.page_count
    finally:
        doc.close()


def leftover_scratch(root: Path) -> List[Path]:
    if not root.exists():
        return []
    return [p for p in root.rglob("*") if p.is_file()]


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class ScriptedPdfOps(FitzPdfOps):
    """Real PyMuPDF adapter with injectable failures and delays."""

    def __init__(
        self,
        merge_failures=None,
        validate_delay: float = 0.0,
        merge_delay: float = 0.0,
        page_count_delay: float = 0.0,
    ):
        self.merge_failures = list(merge_failures or [])
        self.validate_delay = validate_delay
        self.merge_delay = merge_delay
        self.page_count_delay = page_count_delay
        self.merge_calls: List[float] = []

    def validate(self, path: str) -> None:
        if self.validate_delay:
            time.sleep(self.validate_delay)
        super().validate(path)

    def page_count(self, path: str) -> int:
        if self.page_count_delay:
            time.sleep(self.page_count_delay)
        return super().page_count(path)

    def merge(self, main_path, additional_paths, output_path, progress_sink=None):
        self.merge_calls.append(time.monotonic())
        if self.merge_failures:
            raise self.merge_failures.pop(0)
        if self.merge_delay:
            time.sleep(self.merge_delay)
        return super().merge(main_path, additional_paths, output_path, progress_sink)
