from pathlib import Path
from typing import Optional

import pytest

from helpers import write_pdf
from src.errors.api import MergeIOError
from src.fileops.api import LocalFileOps
from src.pdfops.api import FitzPdfOps


@pytest.fixture
def make_pdf(tmp_path: Path):
    def _make(name: str, pages: int = 1, password: Optional[str] = None) -> str:
        return write_pdf(tmp_path / name, pages=pages, password=password, text=name)

    return _make


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def file_ops(scratch_root: Path) -> LocalFileOps:
    return LocalFileOps(str(scratch_root))


@pytest.fixture
def pdf_ops() -> FitzPdfOps:
    return FitzPdfOps()


@pytest.fixture
def io_error():
    return lambda: MergeIOError("I/O error while writing temp file")
