from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import fitz  # PyMuPDF

from src.errors.api import (
    EncryptedError,
    InvalidPdfError,
    MergeError,
    MergeIOError,
    NotFoundError,
    OutOfMemoryError,
    PermissionDeniedError,
)
from .model import PdfInfo

logger = logging.getLogger(__name__)

# MuPDF contexts are not thread-safe; every library call goes through this lock.
_LIBRARY_LOCK = threading.RLock()

GARBAGE_LEVEL: int = 4

ProgressSink = Callable[[int, int, str], None]


def _check_readable(path: str) -> None:
    p = Path(path)
    if not p.exists():
        raise NotFoundError(path)
    if not p.is_file():
        raise NotFoundError(path, "not a regular file")
    if not os.access(p, os.R_OK):
        raise PermissionDeniedError(path)


def _translate(path: str, e: BaseException) -> MergeError:
    if isinstance(e, MergeError):
        return e
    if isinstance(e, MemoryError):
        return OutOfMemoryError(path=path)
    # PyMuPDF raises its own FileNotFoundError (a RuntimeError, not an OSError)
    if isinstance(e, (FileNotFoundError, fitz.FileNotFoundError)):
        return NotFoundError(path)
    if isinstance(e, fitz.FileDataError):
        return InvalidPdfError(path, f"invalid PDF format ({e})")
    if isinstance(e, PermissionError):
        return PermissionDeniedError(path)
    if isinstance(e, OSError):
        return MergeIOError(f"I/O error ({e})", path)
    return InvalidPdfError(path, f"invalid PDF format ({e})")


def _save(doc: fitz.Document, output_path: str, **options) -> None:
    """Write doc next to output_path, then move it into place.

    A failed write never touches an existing file at output_path and is
    reported as MergeIOError.
    """
    directory = os.path.dirname(os.path.abspath(output_path))
    scratch = None
    try:
        fd, scratch = tempfile.mkstemp(prefix=".pdf-merger-", suffix=".pdf", dir=directory)
        os.close(fd)
        doc.save(scratch, **options)
        os.replace(scratch, output_path)
        scratch = None
    except MemoryError as e:
        raise OutOfMemoryError(path=output_path) from e
    except Exception as e:
        raise MergeIOError(f"cannot write output ({e})", output_path) from e
    finally:
        if scratch is not None:
            Path(scratch).unlink(missing_ok=True)


def _open(path: str) -> fitz.Document:
    try:
        return fitz.open(path, filetype="pdf")
    except Exception as e:
        raise _translate(path, e) from e


class FitzAppender:
    """Incremental page-tree builder for one output file."""

    def __init__(self, output_path: str) -> None:
        self.output_path = output_path
        with _LIBRARY_LOCK:
            self._doc = fitz.open()
        self.page_count = 0

    def append(self, path: str, from_page: int = 0, to_page: int = -1) -> int:
        with _LIBRARY_LOCK:
            src = _open(path)
            try:
                if src.needs_pass:
                    raise EncryptedError(path)
                last = src.page_count - 1 if to_page < 0 else min(to_page, src.page_count - 1)
                if last < from_page:
                    return 0
                self._doc.insert_pdf(src, from_page=from_page, to_page=last)
            except MergeError:
                raise
            except Exception as e:
                raise _translate(path, e) from e
            finally:
                src.close()
        added = last - from_page + 1
        self.page_count += added
        return added

    def save(self) -> None:
        with _LIBRARY_LOCK:
            _save(self._doc, self.output_path, garbage=GARBAGE_LEVEL, deflate=True)

    def close(self) -> None:
        with _LIBRARY_LOCK:
            self._doc.close()

    def __enter__(self) -> "FitzAppender":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FitzPdfOps:
    """PdfOps capability backed by PyMuPDF."""

    def validate(self, path: str) -> None:
        _check_readable(path)
        if os.path.getsize(path) == 0:
            raise InvalidPdfError(path, "invalid PDF format (empty file)")
        with _LIBRARY_LOCK:
            doc = _open(path)
            try:
                if not doc.is_pdf:
                    raise InvalidPdfError(path)
                if not doc.needs_pass and doc.page_count == 0:
                    raise InvalidPdfError(path, "invalid PDF format (no pages)")
            finally:
                doc.close()

    def info(self, path: str) -> PdfInfo:
        _check_readable(path)
        size = os.path.getsize(path)
        with _LIBRARY_LOCK:
            doc = _open(path)
            try:
                meta = doc.metadata or {}
                return PdfInfo(
                    path=path,
                    page_count=doc.page_count,
                    size=size,
                    is_encrypted=bool(doc.needs_pass),
                    title=meta.get("title") or "",
                    author=meta.get("author") or "",
                    subject=meta.get("subject") or "",
                    creator=meta.get("creator") or "",
                    producer=meta.get("producer") or "",
                    format=meta.get("format"),
                )
            finally:
                doc.close()

    def is_encrypted(self, path: str) -> bool:
        _check_readable(path)
        with _LIBRARY_LOCK:
            doc = _open(path)
            try:
                return bool(doc.needs_pass)
            finally:
                doc.close()

    def page_count(self, path: str) -> int:
        _check_readable(path)
        with _LIBRARY_LOCK:
            doc = _open(path)
            try:
                return doc.page_count
            finally:
                doc.close()

    def authenticate(self, path: str, password: str) -> bool:
        with _LIBRARY_LOCK:
            doc = _open(path)
            try:
                if not doc.needs_pass:
                    return True
                return doc.authenticate(password) > 0
            finally:
                doc.close()

    def decrypt(self, path: str, password: str, output_path: str) -> None:
        with _LIBRARY_LOCK:
            doc = _open(path)
            try:
                if doc.needs_pass and doc.authenticate(password) <= 0:
                    raise EncryptedError(path, "wrong password")
                _save(doc, output_path, encryption=fitz.PDF_ENCRYPT_NONE)
            except MergeError:
                raise
            except Exception as e:
                raise _translate(path, e) from e
            finally:
                doc.close()

    def merge(
        self,
        main_path: str,
        additional_paths: Sequence[str],
        output_path: str,
        progress_sink: Optional[ProgressSink] = None,
    ) -> int:
        inputs: List[str] = [main_path] + list(additional_paths)
        total = len(inputs)
        with FitzAppender(output_path) as appender:
            for i, path in enumerate(inputs):
                appender.append(path)
                if progress_sink is not None:
                    progress_sink(i + 1, total, path)
            appender.save()
            pages = appender.page_count
        logger.debug("merged %d files (%d pages) into %s", total, pages, output_path)
        return pages

    def open_appender(self, output_path: str) -> FitzAppender:
        return FitzAppender(output_path)
