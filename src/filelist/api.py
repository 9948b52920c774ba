from __future__ import annotations

from .filelist import FileList, build_file_entry, validate_file_list
from .model import FileEntry, format_size, new_entry


def describe_file(path: str, order: int, pdf_ops, file_ops) -> FileEntry:
    """Public API (FileList)

    Contract:
    - Returns a FileEntry populated from FileOps (size) and PdfOps (pages, encryption).
    - Never raises for bad inputs: the entry comes back invalid with the error text.
    - valid == (error is None).
    """
    return build_file_entry(path, order, pdf_ops, file_ops)


__all__ = ["FileEntry", "FileList", "describe_file", "format_size", "new_entry", "validate_file_list"]
