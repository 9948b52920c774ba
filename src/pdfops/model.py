from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PdfInfo:
    path: str
    page_count: int
    size: int
    is_encrypted: bool
    title: str = ""
    author: str = ""
    subject: str = ""
    creator: str = ""
    producer: str = ""
    format: Optional[str] = None
