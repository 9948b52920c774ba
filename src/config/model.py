from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Tuple

DEFAULT_MAX_MEMORY: int = 100 * 1024 * 1024
DEFAULT_WINDOW_WIDTH: int = 800
DEFAULT_WINDOW_HEIGHT: int = 600

DEFAULT_PASSWORDS: Tuple[str, ...] = (
    "",
    "123456",
    "password",
    "123456789",
    "12345678",
    "12345",
    "1234567",
    "admin",
    "123123",
    "qwerty",
    "abc123",
    "Password",
    "123",
    "1234",
    "pdf",
    "PDF",
)


def dedupe_passwords(passwords: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out = []
    for p in passwords:
        if p not in seen:
            seen.add(p)
            out.append(p)
    return tuple(out)


@dataclass(frozen=True)
class Config:
    max_memory_usage: int = DEFAULT_MAX_MEMORY
    temp_directory: str = ""
    output_directory: str = ""
    enable_auto_decrypt: bool = True
    common_passwords: Tuple[str, ...] = field(default=DEFAULT_PASSWORDS)
    window_width: int = DEFAULT_WINDOW_WIDTH
    window_height: int = DEFAULT_WINDOW_HEIGHT

    def __post_init__(self) -> None:
        object.__setattr__(self, "common_passwords", dedupe_passwords(self.common_passwords))

    def to_dict(self) -> dict:
        return {
            "max_memory_usage": self.max_memory_usage,
            "temp_directory": self.temp_directory,
            "output_directory": self.output_directory,
            "enable_auto_decrypt": self.enable_auto_decrypt,
            "common_passwords": list(self.common_passwords),
            "window_width": self.window_width,
            "window_height": self.window_height,
        }
