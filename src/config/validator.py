from __future__ import annotations

from .model import Config

MAX_MEMORY_LIMIT: int = 8 * 1024 * 1024 * 1024
MAX_PASSWORD_LENGTH: int = 100


class ConfigValidationError(ValueError):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"validation error for field '{field}': {message}")


def validate_config(config: Config) -> None:
    if config.max_memory_usage <= 0:
        raise ConfigValidationError("max_memory_usage", "must be positive")
    if config.max_memory_usage > MAX_MEMORY_LIMIT:
        raise ConfigValidationError("max_memory_usage", "exceeds reasonable limit (8GB)")
    if not 400 <= config.window_width <= 4000:
        raise ConfigValidationError("window_width", "must be between 400 and 4000")
    if not 300 <= config.window_height <= 3000:
        raise ConfigValidationError("window_height", "must be between 300 and 3000")
    for i, password in enumerate(config.common_passwords):
        if len(password) > MAX_PASSWORD_LENGTH:
            raise ConfigValidationError(f"common_passwords[{i}]", "password too long (max 100 characters)")
