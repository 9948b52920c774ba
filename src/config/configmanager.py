from __future__ import annotations

import dataclasses
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .model import Config, dedupe_passwords
from .validator import validate_config

logger = logging.getLogger(__name__)

WATCH_INTERVAL: float = 1.0

ConfigChangeCallback = Callable[[Config, Config], None]


class ConfigError(RuntimeError):
    pass


def default_config_path() -> Path:
    return Path.home() / ".pdf-merger" / "config.json"


def merge_with_defaults(data: Dict[str, Any], prior: Config) -> Config:
    """Missing or non-positive fields fall back to defaults; a missing
    enable_auto_decrypt keeps the prior value."""
    defaults = Config()

    def positive_int(key: str, fallback: int) -> int:
        value = data.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            return fallback
        return value

    passwords = data.get("common_passwords")
    if not isinstance(passwords, list) or not passwords:
        passwords = list(defaults.common_passwords)

    auto_decrypt = data.get("enable_auto_decrypt")
    if not isinstance(auto_decrypt, bool):
        auto_decrypt = prior.enable_auto_decrypt

    return Config(
        max_memory_usage=positive_int("max_memory_usage", defaults.max_memory_usage),
        temp_directory=str(data.get("temp_directory") or defaults.temp_directory),
        output_directory=str(data.get("output_directory") or defaults.output_directory),
        enable_auto_decrypt=auto_decrypt,
        common_passwords=tuple(str(p) for p in passwords),
        window_width=positive_int("window_width", defaults.window_width),
        window_height=positive_int("window_height", defaults.window_height),
    )


class ConfigManager:
    def __init__(self, config_path: Optional[str] = None, watch_interval: float = WATCH_INTERVAL) -> None:
        self.config_path = Path(config_path) if config_path else default_config_path()
        self._watch_interval = watch_interval
        self._lock = threading.RLock()
        self._config = Config()
        self._callbacks: List[ConfigChangeCallback] = []
        self._watch_stop = threading.Event()
        self._watch_thread: Optional[threading.Thread] = None

    @property
    def config(self) -> Config:
        with self._lock:
            return self._config

    def load(self) -> Config:
        if not self.config_path.exists():
            return self.config
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read config {self.config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {self.config_path} is not a JSON object")

        with self._lock:
            self._config = merge_with_defaults(data, self._config)
            return self._config

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.config.to_dict(), indent=2)
        self.config_path.write_text(payload, encoding="utf-8")

    def update(self, config: Config) -> None:
        validate_config(config)
        with self._lock:
            old = self._config
            self._config = config
        if old != config:
            self._notify(old, config)

    def _replace(self, **changes: Any) -> None:
        with self._lock:
            new = dataclasses.replace(self._config, **changes)
        self.update(new)

    def set_max_memory_usage(self, size: int) -> None:
        self._replace(max_memory_usage=size)

    def set_temp_directory(self, directory: str) -> None:
        self._replace(temp_directory=directory)

    def set_output_directory(self, directory: str) -> None:
        self._replace(output_directory=directory)

    def set_auto_decrypt(self, enabled: bool) -> None:
        self._replace(enable_auto_decrypt=enabled)

    def set_window_size(self, width: int, height: int) -> None:
        self._replace(window_width=width, window_height=height)

    def add_common_password(self, password: str) -> None:
        with self._lock:
            passwords = dedupe_passwords(self._config.common_passwords + (password,))
        self._replace(common_passwords=passwords)

    def remove_common_password(self, password: str) -> None:
        with self._lock:
            passwords = tuple(p for p in self._config.common_passwords if p != password)
        self._replace(common_passwords=passwords)

    def add_change_callback(self, callback: ConfigChangeCallback) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def remove_change_callback(self, callback: ConfigChangeCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def is_watching(self) -> bool:
        with self._lock:
            return self._watch_thread is not None

    def start_watching(self) -> None:
        with self._lock:
            if self._watch_thread is not None:
                return
            self._watch_stop.clear()
            self._watch_thread = threading.Thread(
                target=self._watch, args=(self._mtime(),), name="config-watch", daemon=True
            )
            self._watch_thread.start()

    def stop_watching(self) -> None:
        with self._lock:
            thread = self._watch_thread
            self._watch_thread = None
        if thread is not None:
            self._watch_stop.set()
            thread.join()

    def _mtime(self) -> float:
        try:
            return self.config_path.stat().st_mtime
        except OSError:
            return 0.0

    def _watch(self, last: float) -> None:
        while not self._watch_stop.wait(self._watch_interval):
            current = self._mtime()
            if current <= last:
                continue
            last = current
            old = self.config
            try:
                new = self.load()
            except ConfigError as e:
                logger.warning("config reload failed, keeping previous config: %s", e)
                continue
            if new != old:
                self._notify(old, new)

    def _notify(self, old: Config, new: Config) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb(old, new)
