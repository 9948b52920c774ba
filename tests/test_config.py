import json
import os
import threading
from pathlib import Path

import pytest

from src.config.api import (
    DEFAULT_PASSWORDS,
    Config,
    ConfigError,
    ConfigManager,
    ConfigValidationError,
    load_config,
    validate_config,
)


def test_defaults_when_file_missing(tmp_path: Path):
    cfg = load_config(str(tmp_path / "missing.json"))
    assert cfg == Config()
    assert cfg.max_memory_usage == 100 * 1024 * 1024
    assert cfg.common_passwords[0] == ""
    assert cfg.common_passwords == DEFAULT_PASSWORDS
    assert (cfg.window_width, cfg.window_height) == (800, 600)


def test_round_trip(tmp_path: Path):
    path = tmp_path / "cfg" / "config.json"
    mgr = ConfigManager(str(path))
    mgr.set_max_memory_usage(64 * 1024 * 1024)
    mgr.set_temp_directory(str(tmp_path / "tmp"))
    mgr.set_output_directory(str(tmp_path / "out"))
    mgr.set_auto_decrypt(False)
    mgr.set_window_size(1024, 768)
    mgr.add_common_password("secret")
    mgr.save()

    loaded = ConfigManager(str(path)).load()
    assert loaded == mgr.config
    assert loaded.common_passwords[-1] == "secret"


def test_missing_fields_fall_back_and_auto_decrypt_keeps_prior(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"max_memory_usage": -5, "common_passwords": ["a", "b", "a"]}), encoding="utf-8")

    mgr = ConfigManager(str(path))
    mgr.set_auto_decrypt(False)
    cfg = mgr.load()
    assert cfg.max_memory_usage == Config().max_memory_usage
    assert cfg.common_passwords == ("a", "b")
    assert cfg.enable_auto_decrypt is False

    path.write_text(json.dumps({"enable_auto_decrypt": True}), encoding="utf-8")
    assert mgr.load().enable_auto_decrypt is True


def test_corrupt_file_raises(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        ConfigManager(str(path)).load()


def test_validation_ranges():
    validate_config(Config())
    with pytest.raises(ConfigValidationError):
        validate_config(Config(max_memory_usage=0))
    with pytest.raises(ConfigValidationError):
        validate_config(Config(window_width=100))
    with pytest.raises(ConfigValidationError):
        validate_config(Config(common_passwords=("x" * 101,)))


def test_setters_reject_invalid_values(tmp_path: Path):
    mgr = ConfigManager(str(tmp_path / "config.json"))
    with pytest.raises(ConfigValidationError):
        mgr.set_window_size(10, 10)
    assert mgr.config.window_width == 800


def test_change_callbacks_and_password_removal(tmp_path: Path):
    mgr = ConfigManager(str(tmp_path / "config.json"))
    seen = []
    cb = lambda old, new: seen.append((old.enable_auto_decrypt, new.enable_auto_decrypt))
    mgr.add_change_callback(cb)
    mgr.set_auto_decrypt(False)
    mgr.set_auto_decrypt(False)
    mgr.remove_change_callback(cb)
    mgr.set_auto_decrypt(True)
    assert seen == [(True, False)]

    mgr.remove_common_password("admin")
    assert "admin" not in mgr.config.common_passwords


def test_watcher_reloads_external_edits(tmp_path: Path):
    path = tmp_path / "config.json"
    mgr = ConfigManager(str(path), watch_interval=0.02)
    mgr.save()
    changed = threading.Event()
    mgr.add_change_callback(lambda old, new: changed.set())

    mgr.start_watching()
    mgr.start_watching()
    try:
        assert mgr.is_watching
        data = json.loads(path.read_text(encoding="utf-8"))
        data["window_width"] = 1280
        path.write_text(json.dumps(data), encoding="utf-8")
        st = path.stat()
        os.utime(path, (st.st_atime, st.st_mtime + 5))
        assert changed.wait(2)
        assert mgr.config.window_width == 1280
    finally:
        mgr.stop_watching()
    assert not mgr.is_watching
