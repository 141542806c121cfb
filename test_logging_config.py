"""
Logging setup tests
"""

import logging
import os
import time

import pytest

from sprite_extraction import logging_config


@pytest.fixture
def fresh_logging():
    root = logging.getLogger()
    handlers_before = list(root.handlers)
    level_before = root.level
    logging_config._LOGGING_INITIALIZED = False
    yield
    for handler in list(root.handlers):
        if handler not in handlers_before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level_before)
    logging_config._LOGGING_INITIALIZED = False


def test_init_logging_creates_log_file(tmp_path, fresh_logging):
    log_dir = logging_config.init_logging(tmp_path / "logs")

    logging.getLogger("sprite_extraction.test").error("boom")
    for handler in logging.getLogger().handlers:
        handler.flush()

    files = list(log_dir.glob("sprite_extraction_*.log"))
    assert len(files) == 1
    assert "ERROR: boom" in files[0].read_text(encoding="utf-8")


def test_init_logging_is_idempotent(tmp_path, fresh_logging):
    root = logging.getLogger()
    logging_config.init_logging(tmp_path)
    count = len(root.handlers)

    logging_config.init_logging(tmp_path)

    assert len(root.handlers) == count


def test_old_logs_are_pruned(tmp_path):
    now = time.time()
    for i in range(7):
        path = tmp_path / f"sprite_extraction_2024010{i}_000000.log"
        path.write_text("x")
        os.utime(path, (now - 100 + i, now - 100 + i))
    (tmp_path / "other.log").write_text("keep")

    logging_config._cleanup_old_logs(tmp_path, keep_count=5)

    remaining = sorted(p.name for p in tmp_path.glob("sprite_extraction_*.log"))
    assert remaining == [f"sprite_extraction_2024010{i}_000000.log" for i in range(2, 7)]
    assert (tmp_path / "other.log").exists()
