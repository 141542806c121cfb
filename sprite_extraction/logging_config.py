from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .config import get_engine_config

_LOGGING_INITIALIZED = False


class _ErrorHighlightFilter(logging.Filter):
    """Highlight error messages for better visibility."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR and not str(record.msg).startswith("ERROR: "):
            record.msg = f"ERROR: {record.msg}"
        return True


def _cleanup_old_logs(log_dir: Path, keep_count: int = 5) -> None:
    """Delete old log files, keeping the newest keep_count."""
    log_files = sorted(
        log_dir.glob("sprite_extraction_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for old_log in log_files[keep_count:]:
        try:
            old_log.unlink()
        except OSError as e:
            print(f"Failed to delete log file {old_log.name}: {e}")


def init_logging(log_dir: Optional[Union[str, Path]] = None, keep_count: int = 5) -> Path:
    """
    Initialize global logging:
    - directory: EngineConfig.log_dir unless log_dir is given
    - file: sprite_extraction_YYYYMMDD_HHMMSS.log
    - level: INFO (file), WARNING (console)

    Calling it again is a no-op that returns the same directory.
    """
    global _LOGGING_INITIALIZED

    log_path = Path(log_dir if log_dir is not None else get_engine_config().log_dir)
    if _LOGGING_INITIALIZED:
        return log_path

    log_path.mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs(log_path, keep_count=keep_count)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_path / f"sprite_extraction_{timestamp}.log"

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_file, encoding="utf-8", mode="a")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)

    error_highlight_filter = _ErrorHighlightFilter()
    file_handler.addFilter(error_highlight_filter)
    console_handler.addFilter(error_highlight_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    _LOGGING_INITIALIZED = True
    return log_path
