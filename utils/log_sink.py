"""
Project-local, append-only log for hook decisions.

All hook output goes to a file instead of stdout/stderr so it cannot corrupt
the host's terminal UI. The sink resolves its own location and creates its own
directory; callers only ever call append(). A failing sink never raises.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Protocol

from utils.colored_logger import SinkFormatter
from utils.constants import FileConstants, PathConstants

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Sink(Protocol):
    """Anything that accepts log lines. Implementations must never raise."""

    def append(self, level: str, message: str) -> None: ...


def find_project_root(start: Optional[Path] = None) -> Path:
    """Walk up from start (default cwd) looking for a project root marker."""
    start = Path(start or os.getcwd()).resolve()
    current = start
    for _ in range(FileConstants.MAX_ROOT_SEARCH_DEPTH):
        if any((current / marker).exists() for marker in FileConstants.ROOT_MARKERS):
            return current
        if current.parent == current:
            break
        current = current.parent
    return start


def resolve_log_path(project_root: Optional[Path] = None) -> Path:
    """
    Get the log file path, creating its directory if needed.

    Falls back to the system temp directory when the project directory is not
    writable.
    """
    root = find_project_root(project_root)
    log_dir = root / PathConstants.DATA_DIR_NAME
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return PathConstants.FALLBACK_LOG_PATH
    return log_dir / PathConstants.LOG_FILE_NAME


class LogSink:
    """File-backed sink writing one formatted line per append."""

    def __init__(self, log_path: Optional[Path] = None, prefix: str = ""):
        self._log_path = log_path
        self.prefix = prefix
        self._logger: Optional[logging.Logger] = None

    @property
    def log_path(self) -> Path:
        if self._log_path is None:
            self._log_path = resolve_log_path()
        return self._log_path

    def _get_logger(self) -> logging.Logger:
        if self._logger is None:
            path = self.log_path
            logger = logging.getLogger(f"hookguard.sink.{path}")
            logger.propagate = False
            logger.setLevel(logging.DEBUG)
            if not logger.handlers:
                path.parent.mkdir(parents=True, exist_ok=True)
                handler = logging.FileHandler(path, mode="a", encoding="utf-8")
                handler.setFormatter(SinkFormatter())
                logger.addHandler(handler)
            self._logger = logger
        return self._logger

    def append(self, level: str, message: str) -> None:
        try:
            text = f"{self.prefix} {message}" if self.prefix else message
            self._get_logger().log(LEVELS.get(level.lower(), logging.INFO), text)
        except Exception:
            # Logging must never break a hook
            pass

    def close(self) -> None:
        if self._logger is None:
            return
        for handler in self._logger.handlers[:]:
            handler.close()
            self._logger.removeHandler(handler)
        self._logger = None


def summarize_lines(lines: Iterable[str], max_lines: int = 3) -> str:
    """Join multi-line tool output into one line with an overflow summary."""
    lines = [line.strip() for line in lines if line.strip()]
    shown = " | ".join(lines[:max_lines])
    if len(lines) > max_lines:
        shown = f"{shown} (+{len(lines) - max_lines} more)"
    return shown
