"""
JSONL log streams.

A LogStream is one rotating file holding one JSON log entry per line.
The file is opened on the first write and reopened whenever the active
LogConfig is replaced.
"""

from __future__ import annotations

import logging
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LogConfig, get_config
from .entries import LogEntry


def _open_logger(name: str, path: Path, config: LogConfig) -> logging.Logger:
    """Point the named logger at a single rotating JSONL file."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=config.max_file_size_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    # Entries are serialized already
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


class LogStream:
    """
    One structured log file.

    Usage:
        tool_log.write(ToolLogEntry(tool_name="createTodo", success=True))
    """

    def __init__(self, name: str, filename: str):
        self.name = name
        self.filename = filename
        self._logger: logging.Logger | None = None
        self._config: LogConfig | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return get_config().log_dir / self.filename

    def _get_logger(self) -> logging.Logger:
        config = get_config()
        with self._lock:
            if self._logger is None or self._config is not config:
                self._logger = _open_logger(f"todo_agent.{self.name}", config.log_dir / self.filename, config)
                self._config = config
            return self._logger

    def write(self, entry: LogEntry) -> None:
        """Append one entry. Failed entries are written at ERROR level."""
        level = logging.ERROR if entry.failed else logging.INFO
        self._get_logger().log(level, entry.to_json())


model_log = LogStream("model", "model.jsonl")
tool_log = LogStream("tool", "tool.jsonl")
session_log = LogStream("session", "session.jsonl")
