"""
Logging Configuration for Todo Agent.

Where the JSONL streams live, how large they may grow and which level
they record at.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_LOG_DIR = Path.home() / ".todo-agent" / "logs"


@dataclass
class LogConfig:
    """Settings shared by the model, tool and session streams."""

    log_dir: Path = field(default_factory=lambda: DEFAULT_LOG_DIR)
    max_file_size_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    level: str = "INFO"  # failed entries are written at ERROR

    @classmethod
    def from_env(cls) -> "LogConfig":
        """Build from TODO_AGENT_LOG_* variables, keeping defaults for the rest."""
        config = cls()

        if level := os.environ.get("TODO_AGENT_LOG_LEVEL"):
            config.level = level.upper()

        if log_dir := os.environ.get("TODO_AGENT_LOG_DIR"):
            config.log_dir = Path(log_dir).expanduser()

        # Given in MB; a malformed value keeps the default
        max_size = os.environ.get("TODO_AGENT_LOG_MAX_SIZE_MB", "")
        if max_size.isdigit() and int(max_size) > 0:
            config.max_file_size_bytes = int(max_size) * 1024 * 1024

        return config


_config: LogConfig | None = None


def get_config() -> LogConfig:
    """Get the active log config, loading it from the environment on first use."""
    global _config
    if _config is None:
        _config = LogConfig.from_env()
    return _config


def set_config(config: LogConfig) -> None:
    """Replace the active log config. Streams reopen their files on the next write."""
    global _config
    _config = config
