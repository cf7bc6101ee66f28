"""
Todo Agent - Configuration Management

Loads settings from environment variables.
The only required value is the model service API key (OPENAI_API_KEY).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from todo_agent.exceptions import ConfigError


# Configuration paths
CONFIG_DIR = Path.home() / ".config" / "todo-agent"
DEFAULT_DB_PATH = CONFIG_DIR / "todos.db"

# Model defaults
DEFAULT_MODEL = "gpt-4o"
DEFAULT_TIMEOUT = 60.0  # seconds per model call
DEFAULT_MAX_STEPS = 10  # model calls allowed per user turn

API_KEY_ENV = "OPENAI_API_KEY"


@dataclass
class AgentConfig:
    """Main configuration container for Todo Agent."""

    openai_api_key: str = ""
    base_url: str | None = None
    model: str = DEFAULT_MODEL
    db_path: Path = DEFAULT_DB_PATH
    timeout: float = DEFAULT_TIMEOUT
    max_steps: int = DEFAULT_MAX_STEPS
    history_turns: int | None = None  # None keeps the full history in every request
    max_retries: int = 2

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display (API key is masked)."""
        return {
            "openai_api_key": "***" if self.openai_api_key else "",
            "base_url": self.base_url,
            "model": self.model,
            "db_path": str(self.db_path),
            "timeout": self.timeout,
            "max_steps": self.max_steps,
            "history_turns": self.history_turns,
            "max_retries": self.max_retries,
        }


def _env_number(name: str, cast: type, default: Any) -> Any:
    """Read a numeric environment variable, raising ConfigError if malformed."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(
            f"{name} must be a number",
            {"value": raw},
        )
    if value <= 0:
        raise ConfigError(f"{name} must be positive", {"value": raw})
    return value


def load_config() -> AgentConfig:
    """
    Load configuration from the environment.

    Returns:
        AgentConfig with all settings loaded

    Raises:
        ConfigError: If a numeric setting is malformed
    """
    config = AgentConfig()

    config.openai_api_key = os.environ.get(API_KEY_ENV, "")
    config.base_url = os.environ.get("OPENAI_BASE_URL") or None

    if model := os.environ.get("TODO_AGENT_MODEL"):
        config.model = model

    if db_path := os.environ.get("TODO_AGENT_DB_PATH"):
        config.db_path = Path(db_path).expanduser()

    config.timeout = _env_number("TODO_AGENT_TIMEOUT", float, DEFAULT_TIMEOUT)
    config.max_steps = _env_number("TODO_AGENT_MAX_STEPS", int, DEFAULT_MAX_STEPS)
    config.history_turns = _env_number("TODO_AGENT_HISTORY_TURNS", int, None)

    return config


def get_api_key() -> str:
    """
    Get the model service API key from the environment.

    Returns:
        API key string

    Raises:
        ConfigError: If key is not set
    """
    key = os.environ.get(API_KEY_ENV, "")
    if not key:
        raise ConfigError(
            f"{API_KEY_ENV} environment variable not set",
            {"hint": f"Export {API_KEY_ENV}=your-key-here"},
        )
    return key
