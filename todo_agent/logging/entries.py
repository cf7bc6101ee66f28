"""
Structured log entries.

One dataclass per stream. Every entry records when it was made, which
session it belongs to and, if something failed, the error.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from .context import get_session_id


def now_iso() -> str:
    """Get current time as ISO 8601 string."""
    return datetime.now().isoformat()


@dataclass
class LogEntry:
    """Fields common to every stream."""

    timestamp: str = field(default_factory=now_iso)
    session_id: str = field(default_factory=get_session_id)
    error: str | None = None
    error_type: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def record_error(self, error: BaseException) -> None:
        self.error = str(error)[:500]
        self.error_type = type(error).__name__

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)


@dataclass
class ModelLogEntry(LogEntry):
    """One chat-completion request and its reply."""

    request_id: str = ""
    model: str = ""
    message_count: int = 0
    last_message: str = ""
    temperature: float = 0.0
    timeout_seconds: float = 0.0

    response_content: str = ""
    finish_reason: str = ""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    latency_ms: int = 0


@dataclass
class ToolLogEntry(LogEntry):
    """One tool dispatch against the todo store."""

    tool_name: str = ""
    tool_input: str = ""
    success: bool = False
    result_preview: str = ""
    recoverable: bool | None = None  # set only on failure
    duration_ms: int = 0


@dataclass
class SessionLogEntry(LogEntry):
    """A session start or end, or the outcome of one user turn."""

    event_type: str = "turn"  # "start", "turn", "error", "end"

    turn_number: int = 0
    user_request: str = ""
    output: str = ""
    model_calls: int = 0
    tools_invoked: int = 0

    # Totals, filled on "end"
    completed_turns: int = 0
    abandoned_turns: int = 0
    total_tokens: int = 0
    total_duration_seconds: float = 0.0
