"""
Todo Agent structured logging.

Three JSONL streams under ~/.todo-agent/logs/ (see LogConfig):
    - model.jsonl: chat-completion calls
    - tool.jsonl: tool dispatches against the todo store
    - session.jsonl: session start/end and each user turn

Usage:
    from todo_agent.logging import ToolLogEntry, tool_log

    tool_log.write(ToolLogEntry(tool_name="createTodo", tool_input="Buy milk", success=True))

Diagnostic messages still go through logging.getLogger(__name__).
"""

from .config import LogConfig, get_config, set_config
from .context import get_session_id, set_session_id
from .entries import LogEntry, ModelLogEntry, SessionLogEntry, ToolLogEntry
from .streams import LogStream, model_log, session_log, tool_log

__all__ = [
    "model_log",
    "tool_log",
    "session_log",
    "LogStream",
    "LogEntry",
    "ModelLogEntry",
    "ToolLogEntry",
    "SessionLogEntry",
    "get_session_id",
    "set_session_id",
    "LogConfig",
    "get_config",
    "set_config",
]
