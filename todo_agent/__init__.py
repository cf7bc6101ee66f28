"""
Todo Agent - natural-language to-do list assistant.

A CLI tool where a chat model decides which to-do list operation to run
(list, create, search, delete) and the program executes it against a
local SQLite store.
"""

__version__ = "0.1.0"

from todo_agent.exceptions import (
    ConfigError,
    ProtocolError,
    StoreError,
    TodoAgentError,
    ToolExecutionError,
    TransportError,
    UnknownToolError,
)

__all__ = [
    "__version__",
    "TodoAgentError",
    "ConfigError",
    "TransportError",
    "ProtocolError",
    "UnknownToolError",
    "ToolExecutionError",
    "StoreError",
]
