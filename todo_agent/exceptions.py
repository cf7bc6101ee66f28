"""
Todo Agent - Exception Hierarchy

All Todo Agent exceptions inherit from TodoAgentError.
Every error raised during a turn is non-fatal to the process: the agent
loop abandons the turn, reports the error and re-prompts the operator.
"""

from typing import Any


class TodoAgentError(Exception):
    """Base exception for all Todo Agent errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Configuration Errors
class ConfigError(TodoAgentError):
    """Raised when configuration is invalid or missing."""

    pass


# Model service (transport) Errors
class TransportError(TodoAgentError):
    """Base exception for chat-completion service failures."""

    pass


class ModelConnectionError(TransportError):
    """Raised when the model service cannot be reached."""

    pass


class ModelAuthError(TransportError):
    """Raised when the model service rejects the API key."""

    pass


class ModelRateLimitError(TransportError):
    """Raised when the model service rate limit or quota is hit."""

    def __init__(self, message: str, retry_after: int | None = None):
        super().__init__(message, {"retry_after": retry_after})
        self.retry_after = retry_after


class ModelTimeoutError(TransportError):
    """Raised when a model call does not complete within the timeout."""

    def __init__(self, message: str, timeout_seconds: float):
        super().__init__(message, {"timeout_seconds": timeout_seconds})
        self.timeout_seconds = timeout_seconds


class ModelResponseError(TransportError):
    """Raised when the model service returns no usable message."""

    pass


# Protocol Errors
class ProtocolError(TodoAgentError):
    """Raised when a model reply is not a single JSON object with a known type."""

    def __init__(self, message: str, raw_reply: str = ""):
        super().__init__(message, {"reply_preview": raw_reply[:200]} if raw_reply else None)
        self.raw_reply = raw_reply


class UnknownToolError(TodoAgentError):
    """Raised when an action names a function that is not a registered tool."""

    def __init__(self, message: str, tool_name: str):
        super().__init__(message, {"tool_name": tool_name})
        self.tool_name = tool_name


# Tool Errors
class ToolExecutionError(TodoAgentError):
    """Raised when an invoked tool fails.

    Recoverable failures are fed back to the model as an observation.
    Non-recoverable failures abandon the turn.
    """

    def __init__(self, message: str, tool_name: str, recoverable: bool = True):
        super().__init__(message, {"tool_name": tool_name, "recoverable": recoverable})
        self.tool_name = tool_name
        self.recoverable = recoverable


class InvalidToolInputError(ToolExecutionError):
    """Raised when a tool input is not valid for its operation (e.g. non-numeric id)."""

    def __init__(self, message: str, tool_name: str, tool_input: str):
        super().__init__(message, tool_name, recoverable=True)
        self.details["input"] = tool_input
        self.tool_input = tool_input


# Store Errors
class StoreError(TodoAgentError):
    """Base exception for task store errors."""

    pass


class StoreConnectionError(StoreError):
    """Raised when the SQLite database cannot be opened or reached."""

    pass


# Agent Loop Errors
class StepLimitError(TodoAgentError):
    """Raised when a single turn exceeds the allowed number of model calls."""

    def __init__(self, message: str, max_steps: int):
        super().__init__(message, {"max_steps": max_steps})
        self.max_steps = max_steps


class StateTransitionError(TodoAgentError):
    """Raised when an invalid agent state transition is attempted.

    Includes the current state and the attempted target state for debugging.
    """

    def __init__(self, message: str, from_state: str, to_state: str):
        super().__init__(message, {"from_state": from_state, "to_state": to_state})
        self.from_state = from_state
        self.to_state = to_state
