"""Agent loop, conversation history, protocol messages and tool registry."""

from todo_agent.agent.history import ConversationHistory, HistoryEntry, Role
from todo_agent.agent.loop import AgentLoop, TurnResult, TurnStatus
from todo_agent.agent.messages import (
    ActionMessage,
    MessageType,
    ObservationMessage,
    OutputMessage,
    PlanMessage,
    ToolName,
    UserMessage,
    decode_reply,
)
from todo_agent.agent.tools import TOOL_SPECS, ToolRegistry, ToolSpec

__all__ = [
    "AgentLoop",
    "TurnResult",
    "TurnStatus",
    "ConversationHistory",
    "HistoryEntry",
    "Role",
    "MessageType",
    "ToolName",
    "UserMessage",
    "PlanMessage",
    "ActionMessage",
    "ObservationMessage",
    "OutputMessage",
    "decode_reply",
    "ToolRegistry",
    "ToolSpec",
    "TOOL_SPECS",
]
