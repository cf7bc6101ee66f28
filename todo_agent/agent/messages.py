"""
Protocol Messages

The five message tags exchanged between operator, model and tools, and
the decoder that turns a raw model reply into exactly one message.

Unknown tool names are rejected here, at the decoding boundary, rather
than deep inside dispatch.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from todo_agent.exceptions import ProtocolError, UnknownToolError


class MessageType(str, Enum):
    """Tag carried in the `type` field of every protocol message."""

    USER = "user"
    PLAN = "plan"
    ACTION = "action"
    OBSERVATION = "observation"
    OUTPUT = "output"


class ToolName(str, Enum):
    """Closed set of tool names the model is told about in the system prompt."""

    GET_ALL_TODOS = "getAllTodos"
    CREATE_TODO = "createTodo"
    SEARCH_TODO = "searchTodo"
    DELETE_TODO_BY_ID = "deleteTodoById"


# Tags the model itself is allowed to emit
MODEL_TAGS = frozenset({MessageType.PLAN, MessageType.ACTION, MessageType.OUTPUT})

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$")


@dataclass(frozen=True)
class UserMessage:
    """Free-text request from the operator."""

    user: str
    type: ClassVar[MessageType] = MessageType.USER

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "user": self.user}


@dataclass(frozen=True)
class PlanMessage:
    """The model's stated intention. Advisory only, never executed."""

    plan: str
    type: ClassVar[MessageType] = MessageType.PLAN

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "plan": self.plan}


@dataclass(frozen=True)
class ActionMessage:
    """Request to invoke exactly one tool with one string input."""

    function: ToolName
    input: str = ""
    type: ClassVar[MessageType] = MessageType.ACTION

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "function": self.function.value, "input": self.input}


@dataclass(frozen=True)
class ObservationMessage:
    """A tool result (or tool error) fed back to the model."""

    observation: Any = None
    error: str | None = None
    type: ClassVar[MessageType] = MessageType.OBSERVATION

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "observation": self.observation}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class OutputMessage:
    """The user-visible response that ends a turn."""

    output: str
    type: ClassVar[MessageType] = MessageType.OUTPUT

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "output": self.output}


Message = Union[UserMessage, PlanMessage, ActionMessage, ObservationMessage, OutputMessage]
ModelReply = Union[PlanMessage, ActionMessage, OutputMessage]


def to_json(message: Message) -> str:
    """Serialize a message the way it is stored in conversation history."""
    return json.dumps(message.to_dict(), default=str)


def _strip_code_fence(text: str) -> str:
    """Remove one surrounding Markdown code fence, if present."""
    match = _FENCE_PATTERN.match(text)
    return match.group(1) if match else text


def _require_text(data: dict[str, Any], key: str, raw: str) -> str:
    """Fetch a required field and return it as a string."""
    if key not in data or data[key] is None:
        raise ProtocolError(f"'{data.get('type')}' reply is missing the '{key}' field", raw)
    value = data[key]
    return value if isinstance(value, str) else json.dumps(value)


def coerce_tool_input(value: Any) -> str:
    """
    Normalize an action's `input` to the single-string tool contract.

    Missing input becomes "", non-string JSON values keep their JSON text
    (so `7` becomes "7").
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def decode_reply(raw: str) -> ModelReply:
    """
    Decode one model reply into exactly one protocol message.

    Args:
        raw: Reply text from the model service

    Returns:
        PlanMessage, ActionMessage or OutputMessage

    Raises:
        ProtocolError: If the reply is not a JSON object with a model tag
        UnknownToolError: If an action names a function outside ToolName
    """
    text = _strip_code_fence((raw or "").strip())

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Model reply is not valid JSON: {e.msg}", raw) from e

    if not isinstance(data, dict):
        raise ProtocolError("Model reply is not a JSON object", raw)

    tag = data.get("type")
    try:
        message_type = MessageType(tag)
    except ValueError:
        raise ProtocolError(f"Model reply has unrecognized type {tag!r}", raw) from None

    if message_type not in MODEL_TAGS:
        raise ProtocolError(f"Model may not emit '{message_type.value}' messages", raw)

    if message_type == MessageType.PLAN:
        return PlanMessage(plan=_require_text(data, "plan", raw))

    if message_type == MessageType.OUTPUT:
        return OutputMessage(output=_require_text(data, "output", raw))

    function = data.get("function")
    if not isinstance(function, str) or not function:
        raise ProtocolError("'action' reply is missing the 'function' field", raw)
    try:
        tool = ToolName(function)
    except ValueError:
        raise UnknownToolError(f"Unknown tool '{function}'", tool_name=function) from None

    return ActionMessage(function=tool, input=coerce_tool_input(data.get("input")))
