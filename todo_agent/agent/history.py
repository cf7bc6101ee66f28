"""
Conversation History

Ordered, append-only log of every entry exchanged during a session.
It is seeded with a single system entry and only ever grows; the full
log (or a turn-aligned window of it) is sent to the model on every call.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from todo_agent.agent.messages import ObservationMessage, UserMessage, to_json


class Role(str, Enum):
    """Transport-level role of a history entry."""

    SYSTEM = "system"
    USER_TURN = "user-turn"
    MODEL_TURN = "model-turn"
    TOOL_RESULT = "tool-result"


# Chat-completions role used for each history role
API_ROLES: dict[Role, str] = {
    Role.SYSTEM: "system",
    Role.USER_TURN: "user",
    Role.MODEL_TURN: "assistant",
    Role.TOOL_RESULT: "developer",
}


@dataclass(frozen=True)
class HistoryEntry:
    """One entry in the conversation log."""

    role: Role
    content: str  # free text for system, serialized message otherwise
    timestamp: datetime = field(default_factory=datetime.now)

    def to_api(self) -> dict[str, str]:
        """Convert to API-compatible dict."""
        return {"role": API_ROLES[self.role], "content": self.content}


class ConversationHistory:
    """
    Append-only conversation log owned by the agent loop.

    Usage:
        history = ConversationHistory(SYSTEM_PROMPT)
        history.append_user(UserMessage("Add milk"))
        history.append_model_reply('{"type": "output", "output": "Done"}')
        client_messages = history.to_api_messages()
    """

    def __init__(self, system_prompt: str):
        self._entries: list[HistoryEntry] = [HistoryEntry(Role.SYSTEM, system_prompt)]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        """Snapshot of all entries, oldest first."""
        return tuple(self._entries)

    @property
    def last(self) -> HistoryEntry:
        return self._entries[-1]

    @property
    def turn_count(self) -> int:
        """Number of user turns recorded."""
        return sum(1 for entry in self._entries if entry.role == Role.USER_TURN)

    def _append(self, role: Role, content: str) -> HistoryEntry:
        entry = HistoryEntry(role, content)
        self._entries.append(entry)
        return entry

    def append_user(self, message: UserMessage) -> HistoryEntry:
        """Record an operator request."""
        return self._append(Role.USER_TURN, to_json(message))

    def append_model_reply(self, raw_reply: str) -> HistoryEntry:
        """Record a model reply verbatim, whether or not it decodes."""
        return self._append(Role.MODEL_TURN, raw_reply)

    def append_observation(self, message: ObservationMessage) -> HistoryEntry:
        """Record a tool result or tool error."""
        return self._append(Role.TOOL_RESULT, to_json(message))

    def to_api_messages(self, max_turns: int | None = None) -> list[dict[str, str]]:
        """
        Build the message list for a chat-completion request.

        Args:
            max_turns: If set, send only the system entry plus the entries of
                the last `max_turns` user turns. Windows always start at a
                user-turn entry, so action/observation pairs stay together.
                The log itself is never trimmed.

        Returns:
            List of {role, content} dicts for OpenAI-compatible API
        """
        entries = self._entries
        if max_turns is not None:
            user_indexes = [i for i, e in enumerate(entries) if e.role == Role.USER_TURN]
            if len(user_indexes) > max_turns:
                start = user_indexes[-max_turns] if max_turns > 0 else len(entries)
                entries = [entries[0]] + entries[start:]
        return [entry.to_api() for entry in entries]
