"""Model client and system prompt for the OpenAI chat-completions API."""

from todo_agent.llm.client import ModelClient, ModelResponse, ping_model_sync
from todo_agent.llm.prompts import SYSTEM_PROMPT

__all__ = [
    "ModelClient",
    "ModelResponse",
    "ping_model_sync",
    "SYSTEM_PROMPT",
]
