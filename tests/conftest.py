"""Shared fixtures."""

from unittest.mock import AsyncMock

import pytest

from todo_agent.llm.client import ModelResponse
from todo_agent.logging import LogConfig, set_config
from todo_agent.persistence.repository import TodoRepository


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Write JSONL logs under tmp_path instead of the home directory."""
    config = LogConfig(log_dir=tmp_path / "logs")
    set_config(config)
    return config


@pytest.fixture
def repository(tmp_path):
    """A fresh SQLite todo store."""
    repo = TodoRepository(tmp_path / "todos.db")
    repo.initialize()
    yield repo
    repo.close()


class ScriptedClient:
    """Model client stand-in that returns canned replies in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests: list[list[dict[str, str]]] = []
        self.close = AsyncMock()
        self.total_tokens_used = 0

    async def complete(self, messages):
        self.requests.append([dict(m) for m in messages])
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ModelResponse(content=reply, model="test-model")


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient."""
    return ScriptedClient
