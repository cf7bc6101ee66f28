"""Tests for the OpenAI-backed model client."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError, APITimeoutError, AuthenticationError, RateLimitError

from todo_agent.config import AgentConfig
from todo_agent.exceptions import (
    ModelAuthError,
    ModelConnectionError,
    ModelRateLimitError,
    ModelResponseError,
    ModelTimeoutError,
)
from todo_agent.llm.client import RESPONSE_FORMAT, ModelClient
from todo_agent.logging import model_log

MESSAGES = [
    {"role": "system", "content": "SYSTEM"},
    {"role": "user", "content": '{"type": "user", "user": "hi"}'},
]
REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def make_response(content='{"type": "output", "output": "hi"}', total_tokens=12):
    usage = SimpleNamespace(prompt_tokens=10, completion_tokens=total_tokens - 10, total_tokens=total_tokens)
    choice = SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")
    return SimpleNamespace(choices=[choice], usage=usage, model="gpt-4o-2024-08-06")


def status_error(cls, status, headers=None):
    response = httpx.Response(status, request=REQUEST, headers=headers or {})
    return cls("failed", response=response, body=None)


@pytest.fixture
def client():
    return ModelClient(api_key="sk-test", model="gpt-4o", timeout=5.0)


@pytest.fixture
def create(client):
    """Patch the SDK call and return its mock."""
    create_mock = AsyncMock(return_value=make_response())
    sdk = MagicMock()
    sdk.chat.completions.create = create_mock
    with patch.object(client, "_get_client", AsyncMock(return_value=sdk)):
        yield create_mock


class TestComplete:
    """Successful completions."""

    @pytest.mark.asyncio
    async def test_returns_raw_content(self, client, create):
        response = await client.complete(MESSAGES)
        assert response.content == '{"type": "output", "output": "hi"}'
        assert response.model == "gpt-4o-2024-08-06"
        assert response.finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_request_shape(self, client, create):
        await client.complete(MESSAGES)
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["response_format"] == RESPONSE_FORMAT == {"type": "json_object"}
        assert kwargs["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_usage_tracked(self, client, create):
        await client.complete(MESSAGES)
        await client.complete(MESSAGES)
        assert client.request_count == 2
        assert client.total_tokens_used == 24

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty(self, client, create):
        create.return_value = make_response(content=None)
        response = await client.complete(MESSAGES)
        assert response.content == ""

    @pytest.mark.asyncio
    async def test_call_logged(self, client, create):
        await client.complete(MESSAGES)
        entry = json.loads(model_log.path.read_text().splitlines()[-1])
        assert entry["message_count"] == 2
        assert entry["total_tokens"] == 12
        assert entry["error"] is None


class TestErrorMapping:
    """SDK failures become TransportError subclasses."""

    @pytest.mark.asyncio
    async def test_slow_reply_times_out(self):
        client = ModelClient(api_key="sk-test", timeout=0.05)

        async def never_replies(**kwargs):
            await asyncio.sleep(5)

        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock(side_effect=never_replies)
        with patch.object(client, "_get_client", AsyncMock(return_value=sdk)):
            with pytest.raises(ModelTimeoutError) as exc_info:
                await client.complete(MESSAGES)
        assert exc_info.value.timeout_seconds == 0.05

    @pytest.mark.asyncio
    async def test_sdk_timeout(self, client, create):
        create.side_effect = APITimeoutError(request=REQUEST)
        with pytest.raises(ModelTimeoutError):
            await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_rate_limit(self, client, create):
        create.side_effect = status_error(RateLimitError, 429, {"retry-after": "30"})
        with pytest.raises(ModelRateLimitError) as exc_info:
            await client.complete(MESSAGES)
        assert exc_info.value.retry_after == 30

    @pytest.mark.asyncio
    async def test_auth(self, client, create):
        create.side_effect = status_error(AuthenticationError, 401)
        with pytest.raises(ModelAuthError):
            await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_connection(self, client, create):
        create.side_effect = APIConnectionError(request=REQUEST)
        with pytest.raises(ModelConnectionError):
            await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_empty_choices(self, client, create):
        create.return_value = SimpleNamespace(choices=[], usage=None, model="gpt-4o")
        with pytest.raises(ModelResponseError):
            await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_failure_logged(self, client, create):
        create.side_effect = APIConnectionError(request=REQUEST)
        with pytest.raises(ModelConnectionError):
            await client.complete(MESSAGES)
        entry = json.loads(model_log.path.read_text().splitlines()[-1])
        assert entry["error_type"] == "APIConnectionError"


class TestPing:
    """ping() reports success or a short reason, never raises."""

    @pytest.mark.asyncio
    async def test_success(self, client, create):
        ok, message = await client.ping()
        assert ok is True
        assert message == "gpt-4o-2024-08-06"

    @pytest.mark.asyncio
    async def test_bad_key(self, client, create):
        create.side_effect = status_error(AuthenticationError, 401)
        assert await client.ping() == (False, "invalid API key")


class TestClientLifecycle:
    """Lazy creation and event-loop tracking."""

    def test_from_config(self, tmp_path):
        config = AgentConfig(
            openai_api_key="sk-config",
            model="gpt-4o-mini",
            timeout=12.0,
            db_path=tmp_path / "todos.db",
            base_url="http://localhost:8080/v1",
        )
        client = ModelClient.from_config(config)
        assert client.model == "gpt-4o-mini"
        assert client.timeout == 12.0

    def test_recreated_per_event_loop(self):
        client = ModelClient(api_key="sk-test")

        async def get():
            return await client._get_client()

        first = asyncio.run(get())
        second = asyncio.run(get())
        assert first is not second

    @pytest.mark.asyncio
    async def test_reused_within_loop(self):
        client = ModelClient(api_key="sk-test")
        assert await client._get_client() is await client._get_client()
        await client.close()
        assert client._client is None
