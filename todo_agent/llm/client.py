"""
Model Client - OpenAI chat-completions wrapper

Provides the async request/response call the agent loop makes once per
step: send the full conversation, require a JSON-object reply, get one
text payload back.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from openai import (
    APIConnectionError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    OpenAIError,
    PermissionDeniedError,
    RateLimitError,
)

from todo_agent.config import DEFAULT_MODEL, DEFAULT_TIMEOUT, AgentConfig
from todo_agent.exceptions import (
    ModelAuthError,
    ModelConnectionError,
    ModelRateLimitError,
    ModelResponseError,
    ModelTimeoutError,
)
from todo_agent.logging import ModelLogEntry, model_log

logger = logging.getLogger(__name__)

# Every reply must be a single JSON object
RESPONSE_FORMAT = {"type": "json_object"}


@dataclass
class ModelResponse:
    """Response from a chat-completion call."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str = ""
    created_at: datetime = field(default_factory=datetime.now)


def _retry_after(error: RateLimitError) -> int | None:
    """Read the Retry-After header from a rate limit error, if present."""
    response = getattr(error, "response", None)
    if response is None:
        return None
    try:
        return int(response.headers.get("retry-after", ""))
    except (TypeError, ValueError):
        return None


class ModelClient:
    """
    Client for the hosted chat-completion service.

    Every call is bounded by a timeout; all failures surface as
    TransportError subclasses so the agent loop can abandon the turn.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        temperature: float = 0.0,
        base_url: str | None = None,
        max_retries: int = 2,
    ):
        """
        Initialize model client.

        Args:
            api_key: OpenAI API key
            model: Model identifier (default: gpt-4o)
            timeout: Seconds to wait for one completion before giving up
            temperature: Sampling temperature
            base_url: Alternative OpenAI-compatible endpoint
            max_retries: SDK-level retries for transient HTTP failures
        """
        self.model = model
        self.timeout = timeout
        self.temperature = temperature

        self._api_key = api_key
        self._base_url = base_url
        self._max_retries = max_retries

        # Lazy-initialized client (created in async context)
        self._client: AsyncOpenAI | None = None
        self._client_loop: asyncio.AbstractEventLoop | None = None

        # Track usage
        self.total_tokens_used = 0
        self.request_count = 0

    @classmethod
    def from_config(cls, config: AgentConfig) -> "ModelClient":
        """Build a client from loaded configuration."""
        return cls(
            api_key=config.openai_api_key,
            model=config.model,
            timeout=config.timeout,
            base_url=config.base_url,
            max_retries=config.max_retries,
        )

    async def _get_client(self) -> AsyncOpenAI:
        """Get or create AsyncOpenAI client, recreating if event loop changed."""
        current_loop = asyncio.get_running_loop()

        # The CLI runs each turn under a fresh asyncio.run(); the old loop is gone
        if self._client is not None and self._client_loop is not current_loop:
            self._client = None
            self._client_loop = None

        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self.timeout,
                max_retries=self._max_retries,
            )
            self._client_loop = current_loop

        return self._client

    async def close(self) -> None:
        """Close the client and release resources."""
        if self._client is not None:
            try:
                await self._client.close()
            except Exception as e:
                logger.debug(f"Error closing model client: {e}")
            self._client = None
            self._client_loop = None

    async def ping(self, timeout: float = 10.0) -> tuple[bool, str]:
        """
        Ping the model service to verify API connectivity.

        Returns:
            Tuple of (success, message)
        """
        try:
            client = await self._get_client()
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": "Hello"}],
                    max_tokens=5,
                    temperature=0,
                ),
                timeout=timeout,
            )
            return True, response.model or self.model
        except asyncio.TimeoutError:
            return False, f"timeout ({timeout}s)"
        except (AuthenticationError, PermissionDeniedError):
            return False, "invalid API key"
        except RateLimitError:
            return False, "rate limited"
        except OpenAIError as e:
            return False, f"API error: {str(e)[:50]}"

    async def complete(self, messages: list[dict[str, str]]) -> ModelResponse:
        """
        Send the conversation and return the model's JSON-object reply.

        Args:
            messages: Full conversation as {role, content} dicts, system entry first

        Returns:
            ModelResponse with the raw reply text

        Raises:
            ModelTimeoutError: If no reply arrives within the timeout
            ModelRateLimitError: If rate limited or out of quota
            ModelAuthError: If the API key is rejected
            ModelConnectionError: On any other transport failure
            ModelResponseError: If the reply has no message
        """
        request_id = str(uuid.uuid4())
        start_time = time.monotonic()

        log_entry = ModelLogEntry(
            request_id=request_id,
            model=self.model,
            message_count=len(messages),
            last_message=messages[-1].get("content", "")[:5000] if messages else "",
            temperature=self.temperature,
            timeout_seconds=self.timeout,
        )

        def log_failure(error: Exception) -> None:
            log_entry.record_error(error)
            log_entry.latency_ms = int((time.monotonic() - start_time) * 1000)
            model_log.write(log_entry)

        try:
            client = await self._get_client()
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    response_format=RESPONSE_FORMAT,
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            log_failure(e)
            raise ModelTimeoutError(
                f"Model did not reply within {self.timeout}s",
                timeout_seconds=self.timeout,
            ) from e
        except RateLimitError as e:
            log_failure(e)
            raise ModelRateLimitError(f"Rate limited: {e}", retry_after=_retry_after(e)) from e
        except (AuthenticationError, PermissionDeniedError) as e:
            log_failure(e)
            raise ModelAuthError(f"Authentication failed: {e}") from e
        except APIConnectionError as e:
            log_failure(e)
            raise ModelConnectionError(f"Connection failed: {e}") from e
        except OpenAIError as e:
            log_failure(e)
            raise ModelConnectionError(f"API error: {e}") from e

        self.request_count += 1
        if response.usage:
            self.total_tokens_used += response.usage.total_tokens

        if not response.choices or not response.choices[0].message:
            error = ModelResponseError("Empty response from model", {"model": self.model})
            log_failure(error)
            raise error

        choice = response.choices[0]
        content = choice.message.content or ""
        finish_reason = choice.finish_reason or ""
        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }

        log_entry.response_content = content[:10000]
        log_entry.model = response.model or self.model
        log_entry.finish_reason = finish_reason
        log_entry.prompt_tokens = usage["prompt_tokens"]
        log_entry.completion_tokens = usage["completion_tokens"]
        log_entry.total_tokens = usage["total_tokens"]
        log_entry.latency_ms = int((time.monotonic() - start_time) * 1000)
        model_log.write(log_entry)

        return ModelResponse(
            content=content,
            model=response.model or self.model,
            usage=usage,
            finish_reason=finish_reason,
        )


def ping_model_sync(config: AgentConfig, timeout: float = 10.0) -> tuple[bool, str]:
    """
    Synchronous ping for startup validation.

    Returns:
        Tuple of (success, message)
    """

    async def _do_ping() -> tuple[bool, str]:
        """Create client, ping, and close within the same event loop."""
        client = ModelClient.from_config(config)
        try:
            return await client.ping(timeout)
        finally:
            await client.close()

    return asyncio.run(_do_ping())
