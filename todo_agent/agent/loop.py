"""
Agent Loop

Drives one user turn at a time:

  user line -> history -> model -> plan   -> model again
                                -> action -> tool -> observation -> model again
                                -> output -> back to the operator

Every model reply is appended to history before it is decoded, and
every action is answered by exactly one observation entry. Errors never
escape a turn: they abandon it and are returned in the TurnResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from todo_agent.agent.history import ConversationHistory
from todo_agent.agent.messages import (
    ActionMessage,
    ObservationMessage,
    OutputMessage,
    PlanMessage,
    UserMessage,
    decode_reply,
)
from todo_agent.config import DEFAULT_MAX_STEPS
from todo_agent.exceptions import (
    StepLimitError,
    TodoAgentError,
    ToolExecutionError,
    UnknownToolError,
)
from todo_agent.llm.prompts import SYSTEM_PROMPT
from todo_agent.logging import SessionLogEntry, session_log
from todo_agent.state import AgentContext, AgentState

if TYPE_CHECKING:
    from todo_agent.agent.tools import ToolRegistry
    from todo_agent.llm.client import ModelClient

logger = logging.getLogger(__name__)


class TurnStatus(str, Enum):
    """How a user turn ended."""

    COMPLETED = "completed"  # model produced an output message
    ABANDONED = "abandoned"  # an error ended the turn early


@dataclass
class TurnResult:
    """Outcome of one user turn."""

    user_input: str
    status: TurnStatus = TurnStatus.ABANDONED
    output: str | None = None
    error: TodoAgentError | None = None
    model_calls: int = 0
    tools_invoked: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status == TurnStatus.COMPLETED


class AgentLoop:
    """
    Conversation driver between operator, model and task store.

    Usage:
        loop = AgentLoop(client, ToolRegistry(repository))
        result = await loop.run_turn("Add a task for milk")
        if result.completed:
            print(result.output)
    """

    def __init__(
        self,
        client: ModelClient,
        registry: ToolRegistry,
        system_prompt: str = SYSTEM_PROMPT,
        max_steps: int = DEFAULT_MAX_STEPS,
        history_turns: int | None = None,
        context: AgentContext | None = None,
    ):
        """
        Initialize the agent loop.

        Args:
            client: Model client used for every step
            registry: Tool registry bound to a task store
            system_prompt: Protocol instructions seeded as the first history entry
            max_steps: Maximum model calls allowed in one turn
            history_turns: If set, only the last N user turns are sent to the model
            context: State machine and counters (created if not given)
        """
        self.client = client
        self.registry = registry
        self.max_steps = max_steps
        self.history_turns = history_turns
        self.history = ConversationHistory(system_prompt)
        self.context = context or AgentContext()

    async def run_turn(self, user_input: str) -> TurnResult:
        """
        Process one line of operator input until an output or an error.

        Args:
            user_input: The operator's request

        Returns:
            TurnResult; never raises TodoAgentError
        """
        context = self.context
        context.turn_count += 1
        result = TurnResult(user_input=user_input)

        self.history.append_user(UserMessage(user_input))
        context.require_transition(AgentState.AWAITING_MODEL)

        try:
            result.output = await self._run_steps(result)
            result.status = TurnStatus.COMPLETED
            context.completed_turns += 1
        except TodoAgentError as e:
            result.error = e
            context.abandoned_turns += 1
            context.add_error(str(e))
            logger.warning(f"Turn {context.turn_count} abandoned: {type(e).__name__}: {e}")
        finally:
            context.reset_to_awaiting_user()

        self._log_turn(result)
        return result

    async def _run_steps(self, result: TurnResult) -> str:
        """Call the model until it produces an output message."""
        while True:
            if result.model_calls >= self.max_steps:
                raise StepLimitError(
                    f"No output after {self.max_steps} model calls",
                    max_steps=self.max_steps,
                )

            reply = await self.client.complete(self.history.to_api_messages(self.history_turns))
            result.model_calls += 1
            self.context.model_calls += 1

            # Recorded before decoding so malformed replies stay in context too
            self.history.append_model_reply(reply.content)

            try:
                message = decode_reply(reply.content)
            except UnknownToolError as e:
                # The rejected action still gets its one observation
                self.history.append_observation(ObservationMessage(error=e.message))
                raise

            if isinstance(message, OutputMessage):
                return message.output

            if isinstance(message, PlanMessage):
                logger.debug(f"Model plan: {message.plan}")
                self.context.require_transition(AgentState.AWAITING_MODEL)
                continue

            self.context.require_transition(AgentState.TOOL_DISPATCH)
            self._dispatch(message, result)
            self.context.require_transition(AgentState.AWAITING_MODEL)

    def _dispatch(self, action: ActionMessage, result: TurnResult) -> None:
        """
        Run one tool and append its observation.

        Recoverable tool failures become an error observation so the model
        can correct itself. Anything else abandons the turn, after the
        error observation has been recorded.
        """
        name = action.function.value
        result.tools_invoked.append(name)
        self.context.tool_calls += 1

        try:
            value = self.registry.dispatch(action.function, action.input)
        except ToolExecutionError as e:
            self.history.append_observation(ObservationMessage(error=e.message))
            if not e.recoverable:
                raise
            return
        except UnknownToolError as e:
            self.history.append_observation(ObservationMessage(error=e.message))
            raise

        self.history.append_observation(ObservationMessage(observation=value))

    def _log_turn(self, result: TurnResult) -> None:
        """Write the turn to the session log."""
        entry = SessionLogEntry(
            event_type="turn" if result.completed else "error",
            turn_number=self.context.turn_count,
            user_request=result.user_input[:1000],
            output=(result.output or "")[:1000],
            model_calls=result.model_calls,
            tools_invoked=len(result.tools_invoked),
        )
        if result.error is not None:
            entry.record_error(result.error)
        session_log.write(entry)
