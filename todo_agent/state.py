"""
Todo Agent - Agent Loop State Machine

Tracks where the agent loop is within a user turn to ensure proper
transitions and prevent invalid operations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any


class AgentState(Enum):
    """
    Possible states of the agent loop.

    State transitions:
    AWAITING_USER -> AWAITING_MODEL (user line appended to history)
    AWAITING_MODEL -> AWAITING_MODEL (plan reply, ask the model again)
    AWAITING_MODEL -> TOOL_DISPATCH (action reply)
    AWAITING_MODEL -> AWAITING_USER (output reply, or turn abandoned)
    TOOL_DISPATCH -> AWAITING_MODEL (observation appended)
    TOOL_DISPATCH -> AWAITING_USER (non-recoverable tool failure)

    There is no terminal state; the loop runs until the process is killed.
    """

    AWAITING_USER = auto()  # Blocked on one line of operator input
    AWAITING_MODEL = auto()  # Round-trip to the model service in progress
    TOOL_DISPATCH = auto()  # Invoking a task store operation


# Valid state transitions
VALID_TRANSITIONS: dict[AgentState, set[AgentState]] = {
    AgentState.AWAITING_USER: {AgentState.AWAITING_MODEL},
    AgentState.AWAITING_MODEL: {
        AgentState.AWAITING_MODEL,
        AgentState.TOOL_DISPATCH,
        AgentState.AWAITING_USER,
    },
    AgentState.TOOL_DISPATCH: {
        AgentState.AWAITING_MODEL,
        AgentState.AWAITING_USER,
    },
}


@dataclass
class AgentContext:
    """
    Context maintained throughout an agent session.

    Holds the current loop state plus per-session counters used for
    status reporting and session logs.
    """

    state: AgentState = AgentState.AWAITING_USER
    session_id: str = ""

    # Turn tracking
    turn_count: int = 0
    completed_turns: int = 0
    abandoned_turns: int = 0
    model_calls: int = 0
    tool_calls: int = 0

    # Session timestamps
    started_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    # Error tracking
    last_error: str | None = None
    error_count: int = 0

    def transition_to(self, new_state: AgentState) -> bool:
        """
        Attempt to transition to a new state.

        Args:
            new_state: The target state

        Returns:
            True if transition was valid and performed, False otherwise
        """
        if self.can_transition_to(new_state):
            self.state = new_state
            self.last_activity = datetime.now()
            return True
        return False

    def require_transition(self, new_state: AgentState) -> None:
        """
        Transition to a new state, raising an exception if invalid.

        Args:
            new_state: The target state

        Raises:
            StateTransitionError: If the transition is not valid
        """
        from todo_agent.exceptions import StateTransitionError

        if not self.transition_to(new_state):
            valid_targets = VALID_TRANSITIONS.get(self.state, set())
            valid_names = ", ".join(sorted(s.name for s in valid_targets)) or "none"
            raise StateTransitionError(
                f"Invalid state transition: {self.state.name} -> {new_state.name}. "
                f"Valid transitions from {self.state.name}: {valid_names}",
                from_state=self.state.name,
                to_state=new_state.name,
            )

    def can_transition_to(self, new_state: AgentState) -> bool:
        """Check if transition to new_state is valid from current state."""
        return new_state in VALID_TRANSITIONS.get(self.state, set())

    def reset_to_awaiting_user(self) -> None:
        """Return to AWAITING_USER after an abandoned turn."""
        if self.state != AgentState.AWAITING_USER:
            self.require_transition(AgentState.AWAITING_USER)

    def add_error(self, error: str) -> None:
        """Record an error."""
        self.error_count += 1
        self.last_error = error
        self.last_activity = datetime.now()

    def get_stats(self) -> dict[str, Any]:
        """Get session statistics."""
        return {
            "state": self.state.name,
            "turns": self.turn_count,
            "completed_turns": self.completed_turns,
            "abandoned_turns": self.abandoned_turns,
            "model_calls": self.model_calls,
            "tool_calls": self.tool_calls,
            "error_count": self.error_count,
            "duration_seconds": (datetime.now() - self.started_at).total_seconds(),
        }
