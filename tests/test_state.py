"""Tests for state module - agent loop state machine."""

import time

import pytest

from todo_agent.exceptions import StateTransitionError
from todo_agent.state import VALID_TRANSITIONS, AgentContext, AgentState


class TestAgentState:
    """Tests for AgentState enum and transitions."""

    def test_all_states_have_transitions(self):
        """Every state should have defined transitions."""
        for state in AgentState:
            assert state in VALID_TRANSITIONS

    def test_no_terminal_state(self):
        """The loop runs until killed, so every state has a way out."""
        for state in AgentState:
            assert VALID_TRANSITIONS[state]

    def test_every_state_returns_to_awaiting_user(self):
        """Any in-turn state can abandon the turn."""
        for state in (AgentState.AWAITING_MODEL, AgentState.TOOL_DISPATCH):
            assert AgentState.AWAITING_USER in VALID_TRANSITIONS[state]

    def test_user_input_leads_only_to_model(self):
        assert VALID_TRANSITIONS[AgentState.AWAITING_USER] == {AgentState.AWAITING_MODEL}


class TestAgentContext:
    """Tests for AgentContext state machine."""

    def test_initial_state(self):
        ctx = AgentContext()
        assert ctx.state == AgentState.AWAITING_USER

    def test_valid_transition(self):
        ctx = AgentContext()
        assert ctx.transition_to(AgentState.AWAITING_MODEL)
        assert ctx.state == AgentState.AWAITING_MODEL

    def test_invalid_transition(self):
        """AWAITING_USER cannot go directly to TOOL_DISPATCH."""
        ctx = AgentContext()
        assert not ctx.transition_to(AgentState.TOOL_DISPATCH)
        assert ctx.state == AgentState.AWAITING_USER

    def test_transition_updates_last_activity(self):
        ctx = AgentContext()
        old_activity = ctx.last_activity
        time.sleep(0.01)
        ctx.transition_to(AgentState.AWAITING_MODEL)
        assert ctx.last_activity > old_activity

    def test_full_turn_transitions(self):
        """USER -> MODEL -> (plan) MODEL -> TOOL -> MODEL -> USER."""
        ctx = AgentContext()
        assert ctx.transition_to(AgentState.AWAITING_MODEL)
        assert ctx.transition_to(AgentState.AWAITING_MODEL)
        assert ctx.transition_to(AgentState.TOOL_DISPATCH)
        assert ctx.transition_to(AgentState.AWAITING_MODEL)
        assert ctx.transition_to(AgentState.AWAITING_USER)

    def test_require_transition_raises(self):
        ctx = AgentContext()
        with pytest.raises(StateTransitionError) as exc_info:
            ctx.require_transition(AgentState.TOOL_DISPATCH)
        assert exc_info.value.from_state == "AWAITING_USER"
        assert exc_info.value.to_state == "TOOL_DISPATCH"
        assert "AWAITING_MODEL" in exc_info.value.message

    def test_can_transition_to(self):
        ctx = AgentContext()
        assert ctx.can_transition_to(AgentState.AWAITING_MODEL)
        assert not ctx.can_transition_to(AgentState.AWAITING_USER)

    def test_reset_to_awaiting_user(self):
        ctx = AgentContext()
        ctx.require_transition(AgentState.AWAITING_MODEL)
        ctx.require_transition(AgentState.TOOL_DISPATCH)
        ctx.reset_to_awaiting_user()
        assert ctx.state == AgentState.AWAITING_USER

    def test_reset_when_already_awaiting_user(self):
        ctx = AgentContext()
        ctx.reset_to_awaiting_user()
        assert ctx.state == AgentState.AWAITING_USER

    def test_add_error(self):
        ctx = AgentContext()
        ctx.add_error("boom")
        ctx.add_error("bang")
        assert ctx.error_count == 2
        assert ctx.last_error == "bang"

    def test_get_stats(self):
        ctx = AgentContext()
        ctx.turn_count = 3
        ctx.completed_turns = 2
        ctx.abandoned_turns = 1
        stats = ctx.get_stats()
        assert stats["state"] == "AWAITING_USER"
        assert stats["turns"] == 3
        assert stats["completed_turns"] == 2
        assert stats["abandoned_turns"] == 1
        assert stats["duration_seconds"] >= 0
