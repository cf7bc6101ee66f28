"""
Todo Agent CLI - Interactive Conversation Loop

Reads one operator line at a time, runs it through the agent loop and
prints the output (or the error that abandoned the turn). The outer
loop never exits on a turn error; only end of input stops it.
"""

import asyncio
import logging
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape

from todo_agent.agent.loop import AgentLoop, TurnResult

logger = logging.getLogger(__name__)
console = Console()


def show_turn_result(result: TurnResult, out: Console | None = None) -> None:
    """Print the outcome of a turn: the output verbatim, or the error in red."""
    out = out or console
    if result.completed:
        out.print(result.output, markup=False, highlight=False)
    elif result.error is not None:
        out.print(f"[red]{type(result.error).__name__}: {escape(result.error.message)}[/red]")


def close_client(agent: AgentLoop) -> None:
    """Close the async model client before exit."""
    try:
        asyncio.run(agent.client.close())
    except Exception as e:
        logger.debug(f"Error closing model client: {e}")


def conversation_loop(
    agent: AgentLoop,
    read_input: Callable[[], str],
    out: Console | None = None,
) -> None:
    """
    Main read-eval loop.

    NOTE: This function is SYNC. Each turn runs in its own asyncio.run();
    the model client recreates its HTTP client when the loop changes.

    Args:
        agent: Agent loop holding the conversation history
        read_input: Returns one line of operator input; raises EOFError at end
        out: Console to print to
    """
    out = out or console

    try:
        while True:
            try:
                user_input = read_input()
            except (EOFError, KeyboardInterrupt):
                out.print()
                break

            if not user_input.strip():
                continue

            try:
                result = asyncio.run(agent.run_turn(user_input))
            except Exception as e:
                out.print(f"[bold red]ERROR: {type(e).__name__}: {escape(str(e))}[/bold red]")
                logger.exception(f"Error processing request: {e}")
                continue

            show_turn_result(result, out)
    finally:
        close_client(agent)
