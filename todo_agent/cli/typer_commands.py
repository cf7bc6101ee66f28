"""
Todo Agent CLI - Typer entry point

`todo-agent` takes no flags and no subcommands: it validates startup,
opens the task store and runs the conversation until input ends or the
process is killed.
"""

import logging
import signal
import sys
import types
import uuid
from typing import NoReturn

import typer
from rich.console import Console

from todo_agent.agent.loop import AgentLoop
from todo_agent.agent.tools import ToolRegistry
from todo_agent.cli.interactive import conversation_loop
from todo_agent.cli.prompt import create_input_reader
from todo_agent.cli.startup import show_startup_panel, validate_startup
from todo_agent.config import load_config
from todo_agent.exceptions import ConfigError, StoreConnectionError
from todo_agent.llm.client import ModelClient
from todo_agent.logging import SessionLogEntry, session_log, set_session_id
from todo_agent.persistence.repository import TodoRepository
from todo_agent.state import AgentContext

logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(
    name="todo-agent",
    help="Natural-language to-do list assistant backed by a chat model",
    add_completion=False,
)


def _log_session_end(context: AgentContext, client: ModelClient, reason: str) -> None:
    """Write the session end event."""
    stats = context.get_stats()
    session_log.write(
        SessionLogEntry(
            session_id=context.session_id,
            event_type="end",
            user_request=reason,
            completed_turns=context.completed_turns,
            abandoned_turns=context.abandoned_turns,
            total_tokens=client.total_tokens_used,
            total_duration_seconds=stats["duration_seconds"],
        )
    )


def _start_agent() -> None:
    """Start the assistant (internal implementation)."""
    # Step 1: Load configuration
    try:
        config = load_config()
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(1)

    # Step 2: Validate systems
    with console.status("Validating systems..."):
        results = validate_startup(config)

    if not show_startup_panel(results, console):
        console.print("[bold red]Startup validation failed![/bold red]")
        console.print("Fix the issues above and try again.")
        raise typer.Exit(1)

    # Step 3: Open the task store and build the agent
    repository = TodoRepository(config.db_path)
    try:
        repository.initialize()
    except StoreConnectionError as e:
        console.print(f"[bold red]Database error:[/bold red] {e}")
        raise typer.Exit(1)

    client = ModelClient.from_config(config)
    context = AgentContext(session_id=str(uuid.uuid4()))
    agent = AgentLoop(
        client,
        ToolRegistry(repository),
        max_steps=config.max_steps,
        history_turns=config.history_turns,
        context=context,
    )

    set_session_id(context.session_id)
    session_log.write(SessionLogEntry(session_id=context.session_id, event_type="start"))

    def handle_shutdown(signum: int, frame: types.FrameType | None) -> NoReturn:
        """Record the session end and close the store on SIGTERM."""
        _log_session_end(context, client, "terminated by signal")
        repository.close()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)

    console.print(f"[dim]Model: {config.model}  |  Session: {context.session_id[:8]}[/dim]")
    console.print("[bold]What do you want to do with your todos?[/bold]")
    console.print()

    # Step 4: Conversation
    try:
        conversation_loop(agent, create_input_reader(console), console)
    finally:
        _log_session_end(context, client, "input closed")
        repository.close()


@app.command()
def run() -> None:
    """Start the interactive to-do assistant."""
    _start_agent()


def main() -> None:
    """Entry point for the todo-agent console script."""
    app()
