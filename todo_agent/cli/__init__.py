"""
Todo Agent CLI components.

Split into focused modules:
- startup.py: Startup validation and system checks
- prompt.py: Operator input with history
- interactive.py: Main conversation loop
- typer_commands.py: CLI entry point
"""

from todo_agent.cli.interactive import conversation_loop, show_turn_result
from todo_agent.cli.prompt import PROMPT_TEXT, create_input_reader
from todo_agent.cli.startup import show_startup_panel, validate_startup
from todo_agent.cli.typer_commands import app, main, run

__all__ = [
    "app",
    "main",
    "run",
    "conversation_loop",
    "show_turn_result",
    "PROMPT_TEXT",
    "create_input_reader",
    "validate_startup",
    "show_startup_panel",
]
