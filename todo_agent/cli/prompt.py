"""
Operator prompt with command history.

Uses prompt_toolkit to provide:
- Command history (arrow up/down)
- Suggestions from previous requests
- Persistent history across sessions
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from prompt_toolkit.styles import Style
from rich.console import Console

PROMPT_TEXT = ">> "


def get_history_path() -> Path:
    """Get path to command history file."""
    app_dir = Path.home() / ".todo-agent"
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir / "history"


def create_prompt_session() -> PromptSession:
    """
    Create a prompt session with persistent history.

    Returns:
        Configured PromptSession
    """
    style = Style.from_dict({"prompt": "ansicyan bold"})

    session: PromptSession = PromptSession(
        history=FileHistory(str(get_history_path())),
        auto_suggest=AutoSuggestFromHistory(),
        multiline=False,
        style=style,
    )
    return session


def create_input_reader(console: Console) -> Callable[[], str]:
    """
    Build the function that reads one line of operator input.

    Uses prompt_toolkit on an interactive terminal and plain input()
    otherwise (piped stdin). EOFError and KeyboardInterrupt propagate to
    the caller.
    """
    if sys.stdin.isatty():
        session = create_prompt_session()

        def read_with_prompt_toolkit() -> str:
            return session.prompt(PROMPT_TEXT)

        return read_with_prompt_toolkit

    def read_plain() -> str:
        console.print(f"[bold cyan]{PROMPT_TEXT}[/bold cyan]", end="")
        sys.stdout.flush()
        return input()

    return read_plain
