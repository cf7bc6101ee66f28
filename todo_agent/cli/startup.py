"""
Todo Agent CLI - Startup Validation

Validates the API key, the task database and (optionally) model
connectivity before the conversation starts.
"""

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from todo_agent.config import API_KEY_ENV, AgentConfig
from todo_agent.exceptions import StoreConnectionError
from todo_agent.llm.client import ping_model_sync
from todo_agent.persistence.repository import TodoRepository

logger = logging.getLogger(__name__)
console = Console()

# Checks whose failure does not prevent startup
WARNING_ONLY_CHECKS = {"Model service"}


def _check_api_key(config: AgentConfig) -> tuple[str, tuple[bool, str]]:
    """Check the model service API key is configured."""
    if not config.openai_api_key:
        return ("API key", (False, f"{API_KEY_ENV} not set"))
    return ("API key", (True, "key configured"))


def _check_database(config: AgentConfig) -> tuple[str, tuple[bool, str]]:
    """Check the todo database opens and count its rows."""
    try:
        with TodoRepository(config.db_path) as repository:
            count = len(repository.list_all())
        return ("Todo database", (True, f"{count} todos in {config.db_path}"))
    except StoreConnectionError as e:
        return ("Todo database", (False, e.message))


def _check_model(config: AgentConfig) -> tuple[str, tuple[bool, str]]:
    """Check model service connectivity."""
    success, message = ping_model_sync(config, timeout=min(config.timeout, 15.0))
    return ("Model service", (success, message))


def validate_startup(config: AgentConfig, ping_api: bool = True) -> dict[str, tuple[bool, str]]:
    """
    Validate all required systems are available.

    Args:
        config: Loaded configuration
        ping_api: Whether to actually ping the model service

    Returns:
        Dict mapping system name to (success, message) tuple
    """
    results: dict[str, tuple[bool, str]] = {}

    name, result = _check_api_key(config)
    results[name] = result

    name, result = _check_database(config)
    results[name] = result

    # A ping without a key can only fail
    if ping_api and config.openai_api_key:
        try:
            name, result = _check_model(config)
            results[name] = result
        except Exception as e:
            logger.warning(f"Model ping failed: {e}")
            results["Model service"] = (False, str(e)[:50])

    return results


def show_startup_panel(results: dict[str, tuple[bool, str]], out: Console | None = None) -> bool:
    """
    Display startup validation results.

    Returns:
        True if all required checks passed, False otherwise
    """
    out = out or console
    out.print()
    out.print(Panel.fit("[bold]TODO AGENT[/bold] - Startup Check", border_style="blue"))
    out.print()

    all_passed = True
    for system, (success, message) in results.items():
        if success:
            out.print(f"  [green][✓][/green] {system:<20} {escape(message)}")
        elif system in WARNING_ONLY_CHECKS:
            out.print(f"  [yellow][!][/yellow] {system:<20} {escape(message)}")
        else:
            out.print(f"  [red][✗][/red] {system:<20} {escape(message)}")
            all_passed = False

    out.print()
    return all_passed
