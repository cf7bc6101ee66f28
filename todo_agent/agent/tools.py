"""
Tool Registry

Fixed mapping from tool name to a task store operation. Every tool takes
exactly one string input; tools needing a number (the id to delete)
parse it from that string.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from todo_agent.agent.messages import ToolName
from todo_agent.exceptions import (
    InvalidToolInputError,
    StoreConnectionError,
    StoreError,
    ToolExecutionError,
    UnknownToolError,
)
from todo_agent.logging import ToolLogEntry, tool_log
from todo_agent.persistence.repository import TodoRepository

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value
MAX_TODO_ID = 2**63 - 1

_ID_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    fn: Callable[[TodoRepository, str], Any]


def get_all_todos(repository: TodoRepository, tool_input: str) -> list[dict[str, Any]]:
    return [todo.to_dict() for todo in repository.list_all()]


def create_todo(repository: TodoRepository, tool_input: str) -> int:
    text = tool_input.strip()
    if not text:
        raise InvalidToolInputError(
            "createTodo needs a non-empty todo text",
            tool_name=ToolName.CREATE_TODO.value,
            tool_input=tool_input,
        )
    return repository.create(text)


def search_todo(repository: TodoRepository, tool_input: str) -> list[dict[str, Any]]:
    return [todo.to_dict() for todo in repository.search(tool_input)]


def delete_todo_by_id(repository: TodoRepository, tool_input: str) -> str:
    raw_id = tool_input.strip()
    if not _ID_PATTERN.fullmatch(raw_id):
        raise InvalidToolInputError(
            f"deleteTodoById needs a numeric id, got {tool_input!r}",
            tool_name=ToolName.DELETE_TODO_BY_ID.value,
            tool_input=tool_input,
        )
    todo_id = int(raw_id)
    if todo_id > MAX_TODO_ID:
        raise InvalidToolInputError(
            f"deleteTodoById id {raw_id} is out of range",
            tool_name=ToolName.DELETE_TODO_BY_ID.value,
            tool_input=tool_input,
        )
    return repository.delete_by_id(todo_id)


TOOL_SPECS: dict[ToolName, ToolSpec] = {
    ToolName.GET_ALL_TODOS: ToolSpec(
        name=ToolName.GET_ALL_TODOS,
        description="Returns all the Todos from Database",
        fn=get_all_todos,
    ),
    ToolName.CREATE_TODO: ToolSpec(
        name=ToolName.CREATE_TODO,
        description="Creates a new Todo in the DB and takes todo as a string",
        fn=create_todo,
    ),
    ToolName.SEARCH_TODO: ToolSpec(
        name=ToolName.SEARCH_TODO,
        description="Searches for all todos whose text contains the query string, ignoring case",
        fn=search_todo,
    ),
    ToolName.DELETE_TODO_BY_ID: ToolSpec(
        name=ToolName.DELETE_TODO_BY_ID,
        description="Deletes the todo by ID given in the DB",
        fn=delete_todo_by_id,
    ),
}


def _preview(value: Any, limit: int = 500) -> str:
    return json.dumps(value, default=str)[:limit]


class ToolRegistry:
    """
    Dispatches tool calls by name against one TodoRepository.

    Failures are reported as ToolExecutionError. Store connection
    failures are marked non-recoverable; everything else is recoverable
    and can be fed back to the model as an observation.
    """

    def __init__(self, repository: TodoRepository, specs: dict[ToolName, ToolSpec] | None = None):
        self.repository = repository
        self._specs = dict(specs or TOOL_SPECS)

    @property
    def names(self) -> list[str]:
        return [name.value for name in self._specs]

    def resolve(self, name: ToolName | str) -> ToolSpec:
        """
        Look up a tool by name.

        Raises:
            UnknownToolError: If no tool is registered under that name
        """
        try:
            key = ToolName(name)
            return self._specs[key]
        except (ValueError, KeyError):
            raw = name.value if isinstance(name, ToolName) else str(name)
            raise UnknownToolError(f"Unknown tool '{raw}'", tool_name=raw) from None

    def dispatch(self, name: ToolName | str, tool_input: str) -> Any:
        """
        Invoke a tool with its single string input.

        Args:
            name: Tool name
            tool_input: The action's input value

        Returns:
            JSON-serializable tool result

        Raises:
            UnknownToolError: If the tool is not registered
            ToolExecutionError: If the tool fails
        """
        spec = self.resolve(name)
        start_time = time.monotonic()
        log_entry = ToolLogEntry(
            tool_name=spec.name.value,
            tool_input=tool_input[:1000],
        )

        try:
            result = spec.fn(self.repository, tool_input)
        except ToolExecutionError as e:
            self._log_failure(log_entry, e, e.recoverable, start_time)
            raise
        except StoreConnectionError as e:
            self._log_failure(log_entry, e, False, start_time)
            raise ToolExecutionError(
                f"{spec.name.value} failed: {e.message}",
                tool_name=spec.name.value,
                recoverable=False,
            ) from e
        except StoreError as e:
            self._log_failure(log_entry, e, True, start_time)
            raise ToolExecutionError(
                f"{spec.name.value} failed: {e.message}",
                tool_name=spec.name.value,
                recoverable=True,
            ) from e
        except Exception as e:
            self._log_failure(log_entry, e, True, start_time)
            raise ToolExecutionError(
                f"{spec.name.value} failed: {type(e).__name__}: {e}",
                tool_name=spec.name.value,
                recoverable=True,
            ) from e

        log_entry.success = True
        log_entry.result_preview = _preview(result)
        log_entry.duration_ms = int((time.monotonic() - start_time) * 1000)
        tool_log.write(log_entry)
        logger.debug(f"Tool {spec.name.value} succeeded")
        return result

    def _log_failure(
        self,
        log_entry: ToolLogEntry,
        error: Exception,
        recoverable: bool,
        start_time: float,
    ) -> None:
        log_entry.record_error(error)
        log_entry.recoverable = recoverable
        log_entry.duration_ms = int((time.monotonic() - start_time) * 1000)
        tool_log.write(log_entry)
        logger.warning(f"Tool {log_entry.tool_name} failed: {error}")
