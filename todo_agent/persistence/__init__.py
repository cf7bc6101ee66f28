"""
Todo Agent Persistence Layer

SQLite-backed task store. The repository's four operations are the only
sanctioned access path to the todos table.
"""

from todo_agent.persistence.models import Todo
from todo_agent.persistence.repository import TodoRepository

__all__ = [
    "Todo",
    "TodoRepository",
]
