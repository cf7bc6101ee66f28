"""
Todo Agent Persistence Models

Dataclasses that map to SQLite tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def now_iso() -> str:
    """Get current datetime as ISO string."""
    return datetime.now().isoformat()


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse ISO datetime string to datetime object."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


@dataclass
class Todo:
    """
    A single task item.

    Maps to: todos table
    `id`, `created_at` and `updated_at` are assigned by the repository.
    """

    id: int = 0
    text: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: tuple) -> Todo:
        """Create from database row (id, todo, created_at, updated_at)."""
        return cls(
            id=row[0],
            text=row[1],
            created_at=parse_datetime(row[2]) or datetime.now(),
            updated_at=parse_datetime(row[3]) or datetime.now(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dict using the column names the model sees."""
        return {
            "id": self.id,
            "todo": self.text,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
