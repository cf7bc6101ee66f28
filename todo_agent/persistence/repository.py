"""
Todo Repository - Database access layer

Provides the four task store operations: list all, create, search,
delete by id. Single connection per repository instance, with context
manager support.

Thread Safety:
- The agent loop is single-threaded; use one TodoRepository per thread
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from todo_agent.config import DEFAULT_DB_PATH
from todo_agent.exceptions import StoreConnectionError, StoreError
from todo_agent.persistence.models import Todo, now_iso

logger = logging.getLogger(__name__)

_COLUMNS = "id, todo, created_at, updated_at"


def _casefold(value: str | None) -> str | None:
    """SQL function: Unicode-aware lower-casing for case-insensitive search."""
    if value is None:
        return None
    return str(value).casefold()


class TodoRepository:
    """
    Repository for todo persistence operations.

    Usage:
        repo = TodoRepository("/tmp/todos.db")
        repo.initialize()

        todo_id = repo.create("Buy milk")
        repo.search("MILK")

        # Or use as a context manager for auto-cleanup
        with TodoRepository() as repo:
            ...
    """

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
                If None, uses default location.
        """
        if db_path == ":memory:":
            self.db_path: Path | str = ":memory:"
        else:
            self.db_path = Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH
        self._conn: sqlite3.Connection | None = None
        self._initialized = False

    def __enter__(self) -> TodoRepository:
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get database connection, initializing if needed."""
        if self._conn is None:
            self.initialize()
        return self._conn  # type: ignore

    def initialize(self) -> None:
        """
        Initialize database connection and schema.

        Creates database file and parent directories if they don't exist.

        Raises:
            StoreConnectionError: If the database cannot be opened
        """
        if self._initialized and self._conn:
            return

        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._conn = sqlite3.connect(
                self.db_path,
                isolation_level=None,  # Autocommit mode, we use explicit transactions
            )
            self._conn.create_function("casefold", 1, _casefold, deterministic=True)
            if isinstance(self.db_path, Path):
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._apply_schema()
        except (OSError, sqlite3.Error) as e:
            self._conn = None
            raise StoreConnectionError(
                f"Cannot open todo database: {e}",
                {"db_path": str(self.db_path)},
            ) from e

        self._initialized = True
        logger.info(f"Initialized todo database at {self.db_path}")

    def _apply_schema(self) -> None:
        """Apply the database schema from schema.sql."""
        schema_path = Path(__file__).parent / "schema.sql"

        with open(schema_path) as f:
            schema_sql = f.read()

        # CREATE IF NOT EXISTS makes this idempotent
        self._conn.executescript(schema_sql)  # type: ignore
        logger.debug("Database schema applied")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._initialized = False

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """
        Execute operations in a transaction.

        Usage:
            with repo.transaction() as cursor:
                cursor.execute(...)
        """
        cursor = self.conn.cursor()
        try:
            cursor.execute("BEGIN")
            yield cursor
            cursor.execute("COMMIT")
        except Exception:
            cursor.execute("ROLLBACK")
            raise
        finally:
            cursor.close()

    @contextmanager
    def _store_errors(self, operation: str) -> Generator[None, None, None]:
        """Translate sqlite3 errors into StoreError / StoreConnectionError."""
        try:
            yield
        except sqlite3.ProgrammingError as e:
            # Raised on a closed connection
            raise StoreConnectionError(
                f"Todo database unavailable during {operation}: {e}",
                {"db_path": str(self.db_path)},
            ) from e
        except sqlite3.OperationalError as e:
            raise StoreConnectionError(
                f"Todo database unreachable during {operation}: {e}",
                {"db_path": str(self.db_path)},
            ) from e
        except sqlite3.Error as e:
            raise StoreError(
                f"Todo database error during {operation}: {e}",
                {"db_path": str(self.db_path)},
            ) from e
        except (OverflowError, ValueError) as e:
            # Parameters sqlite3 cannot bind: ints beyond 64 bits, lone surrogates
            raise StoreError(
                f"Todo database rejected value during {operation}: {e}",
                {"db_path": str(self.db_path)},
            ) from e

    # =========================================================================
    # TODO OPERATIONS
    # =========================================================================

    def list_all(self) -> list[Todo]:
        """Return every todo in store-natural (insertion) order."""
        with self._store_errors("list_all"):
            cursor = self.conn.execute(f"SELECT {_COLUMNS} FROM todos ORDER BY id ASC")
            return [Todo.from_row(row) for row in cursor.fetchall()]

    def create(self, text: str) -> int:
        """
        Insert a new todo.

        The store does not validate `text`; callers must pass a non-empty string.

        Returns:
            The newly assigned id
        """
        timestamp = now_iso()
        with self._store_errors("create"):
            with self.transaction() as cursor:
                cursor.execute(
                    "INSERT INTO todos (todo, created_at, updated_at) VALUES (?, ?, ?)",
                    (text, timestamp, timestamp),
                )
                todo_id = cursor.lastrowid

        logger.debug(f"Created todo {todo_id}")
        return int(todo_id)  # type: ignore[arg-type]

    def search(self, query: str) -> list[Todo]:
        """
        Return all todos whose text contains `query`, ignoring case.

        Matches anywhere in the text, not just as a prefix.
        An empty query matches every todo.
        """
        with self._store_errors("search"):
            cursor = self.conn.execute(
                f"""SELECT {_COLUMNS} FROM todos
                    WHERE instr(casefold(todo), casefold(?)) > 0
                    ORDER BY id ASC""",
                (query,),
            )
            return [Todo.from_row(row) for row in cursor.fetchall()]

    def delete_by_id(self, todo_id: int) -> str:
        """
        Delete the todo with the given id.

        Deleting an id that does not exist is a no-op; the confirmation
        message is returned either way.
        """
        with self._store_errors("delete_by_id"):
            with self.transaction() as cursor:
                cursor.execute("DELETE FROM todos WHERE id = ?", (todo_id,))
                deleted = cursor.rowcount

        logger.debug(f"Deleted todo {todo_id} (rows affected: {deleted})")
        return f"Todo {todo_id} deleted"

