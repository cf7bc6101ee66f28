"""Per-thread session id stamped on every log entry."""

import threading

_context = threading.local()


def set_session_id(session_id: str) -> None:
    _context.session_id = session_id


def get_session_id() -> str:
    """The current session id, or 'unknown' outside a session."""
    return getattr(_context, "session_id", "unknown")
