"""Turn id management for request tracing.

Every turn processed by a ControlHandler gets a fresh turn id that is bound
into the structlog context, so all log lines of one turn can be grouped.
"""

import uuid
from contextvars import ContextVar

from .logging_config import bind_context, clear_context

_turn_id: ContextVar[str | None] = ContextVar("turn_id", default=None)


def generate_turn_id() -> str:
    """Generate a new turn id."""
    return str(uuid.uuid4())


def start_turn(session_id: str | None = None) -> str:
    """Begin a new turn and bind its id (and the session id) to the log context.

    Args:
        session_id: Optional session identifier from the request envelope

    Returns:
        The new turn id
    """
    clear_context()
    turn_id = generate_turn_id()
    _turn_id.set(turn_id)
    if session_id:
        bind_context(turn_id=turn_id, session_id=session_id)
    else:
        bind_context(turn_id=turn_id)
    return turn_id


def get_turn_id() -> str | None:
    """Get the id of the turn currently being processed."""
    return _turn_id.get()


def end_turn() -> None:
    """Reset the turn context."""
    _turn_id.set(None)
    clear_context()
