"""Logging and tracing infrastructure."""

from .correlation import end_turn, generate_turn_id, get_turn_id, start_turn
from .logging_config import (
    bind_context,
    clear_context,
    configure_structlog,
    get_logger,
)

__all__ = [
    # Logging
    "get_logger",
    "bind_context",
    "clear_context",
    "configure_structlog",
    # Turn tracing
    "generate_turn_id",
    "get_turn_id",
    "start_turn",
    "end_turn",
]
