"""Structlog configuration.

Every module logs through ``get_logger(__name__)`` with an event name and
key/value context, e.g. ``logger.info("turn_handled", path=[...])``. Output
goes to stderr so it never mixes with what a host (such as the CLI) prints
to stdout:

- production (``SKILLCONTROLS_ENV=production``): one JSON object per line
- anything else: colored console lines

The turn id and session id bound by ``infrastructure.correlation`` are merged
into every event logged during that turn.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from .. import __version__
from ..models.config import get_settings


def add_library_info(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events with the emitting library and its version."""
    event_dict["library"] = "skillcontrols"
    event_dict["version"] = __version__
    return event_dict


def _renderer(production: bool) -> list[Processor]:
    if production:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def configure_structlog(env: str | None = None, level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        env: Deployment environment; defaults to ``Settings.env``.
        level: Log level name; defaults to ``Settings.log_level``.
    """
    settings = get_settings()
    env = env or settings.env
    level = (level or settings.log_level).upper()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_library_info,
        *_renderer(env == "production"),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, force=True)
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key/value pairs to every event logged in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


configure_structlog()
