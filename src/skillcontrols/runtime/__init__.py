"""Turn orchestration, rendering and session persistence."""

from .handler import CanHandleThrowBehavior, ControlHandler, ControlRequest, TurnContext
from .manager import ControlManager
from .response import ControlResponse, ControlResponseBuilder, ElicitSlotDirective
from .session_store import InMemorySessionStore, SessionStore

__all__ = [
    "ControlHandler",
    "ControlRequest",
    "TurnContext",
    "CanHandleThrowBehavior",
    "ControlManager",
    "ControlResponse",
    "ControlResponseBuilder",
    "ElicitSlotDirective",
    "SessionStore",
    "InMemorySessionStore",
]
