"""Composable dialog controls for multi-turn voice skills."""

__version__ = "1.0.0"

from .controls import DateControl, ListControl, NumberControl, ValueControl  # noqa: E402
from .core import (  # noqa: E402
    ContainerControl,
    Control,
    ControlResult,
    ControlResultBuilder,
    ControlTree,
    InputHandler,
    SessionBehavior,
    ValidationFailure,
)
from .models import ControlInput, Settings, get_settings  # noqa: E402
from .runtime import (  # noqa: E402
    CanHandleThrowBehavior,
    ControlHandler,
    ControlManager,
    ControlRequest,
    ControlResponse,
)

__all__ = [
    "__version__",
    "Control",
    "ContainerControl",
    "ControlTree",
    "InputHandler",
    "ValueControl",
    "NumberControl",
    "DateControl",
    "ListControl",
    "ControlResult",
    "ControlResultBuilder",
    "SessionBehavior",
    "ValidationFailure",
    "ControlInput",
    "Settings",
    "get_settings",
    "ControlManager",
    "ControlHandler",
    "ControlRequest",
    "ControlResponse",
    "CanHandleThrowBehavior",
]
