"""Core dispatch engine: controls, handlers, acts and results."""

from .acts import (
    ConfirmValueAct,
    ContentAct,
    InitiativeAct,
    InvalidValueAct,
    RequestChangedValueAct,
    RequestValueAct,
    SystemAct,
    ValueChangedAct,
    ValueConfirmedAct,
    ValueDisconfirmedAct,
    ValueSetAct,
)
from .control import ContainerControl, Control
from .errors import (
    ActPayloadError,
    ConfigurationError,
    DispatchMisuseError,
    SkillControlsError,
    UnhandledActError,
)
from .handlers import (
    Decision,
    HandlerDecision,
    InitiativeDecision,
    InputHandler,
    evaluate_input_handlers,
)
from .result import ControlResult, ControlResultBuilder, SessionBehavior
from .tree import ControlTree
from .validation import ValidationFailure, evaluate_validation

__all__ = [
    # Controls
    "Control",
    "ContainerControl",
    "ControlTree",
    # Dispatch
    "InputHandler",
    "Decision",
    "HandlerDecision",
    "InitiativeDecision",
    "evaluate_input_handlers",
    # Results
    "ControlResult",
    "ControlResultBuilder",
    "SessionBehavior",
    # Acts
    "SystemAct",
    "ContentAct",
    "InitiativeAct",
    "ValueSetAct",
    "ValueChangedAct",
    "InvalidValueAct",
    "ValueConfirmedAct",
    "ValueDisconfirmedAct",
    "RequestValueAct",
    "RequestChangedValueAct",
    "ConfirmValueAct",
    # Validation
    "ValidationFailure",
    "evaluate_validation",
    # Errors
    "SkillControlsError",
    "ConfigurationError",
    "DispatchMisuseError",
    "ActPayloadError",
    "UnhandledActError",
]
