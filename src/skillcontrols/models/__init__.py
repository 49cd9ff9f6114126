"""Data models for controls: inputs, state and configuration."""

from .config import (
    CanHandleThrowBehavior,
    PromptCatalog,
    Settings,
    get_prompt_catalog,
    get_settings,
)
from .input import (
    GENERAL_CONTROL_INTENT,
    NO_INTENT,
    YES_INTENT,
    Action,
    ControlInput,
    Feedback,
    RequestKind,
    SlotValue,
    Target,
    general_control_intent,
    launch_request,
    no_intent,
    simple_intent,
    user_event,
    value_control_intent,
    value_control_intent_name,
    yes_intent,
)
from .state import ControlState, ElicitationAction, ValueControlState

__all__ = [
    "ControlInput",
    "SlotValue",
    "RequestKind",
    "Action",
    "Target",
    "Feedback",
    "GENERAL_CONTROL_INTENT",
    "YES_INTENT",
    "NO_INTENT",
    "general_control_intent",
    "value_control_intent",
    "value_control_intent_name",
    "simple_intent",
    "yes_intent",
    "no_intent",
    "launch_request",
    "user_event",
    "ControlState",
    "ValueControlState",
    "ElicitationAction",
    "Settings",
    "CanHandleThrowBehavior",
    "get_settings",
    "PromptCatalog",
    "get_prompt_catalog",
]
