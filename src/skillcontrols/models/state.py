"""Persisted per-control state models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ElicitationAction(str, Enum):
    """The capability a control is eliciting a value for."""

    SET = "set"
    CHANGE = "change"


class ControlState(BaseModel):
    """State common to every control.

    Fields:
        last_initiative_act: Name of the initiative act this control issued in
            the most recent turn that ended with an initiative act, if any.
    """

    last_initiative_act: str | None = None


class ValueControlState(ControlState):
    """State tracked by a value-acquisition control.

    Fields:
        value: The current value. A canonical slot id when er_match is true,
            otherwise the raw value.
        previous_value: The value before the last set/change.
        er_match: Whether the value is an entity-resolution match.
        elicitation_action: 'set' or 'change' while the control is actively
            asking for a value.
        is_value_confirmed: Whether the user explicitly confirmed the value.
    """

    value: str | None = None
    previous_value: str | None = None
    er_match: bool | None = None
    elicitation_action: ElicitationAction | None = None
    is_value_confirmed: bool = False
