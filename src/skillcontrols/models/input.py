"""Normalized input models.

Inputs arrive already resolved by the NLU layer: an intent name plus slot
values. The fixed slot vocabulary shared by the control intents is
``feedback``, ``action``, ``target``, ``head`` and ``tail``; value intents add
one more slot named after the slot type they carry.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

GENERAL_CONTROL_INTENT = "GeneralControlIntent"
YES_INTENT = "AMAZON.YesIntent"
NO_INTENT = "AMAZON.NoIntent"

CONTROL_SLOTS = ("feedback", "action", "target", "head", "tail")
VALUE_INTENT_SUFFIX = "_ValueControlIntent"


class RequestKind(str, Enum):
    """Kinds of request a turn can start from."""

    LAUNCH = "launch"
    INTENT = "intent"
    EVENT = "event"


class Action(str, Enum):
    """Built-in action slot value ids."""

    SET = "builtin_set"
    CHANGE = "builtin_change"


class Target(str, Enum):
    """Built-in target slot value ids."""

    IT = "builtin_it"
    DATE = "builtin_date"
    NUMBER = "builtin_number"
    CHOICE = "builtin_choice"


class Feedback(str, Enum):
    """Built-in feedback slot value ids."""

    AFFIRM = "builtin_affirm"
    DISAFFIRM = "builtin_disaffirm"


class SlotValue(BaseModel):
    """A resolved slot value.

    ``value`` is the canonical id when ``er_match`` is true, otherwise the raw
    spoken value.
    """

    value: str | None = None
    er_match: bool = False


class ControlInput(BaseModel):
    """A normalized request as seen by the control tree."""

    kind: RequestKind = RequestKind.INTENT
    intent_name: str | None = None
    slots: dict[str, SlotValue] = Field(default_factory=dict)
    raw: dict[str, Any] = Field(default_factory=dict)
    session_id: str | None = None
    turn_number: int = 0

    def slot(self, name: str) -> str | None:
        """Return the value of a slot, or None if absent or empty."""
        slot = self.slots.get(name)
        if slot is None or slot.value in (None, ""):
            return None
        return slot.value

    @property
    def feedback(self) -> str | None:
        return self.slot("feedback")

    @property
    def action(self) -> str | None:
        return self.slot("action")

    @property
    def target(self) -> str | None:
        return self.slot("target")

    @property
    def head(self) -> str | None:
        return self.slot("head")

    @property
    def tail(self) -> str | None:
        return self.slot("tail")

    @property
    def value_slot_type(self) -> str | None:
        """The slot type carried by a value-control intent, if this is one."""
        if self.intent_name is None or not self.intent_name.endswith(VALUE_INTENT_SUFFIX):
            return None
        for name in self.slots:
            if name not in CONTROL_SLOTS and value_control_intent_name(name) == self.intent_name:
                return name
        return None

    def value_resolution(self) -> SlotValue | None:
        """The value slot of a value-control intent."""
        slot_type = self.value_slot_type
        if slot_type is None:
            return None
        return self.slots.get(slot_type)


def value_control_intent_name(slot_type: str) -> str:
    """Name of the value-control intent for a slot type.

    Example: 'AMAZON.NUMBER' -> 'AMAZON_NUMBER_ValueControlIntent'
    """
    return f"{slot_type.replace('.', '_')}{VALUE_INTENT_SUFFIX}"


def _control_slots(
    feedback: str | None, action: str | None, target: str | None, head: str | None, tail: str | None
) -> dict[str, SlotValue]:
    values = {"feedback": feedback, "action": action, "target": target, "head": head, "tail": tail}
    return {
        name: SlotValue(value=value, er_match=value is not None) for name, value in values.items()
    }


def general_control_intent(
    feedback: str | None = None,
    action: str | None = None,
    target: str | None = None,
    head: str | None = None,
    tail: str | None = None,
) -> ControlInput:
    """Build a GeneralControlIntent input, e.g. "change the count"."""
    return ControlInput(
        kind=RequestKind.INTENT,
        intent_name=GENERAL_CONTROL_INTENT,
        slots=_control_slots(feedback, action, target, head, tail),
    )


def value_control_intent(
    slot_type: str,
    value: str | None,
    feedback: str | None = None,
    action: str | None = None,
    target: str | None = None,
    er_match: bool = True,
) -> ControlInput:
    """Build a value-control intent input, e.g. "set the count to 3"."""
    slots = _control_slots(feedback, action, target, None, None)
    slots[slot_type] = SlotValue(value=value, er_match=er_match and value is not None)
    return ControlInput(
        kind=RequestKind.INTENT,
        intent_name=value_control_intent_name(slot_type),
        slots=slots,
    )


def simple_intent(name: str, slots: dict[str, str] | None = None) -> ControlInput:
    """Build an input for an arbitrary intent with plain slot values."""
    return ControlInput(
        kind=RequestKind.INTENT,
        intent_name=name,
        slots={k: SlotValue(value=v, er_match=True) for k, v in (slots or {}).items()},
    )


def yes_intent() -> ControlInput:
    return simple_intent(YES_INTENT)


def no_intent() -> ControlInput:
    return simple_intent(NO_INTENT)


def launch_request() -> ControlInput:
    return ControlInput(kind=RequestKind.LAUNCH)


def user_event(source_id: str, arguments: list[Any] | None = None) -> ControlInput:
    """Build a platform user event, e.g. a touch on a screen button."""
    return ControlInput(
        kind=RequestKind.EVENT,
        raw={"type": "UserEvent", "source": {"id": source_id}, "arguments": arguments or []},
    )
