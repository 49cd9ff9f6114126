"""Predicates over ControlInput used by input handlers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..models.input import (
    GENERAL_CONTROL_INTENT,
    NO_INTENT,
    YES_INTENT,
    ControlInput,
    Feedback,
    RequestKind,
    value_control_intent_name,
)


def is_intent(input: ControlInput, intent_name: str) -> bool:
    return input.kind == RequestKind.INTENT and input.intent_name == intent_name


def is_general_control_intent(input: ControlInput) -> bool:
    return is_intent(input, GENERAL_CONTROL_INTENT)


def is_value_control_intent(input: ControlInput, slot_type: str) -> bool:
    return is_intent(input, value_control_intent_name(slot_type))


def is_bare_yes(input: ControlInput) -> bool:
    """'Yes' with nothing else: the yes intent, or a general intent carrying only affirm."""
    if is_intent(input, YES_INTENT):
        return True
    return (
        is_general_control_intent(input)
        and input.feedback == Feedback.AFFIRM.value
        and input.action is None
        and input.target is None
    )


def is_bare_no(input: ControlInput) -> bool:
    """'No' with nothing else: the no intent, or a general intent carrying only disaffirm."""
    if is_intent(input, NO_INTENT):
        return True
    return (
        is_general_control_intent(input)
        and input.feedback == Feedback.DISAFFIRM.value
        and input.action is None
        and input.target is None
    )


def target_is_match_or_undefined(target: str | None, targets: Iterable[str]) -> bool:
    return target is None or target in targets


def target_is_undefined(target: str | None) -> bool:
    return target is None


def action_is_match(action: str | None, actions: Iterable[str]) -> bool:
    return action is not None and action in actions


def action_is_undefined(action: str | None) -> bool:
    return action is None


def feedback_is_match_or_undefined(feedback: str | None, feedbacks: Iterable[str]) -> bool:
    return feedback is None or feedback in feedbacks


def feedback_is_undefined(feedback: str | None) -> bool:
    return feedback is None


def value_str_defined(value: str | None) -> bool:
    return value is not None and value != ""


def value_type_match(value_type: str | None, slot_type: str) -> bool:
    return value_type == slot_type


def is_user_event(input: ControlInput) -> bool:
    return input.kind == RequestKind.EVENT and input.raw.get("type") == "UserEvent"


def is_user_event_with_source_id(input: ControlInput, source_id: str) -> bool:
    return is_user_event(input) and input.raw.get("source", {}).get("id") == source_id


def user_event_arguments(input: ControlInput) -> list[Any]:
    return list(input.raw.get("arguments", []))
