"""Helpers for testing control trees without a ControlHandler.

``simple_invoke`` runs one turn against a root control and returns the
ControlResult, so tests can assert on acts rather than rendered prose.
"""

from __future__ import annotations

from typing import Any

from .core.control import Control
from .core.errors import DispatchMisuseError
from .core.result import ControlResult, ControlResultBuilder
from .core.tree import ControlTree
from .models.input import (
    ControlInput,
    general_control_intent,
    launch_request,
    no_intent,
    simple_intent,
    user_event,
    value_control_intent,
    yes_intent,
)


class TestInput:
    """Shorthand constructors for test inputs."""

    __test__ = False  # not a pytest test class

    @staticmethod
    def launch() -> ControlInput:
        return launch_request()

    @staticmethod
    def simple(intent_name: str, slots: dict[str, str] | None = None) -> ControlInput:
        return simple_intent(intent_name, slots)

    @staticmethod
    def general(
        feedback: str | None = None, action: str | None = None, target: str | None = None
    ) -> ControlInput:
        return general_control_intent(feedback=feedback, action=action, target=target)

    @staticmethod
    def value(
        slot_type: str,
        value: str,
        action: str | None = None,
        target: str | None = None,
        feedback: str | None = None,
        er_match: bool = True,
    ) -> ControlInput:
        return value_control_intent(
            slot_type, value, feedback=feedback, action=action, target=target, er_match=er_match
        )

    @staticmethod
    def yes() -> ControlInput:
        return yes_intent()

    @staticmethod
    def no() -> ControlInput:
        return no_intent()

    @staticmethod
    def event(source_id: str, arguments: list[Any] | None = None) -> ControlInput:
        return user_event(source_id, arguments)


async def simple_invoke(root: Control, input: ControlInput) -> ControlResult:
    """Run one turn against ``root`` and return the result.

    Runs the handle phase, then the initiative phase when no initiative act
    was produced, and records the turn's initiative on the tree.

    Raises:
        DispatchMisuseError: If no control handles the input.
    """
    tree = ControlTree(root)
    result_builder = ControlResultBuilder()
    decision = await root.can_handle(input)
    if decision is None:
        raise DispatchMisuseError(f"No control in '{root.id}' can handle {input.intent_name!r}")
    await root.handle(input, result_builder, decision)

    if not result_builder.has_initiative_act():
        initiative = await root.can_take_initiative(input)
        if initiative is not None:
            await root.take_initiative(input, result_builder, initiative)

    result = result_builder.build()
    tree.record_initiative(result)
    return result


def find_control_in_tree_by_id(root: Control, control_id: str) -> Control:
    """Find a control anywhere under ``root``.

    Raises:
        KeyError: If there is no such control.
    """
    return ControlTree(root).get(control_id)
