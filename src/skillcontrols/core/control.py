"""Control base classes.

A Control is a reusable unit of dialog capability. Every control answers two
questions each turn and acts on the answer:

- ``can_handle`` / ``handle``: react to the user's input.
- ``can_take_initiative`` / ``take_initiative``: ask the user something.

Both questions return an explicit decision value (or None). The decision is
passed back into the matching action method, which runs exactly what was
decided.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, NoReturn

from ..infrastructure.logging_config import get_logger
from ..models.input import ControlInput
from ..models.state import ControlState
from .acts import SystemAct
from .errors import ConfigurationError, DispatchMisuseError, UnhandledActError
from .handlers import (
    Decision,
    HandlerDecision,
    InitiativeDecision,
    InputHandler,
    evaluate_input_handlers,
    maybe_await,
)
from .result import ControlResultBuilder

if TYPE_CHECKING:
    from ..runtime.response import ControlResponseBuilder

logger = get_logger(__name__)


class Control(ABC):
    """Abstract base class for all controls.

    Subclasses set ``state_class`` to the pydantic model they persist between
    turns. State is changed only by the control itself, during ``handle`` or
    ``take_initiative``.
    """

    state_class: type[ControlState] = ControlState

    def __init__(self, id: str):
        if not id:
            raise ConfigurationError(f"{type(self).__name__} requires a non-empty id")
        self.id = id
        self.state: ControlState = self.state_class()

    @property
    def children(self) -> Sequence[Control]:
        """Child controls in registration order. Leaves have none."""
        return ()

    @abstractmethod
    async def can_handle(self, input: ControlInput) -> HandlerDecision | None:
        """Decide whether this control (or a descendant) handles the input.

        Must not change state; calling it repeatedly yields the same decision.
        """

    async def handle(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        decision: HandlerDecision | None,
    ) -> None:
        """Run the handler chosen by ``can_handle``."""
        decision = self._check_decision(decision, HandlerDecision, "handle")
        await maybe_await(decision.effect(input, result_builder))  # type: ignore[misc]

    @abstractmethod
    async def can_take_initiative(self, input: ControlInput) -> InitiativeDecision | None:
        """Decide whether this control (or a descendant) wants to ask something."""

    async def take_initiative(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        decision: InitiativeDecision | None,
    ) -> None:
        """Run the initiative chosen by ``can_take_initiative``."""
        decision = self._check_decision(decision, InitiativeDecision, "take_initiative")
        await maybe_await(decision.effect(input, result_builder))  # type: ignore[misc]

    async def render_act(
        self, act: SystemAct, input: ControlInput, response_builder: ControlResponseBuilder
    ) -> None:
        """Add prompt fragments and directives for one of this control's acts.

        Rendering only appends to the response; it never changes state.
        """
        self.throw_unhandled_act_error(act)

    def get_state(self) -> dict:
        """Serialize the state for persistence."""
        return self.state.model_dump(mode="json")

    def set_state(self, data: dict) -> None:
        """Restore state saved by ``get_state``."""
        self.state = self.state_class.model_validate(data)

    def stringify_state_for_diagram(self) -> str:
        return ""

    def throw_unhandled_act_error(self, act: SystemAct) -> NoReturn:
        raise UnhandledActError(act.name, self.id)

    def _check_decision(self, decision, expected: type[Decision], method: str):
        if not isinstance(decision, expected):
            logger.error(
                "dispatch_misuse",
                control_id=self.id,
                method=method,
                decision=repr(decision),
            )
            raise DispatchMisuseError(
                f"{type(self).__name__} '{self.id}': {method}() called without a "
                f"{expected.__name__}. Call the matching can_* method first."
            )
        if decision.control_id != self.id:
            raise DispatchMisuseError(
                f"{type(self).__name__} '{self.id}': {method}() received a decision "
                f"made by '{decision.control_id}'"
            )
        if decision.child is None and decision.effect is None:
            raise DispatchMisuseError(
                f"{type(self).__name__} '{self.id}': decision '{decision.name}' has nothing to run"
            )
        return decision

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id='{self.id}'>"


class ContainerControl(Control):
    """A control that owns an ordered list of child controls.

    Dispatch walks the children depth-first in registration order and the
    first child that reports a decision wins; later siblings are not asked.
    Custom handlers registered on the container itself are consulted only when
    no child handles the input.
    """

    def __init__(self, id: str, custom_handlers: Sequence[InputHandler] | None = None):
        super().__init__(id)
        self._children: list[Control] = []
        self.custom_handlers: list[InputHandler] = list(custom_handlers or [])

    @property
    def children(self) -> Sequence[Control]:
        return tuple(self._children)

    def add_child(self, child: Control) -> ContainerControl:
        """Append a child control. Returns self for chaining."""
        if child is self:
            raise ConfigurationError(f"Control '{self.id}' cannot be its own child")
        self._children.append(child)
        return self

    def child_by_id(self, control_id: str) -> Control:
        for child in self._children:
            if child.id == control_id:
                return child
        raise DispatchMisuseError(f"Control '{self.id}' has no child '{control_id}'")

    async def can_handle(self, input: ControlInput) -> HandlerDecision | None:
        for child in self._children:
            child_decision = await child.can_handle(input)
            if child_decision is not None:
                return HandlerDecision(control_id=self.id, name=child.id, child=child_decision)
        return await evaluate_input_handlers(self, input, self.custom_handlers)

    async def handle(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        decision: HandlerDecision | None,
    ) -> None:
        decision = self._check_decision(decision, HandlerDecision, "handle")
        if decision.child is None:
            await maybe_await(decision.effect(input, result_builder))  # type: ignore[misc]
            return
        child = self.child_by_id(decision.child.control_id)
        await child.handle(input, result_builder, decision.child)  # type: ignore[arg-type]

    async def can_take_initiative(self, input: ControlInput) -> InitiativeDecision | None:
        for child in self._children:
            child_decision = await child.can_take_initiative(input)
            if child_decision is not None:
                return InitiativeDecision(control_id=self.id, name=child.id, child=child_decision)
        return None

    async def take_initiative(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        decision: InitiativeDecision | None,
    ) -> None:
        decision = self._check_decision(decision, InitiativeDecision, "take_initiative")
        if decision.child is None:
            await maybe_await(decision.effect(input, result_builder))  # type: ignore[misc]
            return
        child = self.child_by_id(decision.child.control_id)
        await child.take_initiative(input, result_builder, decision.child)  # type: ignore[arg-type]

    async def render_act(
        self, act: SystemAct, input: ControlInput, response_builder: ControlResponseBuilder
    ) -> None:
        """Render an act by delegating to the descendant that produced it.

        Subclasses that render their own acts call this for everything else.
        """
        owner = self._find_descendant(act.control_id)
        if owner is None:
            self.throw_unhandled_act_error(act)
        await owner.render_act(act, input, response_builder)

    def _find_descendant(self, control_id: str) -> Control | None:
        pending = list(self._children)
        while pending:
            control = pending.pop(0)
            if control.id == control_id:
                return control
            pending[:0] = control.children
        return None
