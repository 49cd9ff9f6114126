"""Input handlers and dispatch decisions.

A control owns an ordered list of named input handlers: built-in handlers
first, then any custom handlers supplied by the skill developer. Deciding
which handler acts produces an explicit decision value that is later passed
back to ``handle``; no control keeps a "selected handler" field between the
two calls.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..infrastructure.logging_config import get_logger
from ..models.input import ControlInput

if TYPE_CHECKING:
    from .control import Control
    from .result import ControlResultBuilder

logger = get_logger(__name__)

Predicate = Callable[[ControlInput], "bool | Awaitable[bool]"]
Effect = Callable[[ControlInput, "ControlResultBuilder"], "None | Awaitable[None]"]


async def maybe_await(value: Any) -> Any:
    """Await the value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class InputHandler:
    """A named (predicate, effect) pair.

    Predicates must not change dialog state: they may be evaluated any number
    of times before the effect runs.
    """

    name: str
    can_handle: Predicate
    handle: Effect
    builtin: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.name} (built-in)" if self.builtin else self.name


@dataclass(frozen=True)
class Decision:
    """Base for the values returned by the two dispatch questions.

    Attributes:
        control_id: The control that made the decision.
        name: Handler or initiative name chosen by that control.
        effect: The function to run, when the control acts itself.
        child: The decision of a child control, when the control delegates.
    """

    control_id: str
    name: str
    effect: Effect | None = field(default=None, compare=False)
    child: "Decision | None" = None

    @property
    def path(self) -> list[str]:
        """Control ids from the deciding control down to the acting one."""
        ids = [self.control_id]
        if self.child is not None:
            ids.extend(self.child.path)
        return ids

    @property
    def leaf(self) -> "Decision":
        """The decision of the control that actually acts."""
        return self.child.leaf if self.child is not None else self


@dataclass(frozen=True)
class HandlerDecision(Decision):
    """Result of a successful ``can_handle``."""


@dataclass(frozen=True)
class InitiativeDecision(Decision):
    """Result of a successful ``can_take_initiative``."""


async def evaluate_input_handlers(
    control: Control,
    input: ControlInput,
    handlers: Sequence[InputHandler],
) -> HandlerDecision | None:
    """Find the handler that should act on the input.

    Built-in handlers take precedence over custom handlers, then registration
    order. When more than one handler matches, every match is logged: the
    handlers of one control are expected to be mutually exclusive, and the
    precedence rule is only a safety net for misconfigured controls.

    Args:
        control: The control that owns the handlers.
        input: The input to evaluate.
        handlers: All handlers of the control, in registration order.

    Returns:
        A decision naming the chosen handler, or None if nothing matched.
    """
    ordered = [h for h in handlers if h.builtin] + [h for h in handlers if not h.builtin]
    matches: list[InputHandler] = []
    for handler in ordered:
        if await maybe_await(handler.can_handle(input)):
            matches.append(handler)

    if not matches:
        return None

    if len(matches) > 1:
        logger.error(
            "handler_conflict",
            detail="More than one handler matched. Handlers in a single control should be "
            "mutually exclusive. Defaulting to the first.",
            control_id=control.id,
            handlers=[h.display_name for h in matches],
        )

    chosen = matches[0]
    logger.debug("handler_selected", control_id=control.id, handler=chosen.display_name)
    return HandlerDecision(control_id=control.id, name=chosen.name, effect=chosen.handle)
