"""Validation of control values."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pydantic import BaseModel

from ..models.input import ControlInput
from .handlers import maybe_await


class ValidationFailure(BaseModel):
    """Describes why a value failed validation.

    Validation failures are expected outcomes that drive re-elicitation; they
    are returned, never raised.
    """

    reason_code: str | None = None
    rendered_reason: str | None = None


StateValidationFunction = Callable[
    [Any, ControlInput], "bool | ValidationFailure | Awaitable[bool | ValidationFailure]"
]


async def evaluate_validation(
    validations: Sequence[StateValidationFunction],
    state: Any,
    input: ControlInput,
) -> bool | ValidationFailure:
    """Run validation functions in order; the first failure wins.

    A function may return ``True`` (pass), a ``ValidationFailure``, or
    ``False`` (failure without a reason).

    Returns:
        True if every function passed, otherwise the first failure.
    """
    for validate in validations:
        result = await maybe_await(validate(state, input))
        if result is True:
            continue
        if isinstance(result, ValidationFailure):
            return result
        return ValidationFailure()
    return True
