"""NumberControl - a ValueControl for whole numbers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..core.acts import SystemAct
from ..core.validation import ValidationFailure
from ..models.config import get_prompt_catalog
from ..models.input import ControlInput, Target
from ..models.state import ValueControlState
from .value import ValueControl

NUMBER_SLOT_TYPE = "AMAZON.NUMBER"


def parse_number(value: str | None) -> int | None:
    """Parse an integer slot value, returning None if it is not one."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class NumberControl(ValueControl):
    """Obtains an integer, optionally bounded.

    Values are stored as normalized integer strings ("07" is stored as "7").
    Values that are not integers are kept as given so that validation can
    report them.

    Example:
        NumberControl(id="playerCount", min_value=1, max_value=8)
    """

    def __init__(
        self,
        id: str,
        min_value: int | None = None,
        max_value: int | None = None,
        **kwargs: Any,
    ):
        self.min_value = min_value
        self.max_value = max_value
        super().__init__(id, **kwargs)

    def default_props(self) -> dict[str, Any]:
        defaults = super().default_props()
        defaults["slot_type"] = NUMBER_SLOT_TYPE
        defaults["interaction_model"]["targets"] = [Target.NUMBER.value, Target.IT.value]
        defaults["prompts"]["request_value"] = _request_number
        defaults["reprompts"]["request_value"] = _request_number
        return defaults

    def builtin_validations(self) -> list[Callable[..., Any]]:
        return [self.validate_number]

    def validate_number(
        self, state: ValueControlState, input: ControlInput
    ) -> bool | ValidationFailure:
        catalog = get_prompt_catalog()
        number = parse_number(state.value)
        if number is None:
            return ValidationFailure(
                reason_code="notANumber",
                rendered_reason=catalog.get("number_control.reason.not_a_number"),
            )
        if self.min_value is not None and number < self.min_value:
            return ValidationFailure(
                reason_code="belowMinimum",
                rendered_reason=catalog.get(
                    "number_control.reason.below_minimum", minimum=self.min_value
                ),
            )
        if self.max_value is not None and number > self.max_value:
            return ValidationFailure(
                reason_code="aboveMaximum",
                rendered_reason=catalog.get(
                    "number_control.reason.above_maximum", maximum=self.max_value
                ),
            )
        return True

    def set_value(self, value: str, er_match: bool = True) -> None:
        number = parse_number(value)
        super().set_value(str(number) if number is not None else value, er_match)

    @property
    def number(self) -> int | None:
        """The current value as an int, or None."""
        return parse_number(self.state.value)


def _request_number(act: SystemAct, input: ControlInput) -> str:
    return get_prompt_catalog().get("number_control.prompt.request_value")
