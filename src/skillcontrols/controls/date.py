"""DateControl - a ValueControl for calendar dates."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date
from typing import Any

from ..core.acts import SystemAct
from ..core.validation import ValidationFailure
from ..models.config import get_prompt_catalog
from ..models.input import ControlInput, Target
from ..models.state import ValueControlState
from .value import ValueControl

DATE_SLOT_TYPE = "AMAZON.DATE"

# A year, a month of a year, or a full day.
DATE_PATTERN = re.compile(r"^(?P<year>\d{4})(-(?P<month>\d{2})(-(?P<day>\d{2}))?)?$")


def is_valid_date(value: str | None) -> bool:
    """Whether ``value`` is 'YYYY', 'YYYY-MM' or a real 'YYYY-MM-DD' date."""
    if value is None:
        return False
    match = DATE_PATTERN.match(value)
    if match is None:
        return False
    if match.group("day") is not None:
        try:
            date.fromisoformat(value)
        except ValueError:
            return False
        return True
    if match.group("month") is not None:
        return 1 <= int(match.group("month")) <= 12
    return True


class DateControl(ValueControl):
    """Obtains a date, a month or a year.

    Example:
        DateControl(id="birthday", interaction_model={"targets": ["birthday"]})
    """

    def default_props(self) -> dict[str, Any]:
        defaults = super().default_props()
        defaults["slot_type"] = DATE_SLOT_TYPE
        defaults["interaction_model"]["targets"] = [Target.DATE.value, Target.IT.value]
        defaults["prompts"]["request_value"] = _request_date
        defaults["reprompts"]["request_value"] = _request_date
        return defaults

    def builtin_validations(self) -> list[Callable[..., Any]]:
        return [validate_date]


def validate_date(state: ValueControlState, input: ControlInput) -> bool | ValidationFailure:
    if is_valid_date(state.value):
        return True
    return ValidationFailure(
        reason_code="invalidDate",
        rendered_reason=get_prompt_catalog().get("date_control.reason.invalid_date"),
    )


def _request_date(act: SystemAct, input: ControlInput) -> str:
    return get_prompt_catalog().get("date_control.prompt.request_value")
