"""ListControl - a ValueControl that selects one item from a list of ids."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ..core.acts import SystemAct
from ..core.errors import ConfigurationError
from ..core.validation import ValidationFailure
from ..models.config import get_prompt_catalog
from ..models.input import ControlInput, Target
from ..models.state import ValueControlState
from ..utils.helpers import join_with_conjunction
from .value import ValueControl

ListItemIds = Sequence[str] | Callable[[ControlInput], Sequence[str]]


class ListControl(ValueControl):
    """Obtains one value from a known list of item ids.

    The request prompt mentions up to ``max_suggestions`` items, rendered
    with the control's value renderer.

    Example:
        ListControl(
            id="color",
            slot_type="Color",
            list_item_ids=["red", "green", "blue"],
        )
    """

    def __init__(
        self,
        id: str,
        list_item_ids: ListItemIds,
        slot_type: str | None = None,
        max_suggestions: int = 3,
        **kwargs: Any,
    ):
        if list_item_ids is None:
            raise ConfigurationError(f"ListControl '{id}' requires list_item_ids")
        if slot_type is None:
            raise ConfigurationError(f"ListControl '{id}' requires a slot_type")
        self.list_item_ids = list_item_ids
        self.max_suggestions = max_suggestions
        super().__init__(id, slot_type=slot_type, **kwargs)

    def default_props(self) -> dict[str, Any]:
        defaults = super().default_props()
        defaults["interaction_model"]["targets"] = [Target.CHOICE.value, Target.IT.value]
        defaults["prompts"]["request_value"] = self._request_with_suggestions
        defaults["reprompts"]["request_value"] = self._request_with_suggestions
        return defaults

    def builtin_validations(self) -> list[Callable[..., Any]]:
        return [self.validate_in_list]

    def get_list_item_ids(self, input: ControlInput) -> list[str]:
        ids = self.list_item_ids(input) if callable(self.list_item_ids) else self.list_item_ids
        return list(ids)

    def validate_in_list(
        self, state: ValueControlState, input: ControlInput
    ) -> bool | ValidationFailure:
        if state.value in self.get_list_item_ids(input):
            return True
        return ValidationFailure(
            reason_code="notInList",
            rendered_reason=get_prompt_catalog().get("list_control.reason.not_in_list"),
        )

    def _request_with_suggestions(self, act: SystemAct, input: ControlInput) -> str:
        catalog = get_prompt_catalog()
        question = catalog.get("list_control.prompt.request_value")
        ids = self.get_list_item_ids(input)[: self.max_suggestions]
        if not ids:
            return question
        rendered = [self.props.value_renderer(item, input) for item in ids]
        suggestions = join_with_conjunction(rendered, catalog.get("list_control.conjunction"))
        suggestion_text = catalog.get("list_control.prompt.suggestions", suggestions=suggestions)
        return f"{question} {suggestion_text}"
