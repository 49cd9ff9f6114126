"""ValueControl - obtains, validates and optionally confirms a single value.

Capabilities:
- Request a value ("What is your name?")
- Change a value ("change my name to Bob")
- Validate the value and re-ask with a reason when it fails
- Confirm the value with a yes/no question

The control's dialog state is implicit in ``ValueControlState``:

    no value                  value is None
    value set, unconfirmed    value set, is_value_confirmed False
    awaiting confirmation     last_initiative_act == 'ConfirmValueAct'
    value confirmed           is_value_confirmed True
    awaiting elicitation      last_initiative_act is a request act;
                              elicitation_action says 'set' or 'change'
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..core.acts import (
    ConfirmValueAct,
    InvalidValueAct,
    RequestChangedValueAct,
    RequestValueAct,
    SystemAct,
    ValueChangedAct,
    ValueConfirmedAct,
    ValueDisconfirmedAct,
    ValueSetAct,
)
from ..core.control import Control
from ..core.errors import ConfigurationError
from ..core.handlers import (
    HandlerDecision,
    InitiativeDecision,
    InputHandler,
    evaluate_input_handlers,
)
from ..core.result import ControlResultBuilder
from ..core.validation import ValidationFailure, evaluate_validation
from ..infrastructure.logging_config import get_logger
from ..models.config import get_prompt_catalog
from ..models.input import Action, ControlInput, Feedback, Target, value_control_intent_name
from ..models.state import ElicitationAction, ValueControlState
from ..runtime.response import ControlResponseBuilder
from ..utils import input_util
from ..utils.helpers import deep_merge

logger = get_logger(__name__)

SEARCH_QUERY_SLOT_TYPE = "AMAZON.SearchQuery"
AFFIRM_OR_DISAFFIRM = (Feedback.AFFIRM.value, Feedback.DISAFFIRM.value)
REQUEST_ACT_NAMES = (RequestValueAct.__name__, RequestChangedValueAct.__name__)


# =============================================================================
# Props
# =============================================================================


class ActionProps(BaseModel):
    """Action slot value ids associated with each capability."""

    model_config = ConfigDict(frozen=True)

    set: list[str]
    change: list[str]


class InteractionModelProps(BaseModel):
    """How the control relates to the action and target slots."""

    model_config = ConfigDict(frozen=True)

    targets: list[str]
    actions: ActionProps


class PromptProps(BaseModel):
    """Prompt (or reprompt) settings per act.

    Each entry is a string, a list of strings (one is picked at random), or a
    callable ``(act, input) -> str | list[str]``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    value_set: Any = None
    value_changed: Any = None
    invalid_value: Any = None
    request_value: Any = None
    request_changed_value: Any = None
    confirm_value: Any = None
    value_confirmed: Any = None
    value_disconfirmed: Any = None


class ValueControlProps(BaseModel):
    """Fully resolved, immutable props of a ValueControl."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    slot_type: str
    required: bool | Callable[..., Any] = True
    confirmation_required: bool | Callable[..., Any] = False
    validation: list[Callable[..., Any]] = []
    interaction_model: InteractionModelProps
    prompts: PromptProps
    reprompts: PromptProps
    custom_handlers: list[Any] = []
    value_renderer: Callable[..., Any]

    @field_validator("validation", mode="before")
    @classmethod
    def _validation_as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if callable(value):
            return [value]
        return value

    @field_validator("custom_handlers", mode="before")
    @classmethod
    def _custom_handlers(cls, value: Any) -> list[InputHandler]:
        handlers = []
        for item in value or []:
            if isinstance(item, dict):
                item = InputHandler(
                    name=item["name"], can_handle=item["can_handle"], handle=item["handle"]
                )
            if not isinstance(item, InputHandler):
                raise ValueError(f"custom handler must be an InputHandler or dict, got {item!r}")
            handlers.append(item)
        return handlers

    @model_validator(mode="after")
    def _check_wiring(self) -> "ValueControlProps":
        if self.slot_type == SEARCH_QUERY_SLOT_TYPE:
            raise ConfigurationError(
                f"{SEARCH_QUERY_SLOT_TYPE} cannot be used with ValueControl: utterances with "
                "that slot need a carrier phrase. Use a custom intent instead."
            )
        if not self.interaction_model.targets:
            raise ConfigurationError(f"Control '{self.id}' must have at least one target")
        overlap = set(self.interaction_model.actions.set) & set(
            self.interaction_model.actions.change
        )
        if overlap:
            raise ConfigurationError(
                f"Control '{self.id}' maps action ids {sorted(overlap)} to both set and change"
            )
        return self


def _default_invalid_value(kind: str) -> Callable[[SystemAct, ControlInput], str]:
    def render(act: SystemAct, input: ControlInput) -> str:
        catalog = get_prompt_catalog()
        if act.payload.get("rendered_reason") is not None:
            return catalog.get(
                f"value_control.{kind}.invalid_value_with_reason",
                value=act.payload["rendered_value"],
                reason=act.payload["rendered_reason"],
            )
        return catalog.get(
            f"value_control.{kind}.invalid_value", value=act.payload["rendered_value"]
        )

    return render


def _default_prompts(kind: str) -> dict[str, Any]:
    """Catalog-backed defaults for either 'prompt' or 'reprompt'."""

    def from_catalog(name: str) -> Callable[[SystemAct, ControlInput], str]:
        def render(act: SystemAct, input: ControlInput) -> str:
            return get_prompt_catalog().get(
                f"value_control.{kind}.{name}",
                value=act.payload.get("rendered_value"),
            )

        return render

    return {
        "value_set": from_catalog("value_set"),
        "value_changed": from_catalog("value_changed"),
        "invalid_value": _default_invalid_value(kind),
        "request_value": from_catalog("request_value"),
        "request_changed_value": from_catalog("request_changed_value"),
        "confirm_value": from_catalog("confirm_value"),
        "value_confirmed": from_catalog("value_affirmed"),
        "value_disconfirmed": from_catalog("value_disaffirmed"),
    }


def evaluate_prompt_prop(prop: Any, act: SystemAct, input: ControlInput) -> str:
    """Resolve a prompt setting to a single string."""
    value = prop(act, input) if callable(prop) else prop
    if isinstance(value, list | tuple):
        return random.choice(value) if value else ""
    return value or ""


# =============================================================================
# ValueControl
# =============================================================================


class ValueControl(Control):
    """A control that obtains a single value from the user.

    Handles:
    - ``GeneralControlIntent``: "change my name", "set the date"
    - ``{SlotType}_ValueControlIntent``: "set my name to Bob", "Bob"
    - ``AMAZON.YesIntent`` / ``AMAZON.NoIntent`` after a confirmation question

    Example:
        ValueControl(
            id="playerName",
            slot_type="CUSTOM.name",
            interaction_model={"targets": ["name"]},
            confirmation_required=True,
        )
    """

    state_class = ValueControlState
    state: ValueControlState

    def __init__(
        self,
        id: str,
        slot_type: str | None = None,
        required: bool | Callable[[ControlInput], bool] | None = None,
        confirmation_required: bool | Callable[[ControlInput], bool] | None = None,
        validation: Callable[..., Any] | Sequence[Callable[..., Any]] | None = None,
        interaction_model: dict[str, Any] | None = None,
        prompts: dict[str, Any] | None = None,
        reprompts: dict[str, Any] | None = None,
        custom_handlers: Sequence[InputHandler | dict[str, Any]] | None = None,
        value_renderer: Callable[[str, ControlInput], str] | None = None,
    ):
        super().__init__(id)
        overrides = {
            "id": id,
            "slot_type": slot_type,
            "required": required,
            "confirmation_required": confirmation_required,
            "validation": validation,
            "interaction_model": interaction_model,
            "prompts": prompts,
            "reprompts": reprompts,
            "custom_handlers": list(custom_handlers) if custom_handlers is not None else None,
            "value_renderer": value_renderer,
        }
        merged = deep_merge(self.default_props(), overrides)
        if not merged.get("slot_type"):
            raise ConfigurationError(f"{type(self).__name__} '{id}' requires a slot_type")
        try:
            self.props = ValueControlProps.model_validate(merged)
        except ValidationError as error:
            raise ConfigurationError(
                f"{type(self).__name__} '{id}' has invalid props: {error}"
            ) from error
        self.handlers: list[InputHandler] = self.standard_input_handlers() + list(
            self.props.custom_handlers
        )
        self.validations: list[Callable[..., Any]] = self.builtin_validations() + list(
            self.props.validation
        )

    def default_props(self) -> dict[str, Any]:
        """Defaults that user-supplied props are merged onto."""
        return {
            "slot_type": None,
            "required": True,
            "confirmation_required": False,
            "validation": [],
            "interaction_model": {
                "targets": [Target.IT.value],
                "actions": {"set": [Action.SET.value], "change": [Action.CHANGE.value]},
            },
            "prompts": _default_prompts("prompt"),
            "reprompts": _default_prompts("reprompt"),
            "custom_handlers": [],
            "value_renderer": lambda value, input: value,
        }

    def builtin_validations(self) -> list[Callable[..., Any]]:
        """Validation that always runs before any user-supplied validation."""
        return []

    def standard_input_handlers(self) -> list[InputHandler]:
        return [
            InputHandler("SetWithValue", self.is_set_with_value, self.handle_set_with_value, True),
            InputHandler(
                "ChangeWithValue", self.is_change_with_value, self.handle_change_with_value, True
            ),
            InputHandler(
                "SetWithoutValue", self.is_set_without_value, self.handle_set_without_value, True
            ),
            InputHandler(
                "ChangeWithoutValue",
                self.is_change_without_value,
                self.handle_change_without_value,
                True,
            ),
            InputHandler("BareValue", self.is_bare_value, self.handle_bare_value, True),
            InputHandler(
                "ConfirmationAffirmed",
                self.is_confirmation_affirmed,
                self.handle_confirmation_affirmed,
                True,
            ),
            InputHandler(
                "ConfirmationDisaffirmed",
                self.is_confirmation_disaffirmed,
                self.handle_confirmation_disaffirmed,
                True,
            ),
        ]

    @property
    def slot_type(self) -> str:
        return self.props.slot_type

    # -------------------------------------------------------------------------
    # Input handling
    # -------------------------------------------------------------------------

    async def can_handle(self, input: ControlInput) -> HandlerDecision | None:
        return await evaluate_input_handlers(self, input, self.handlers)

    async def handle(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        decision: HandlerDecision | None,
    ) -> None:
        self._check_decision(decision, HandlerDecision, "handle")
        # Any pending question is answered (or abandoned) by this input.
        self.state.last_initiative_act = None
        await super().handle(input, result_builder, decision)

    def _is_own_value_intent(self, input: ControlInput) -> bool:
        return input_util.is_value_control_intent(
            input, self.slot_type
        ) and input_util.value_type_match(input.value_slot_type, self.slot_type)

    def _is_general_intent_for(self, input: ControlInput, actions: list[str]) -> bool:
        return (
            input_util.is_general_control_intent(input)
            and input_util.target_is_match_or_undefined(
                input.target, self.props.interaction_model.targets
            )
            and input_util.feedback_is_match_or_undefined(input.feedback, AFFIRM_OR_DISAFFIRM)
            and input_util.action_is_match(input.action, actions)
        )

    def _is_value_intent_for(self, input: ControlInput, actions: list[str]) -> bool:
        return (
            self._is_own_value_intent(input)
            and input_util.target_is_match_or_undefined(
                input.target, self.props.interaction_model.targets
            )
            and input_util.value_str_defined(input.slot(self.slot_type))
            and input_util.feedback_is_match_or_undefined(input.feedback, AFFIRM_OR_DISAFFIRM)
            and input_util.action_is_match(input.action, actions)
        )

    def is_set_with_value(self, input: ControlInput) -> bool:
        """'Set my name to Bob'."""
        return self._is_value_intent_for(input, self.props.interaction_model.actions.set)

    async def handle_set_with_value(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        self._set_value_from_input(input)
        await self.validate_and_add_acts(input, result_builder, ElicitationAction.SET)

    def is_change_with_value(self, input: ControlInput) -> bool:
        """'Change my name to Bob'."""
        return self._is_value_intent_for(input, self.props.interaction_model.actions.change)

    async def handle_change_with_value(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        self._set_value_from_input(input)
        await self.validate_and_add_acts(input, result_builder, ElicitationAction.CHANGE)

    def is_set_without_value(self, input: ControlInput) -> bool:
        """'Set my name'."""
        return self._is_general_intent_for(input, self.props.interaction_model.actions.set)

    def handle_set_without_value(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        self.ask_elicitation_question(input, result_builder, ElicitationAction.SET)

    def is_change_without_value(self, input: ControlInput) -> bool:
        """'Change my name'."""
        return self._is_general_intent_for(input, self.props.interaction_model.actions.change)

    def handle_change_without_value(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        self.ask_elicitation_question(input, result_builder, ElicitationAction.CHANGE)

    def is_bare_value(self, input: ControlInput) -> bool:
        """'Bob', in answer to this control's own request for a value."""
        return (
            self._is_own_value_intent(input)
            and input_util.feedback_is_undefined(input.feedback)
            and input_util.action_is_undefined(input.action)
            and input_util.target_is_undefined(input.target)
            and input_util.value_str_defined(input.slot(self.slot_type))
            and self.state.last_initiative_act in REQUEST_ACT_NAMES
        )

    async def handle_bare_value(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        action = self.state.elicitation_action or ElicitationAction.SET
        self._set_value_from_input(input)
        await self.validate_and_add_acts(input, result_builder, action)

    def is_confirmation_affirmed(self, input: ControlInput) -> bool:
        """'Yes', in answer to this control's confirmation question."""
        return (
            input_util.is_bare_yes(input)
            and self.state.last_initiative_act == ConfirmValueAct.__name__
        )

    def handle_confirmation_affirmed(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        self.state.is_value_confirmed = True
        result_builder.add_act(
            ValueConfirmedAct(
                self.id, self.state.value, self._render_value(self.state.value, input)
            )
        )

    def is_confirmation_disaffirmed(self, input: ControlInput) -> bool:
        """'No', in answer to this control's confirmation question."""
        return (
            input_util.is_bare_no(input)
            and self.state.last_initiative_act == ConfirmValueAct.__name__
        )

    def handle_confirmation_disaffirmed(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        self.state.is_value_confirmed = False
        result_builder.add_act(
            ValueDisconfirmedAct(
                self.id, self.state.value, self._render_value(self.state.value, input)
            )
        )
        self.ask_elicitation_question(input, result_builder, ElicitationAction.SET)

    # -------------------------------------------------------------------------
    # Value lifecycle
    # -------------------------------------------------------------------------

    def _set_value_from_input(self, input: ControlInput) -> None:
        resolution = input.value_resolution()
        if resolution is None or resolution.value is None:
            raise ConfigurationError(
                f"Control '{self.id}' expected a value for slot type {self.slot_type}"
            )
        self.set_value(resolution.value, resolution.er_match)

    def set_value(self, value: str, er_match: bool = True) -> None:
        """Directly set the value. Clears any earlier confirmation.

        Args:
            value: The new value.
            er_match: Whether the value is a canonical id of ``slot_type``.
        """
        self.state.previous_value = self.state.value
        self.state.value = value
        self.state.er_match = er_match
        self.state.is_value_confirmed = False

    def clear(self) -> None:
        """Reset the control to its initial state."""
        self.state = ValueControlState()

    async def validate_and_add_acts(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        elicitation_action: ElicitationAction,
    ) -> None:
        """Validate the current value and report the outcome.

        On success adds ValueSetAct (for 'set') or ValueChangedAct (for
        'change'). On failure adds InvalidValueAct followed by a new request
        for the same action.
        """
        self.state.elicitation_action = elicitation_action
        result = await evaluate_validation(self.validations, self.state, input)
        if isinstance(result, ValidationFailure):
            logger.debug(
                "value_invalid",
                control_id=self.id,
                reason_code=result.reason_code,
            )
            result_builder.add_act(
                InvalidValueAct(
                    self.id,
                    self.state.value,
                    self._render_value(self.state.value, input),
                    reason_code=result.reason_code,
                    rendered_reason=result.rendered_reason,
                )
            )
            self.ask_elicitation_question(input, result_builder, elicitation_action)
            return

        self.state.elicitation_action = None
        rendered = self._render_value(self.state.value, input)
        # Changing a value that was never set is reported as a set.
        if elicitation_action == ElicitationAction.CHANGE and self.state.previous_value is not None:
            result_builder.add_act(
                ValueChangedAct(
                    self.id,
                    self.state.value,
                    self.state.previous_value,
                    rendered,
                    self._render_value(self.state.previous_value, input),
                )
            )
        else:
            result_builder.add_act(ValueSetAct(self.id, self.state.value, rendered))

    def ask_elicitation_question(
        self,
        input: ControlInput,
        result_builder: ControlResultBuilder,
        elicitation_action: ElicitationAction,
    ) -> None:
        """Add a RequestValueAct ('set') or RequestChangedValueAct ('change')."""
        self.state.elicitation_action = elicitation_action
        if elicitation_action == ElicitationAction.SET:
            act: SystemAct = RequestValueAct(self.id)
        elif elicitation_action == ElicitationAction.CHANGE:
            act = RequestChangedValueAct(
                self.id, self.state.value, self._render_value(self.state.value, input)
            )
        else:
            raise ConfigurationError(f"Unknown elicitation action: {elicitation_action!r}")
        result_builder.add_act(act)
        self.state.last_initiative_act = act.name

    # -------------------------------------------------------------------------
    # Initiative
    # -------------------------------------------------------------------------

    async def can_take_initiative(self, input: ControlInput) -> InitiativeDecision | None:
        # Order matters: never confirm an invalid value, never validate a missing one.
        if await self._wants_to_confirm_value(input):
            return InitiativeDecision(self.id, "ConfirmValue", self.confirm_value)
        if await self._wants_to_fix_invalid_value(input):
            return InitiativeDecision(self.id, "FixInvalidValue", self.fix_invalid_value)
        if self._wants_to_elicit_value(input):
            return InitiativeDecision(self.id, "ElicitValue", self.elicit_value)
        return None

    async def _is_valid(self, input: ControlInput) -> bool:
        return await evaluate_validation(self.validations, self.state, input) is True

    async def _wants_to_confirm_value(self, input: ControlInput) -> bool:
        return (
            self.state.value is not None
            and not self.state.is_value_confirmed
            and self._evaluate_bool_prop(self.props.confirmation_required, input)
            and await self._is_valid(input)
        )

    def confirm_value(self, input: ControlInput, result_builder: ControlResultBuilder) -> None:
        act = ConfirmValueAct(
            self.id, self.state.value, self._render_value(self.state.value, input)
        )
        result_builder.add_act(act)
        self.state.last_initiative_act = act.name

    async def _wants_to_fix_invalid_value(self, input: ControlInput) -> bool:
        return self.state.value is not None and not await self._is_valid(input)

    async def fix_invalid_value(
        self, input: ControlInput, result_builder: ControlResultBuilder
    ) -> None:
        await self.validate_and_add_acts(input, result_builder, ElicitationAction.CHANGE)

    def _wants_to_elicit_value(self, input: ControlInput) -> bool:
        return self.state.value is None and self._evaluate_bool_prop(self.props.required, input)

    def elicit_value(self, input: ControlInput, result_builder: ControlResultBuilder) -> None:
        self.ask_elicitation_question(input, result_builder, ElicitationAction.SET)

    @staticmethod
    def _evaluate_bool_prop(
        prop: bool | Callable[[ControlInput], bool], input: ControlInput
    ) -> bool:
        return bool(prop(input)) if callable(prop) else bool(prop)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render_value(self, value: str | None, input: ControlInput) -> str | None:
        if value is None:
            return None
        return self.props.value_renderer(value, input)

    @property
    def elicitation_intent_name(self) -> str:
        return value_control_intent_name(self.slot_type)

    def _prompt_name(self, act: SystemAct) -> str | None:
        names = {
            ValueSetAct: "value_set",
            ValueChangedAct: "value_changed",
            InvalidValueAct: "invalid_value",
            RequestValueAct: "request_value",
            RequestChangedValueAct: "request_changed_value",
            ConfirmValueAct: "confirm_value",
            ValueConfirmedAct: "value_confirmed",
            ValueDisconfirmedAct: "value_disconfirmed",
        }
        return names.get(type(act))

    async def render_act(
        self, act: SystemAct, input: ControlInput, response_builder: ControlResponseBuilder
    ) -> None:
        name = self._prompt_name(act)
        if name is None:
            self.throw_unhandled_act_error(act)

        response_builder.add_prompt_fragment(
            evaluate_prompt_prop(getattr(self.props.prompts, name), act, input)
        )
        response_builder.add_reprompt_fragment(
            evaluate_prompt_prop(getattr(self.props.reprompts, name), act, input)
        )

        if isinstance(act, RequestValueAct | RequestChangedValueAct):
            response_builder.add_elicit_slot_directive(
                slot_name=self.slot_type,
                intent_name=self.elicitation_intent_name,
                slots=[self.slot_type, "feedback", "action", "target", "head", "tail"],
            )

    def stringify_state_for_diagram(self) -> str:
        text = self.state.value if self.state.value is not None else "<none>"
        if self.state.elicitation_action is not None:
            text += f"[eliciting, {self.state.elicitation_action.value}]"
        return text
