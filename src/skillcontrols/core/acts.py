"""System acts: typed records of what the system did or wants next.

Content acts describe what happened during the turn (a value was set, a value
was invalid). Initiative acts describe what the system asks next (request a
value, confirm a value). A result holds any number of content acts and at
most one initiative act.

The set of acts is open: controls define new acts by subclassing
``ContentAct`` or ``InitiativeAct``.
"""

from __future__ import annotations

from typing import Any, ClassVar

from .errors import ActPayloadError


class SystemAct:
    """Base class for all system acts.

    Attributes:
        control_id: Id of the control that produced the act; that control
            renders it.
        payload: Act-specific data.
    """

    takes_initiative: ClassVar[bool] = False

    def __init__(self, control_id: str, payload: dict[str, Any] | None = None):
        self.control_id = control_id
        self.payload: dict[str, Any] = dict(payload or {})

    @property
    def name(self) -> str:
        return type(self).__name__

    def __eq__(self, other: object) -> bool:
        return (
            type(self) is type(other)
            and self.control_id == other.control_id  # type: ignore[attr-defined]
            and self.payload == other.payload  # type: ignore[attr-defined]
        )

    def __hash__(self) -> int:
        return hash((self.name, self.control_id))

    def __repr__(self) -> str:
        return f"{self.name}(control_id={self.control_id!r}, payload={self.payload!r})"


def _value_payload(value: Any, rendered_value: str | None) -> dict[str, Any]:
    if rendered_value is None:
        rendered_value = value
    return {"value": value, "rendered_value": rendered_value}


class ContentAct(SystemAct):
    """An act describing something that happened in this turn."""


class InitiativeAct(SystemAct):
    """An act that moves the dialog forward by asking the user something."""

    takes_initiative = True


# =============================================================================
# Content acts
# =============================================================================


class ValueSetAct(ContentAct):
    """A value was set. Payload: value, rendered_value."""

    def __init__(self, control_id: str, value: Any, rendered_value: str | None = None):
        super().__init__(control_id, _value_payload(value, rendered_value))


class ValueChangedAct(ContentAct):
    """A value replaced a previous value.

    Payload: value, rendered_value, previous_value, rendered_previous_value.
    """

    def __init__(
        self,
        control_id: str,
        value: Any,
        previous_value: Any,
        rendered_value: str | None = None,
        rendered_previous_value: str | None = None,
    ):
        if previous_value is None:
            raise ActPayloadError(
                f"ValueChangedAct for control '{control_id}' requires a previous value"
            )
        super().__init__(
            control_id,
            {
                "value": value,
                "rendered_value": rendered_value if rendered_value is not None else value,
                "previous_value": previous_value,
                "rendered_previous_value": (
                    rendered_previous_value
                    if rendered_previous_value is not None
                    else previous_value
                ),
            },
        )


class InvalidValueAct(ContentAct):
    """A value failed validation.

    Payload: value, rendered_value, reason_code, rendered_reason.
    """

    def __init__(
        self,
        control_id: str,
        value: Any,
        rendered_value: str | None = None,
        reason_code: str | None = None,
        rendered_reason: str | None = None,
    ):
        super().__init__(
            control_id,
            {
                "value": value,
                "rendered_value": rendered_value if rendered_value is not None else value,
                "reason_code": reason_code,
                "rendered_reason": rendered_reason,
            },
        )


class ValueConfirmedAct(ContentAct):
    """The user affirmed the value. Payload: value, rendered_value."""

    def __init__(self, control_id: str, value: Any, rendered_value: str | None = None):
        super().__init__(control_id, _value_payload(value, rendered_value))


class ValueDisconfirmedAct(ContentAct):
    """The user rejected the value. Payload: value, rendered_value."""

    def __init__(self, control_id: str, value: Any, rendered_value: str | None = None):
        super().__init__(control_id, _value_payload(value, rendered_value))


# =============================================================================
# Initiative acts
# =============================================================================


class RequestValueAct(InitiativeAct):
    """Ask the user for a value."""

    def __init__(self, control_id: str):
        super().__init__(control_id)


class RequestChangedValueAct(InitiativeAct):
    """Ask the user for a replacement value. Payload: current_value, rendered_value."""

    def __init__(self, control_id: str, current_value: Any, rendered_value: str | None = None):
        super().__init__(
            control_id,
            {
                "current_value": current_value,
                "rendered_value": rendered_value if rendered_value is not None else current_value,
            },
        )


class ConfirmValueAct(InitiativeAct):
    """Ask the user to confirm the value. Payload: value, rendered_value."""

    def __init__(self, control_id: str, value: Any, rendered_value: str | None = None):
        super().__init__(control_id, _value_payload(value, rendered_value))
