"""Error types raised by the control framework.

Handler conflicts are not errors: they are logged and resolved. Validation
failures are values (see ``core.validation``), never exceptions.
"""


class SkillControlsError(Exception):
    """Base class for all framework errors."""


class ConfigurationError(SkillControlsError):
    """The control tree or a control's props are wired incorrectly.

    Examples: duplicate control ids, an unsupported slot type, an error hook
    that does not decide whether the session continues.
    """


class DispatchMisuseError(SkillControlsError):
    """A dispatch method was called out of protocol.

    Raised when ``handle`` or ``take_initiative`` runs without a decision
    produced by the matching ``can_handle`` / ``can_take_initiative`` call, or
    when a result would hold more than one initiative act.
    """


class ActPayloadError(SkillControlsError):
    """A system act was built with a payload that breaks its contract.

    Example: a ValueChangedAct without a previous value.
    """


class UnhandledActError(SkillControlsError):
    """A control was asked to render an act it does not know."""

    def __init__(self, act_name: str, control_id: str):
        self.act_name = act_name
        self.control_id = control_id
        super().__init__(
            f"Control '{control_id}' does not know how to render act {act_name}. "
            "Implement render_act for this act type."
        )
