"""Turn result accumulation."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .acts import SystemAct
from .errors import DispatchMisuseError


class SessionBehavior(str, Enum):
    """What happens to the session after the response is delivered."""

    OPEN = "open"  # Keep listening for the user's answer
    END = "end"  # Close the session
    IDLE = "idle"  # Keep the session but stop listening


class ControlResult(BaseModel):
    """The finalized, ordered acts of one turn plus the session decision."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    acts: tuple[SystemAct, ...] = ()
    session_behavior: SessionBehavior = SessionBehavior.END

    def has_initiative_act(self) -> bool:
        return any(act.takes_initiative for act in self.acts)

    @property
    def initiative_act(self) -> SystemAct | None:
        return next((act for act in self.acts if act.takes_initiative), None)

    def __str__(self) -> str:
        acts = ", ".join(f"{act.name}[{act.control_id}]" for act in self.acts)
        return f"ControlResult(acts=[{acts}], session_behavior={self.session_behavior.value})"


class ControlResultBuilder:
    """Accumulates the acts produced during one turn.

    Acts are kept in the order they are added. Content acts must precede the
    initiative act, and only one initiative act is allowed.
    """

    def __init__(self, acts: list[SystemAct] | None = None):
        self.acts: list[SystemAct] = []
        self._session_behavior: SessionBehavior | None = None
        for act in acts or []:
            self.add_act(act)

    def add_act(self, act: SystemAct) -> "ControlResultBuilder":
        """Append an act.

        Raises:
            DispatchMisuseError: If an initiative act is already present.
        """
        if self.has_initiative_act():
            existing = next(a for a in self.acts if a.takes_initiative)
            raise DispatchMisuseError(
                f"Cannot add {act.name} from '{act.control_id}': the result already "
                f"ends with initiative act {existing.name} from '{existing.control_id}'"
            )
        self.acts.append(act)
        return self

    def has_initiative_act(self) -> bool:
        """Whether an initiative act has been added."""
        return any(act.takes_initiative for act in self.acts)

    def with_session_behavior(self, behavior: SessionBehavior) -> "ControlResultBuilder":
        """Override the default session decision."""
        self._session_behavior = behavior
        return self

    def end_session(self) -> "ControlResultBuilder":
        return self.with_session_behavior(SessionBehavior.END)

    @property
    def session_behavior(self) -> SessionBehavior:
        """The explicit decision, or open iff an initiative act exists."""
        if self._session_behavior is not None:
            return self._session_behavior
        return SessionBehavior.OPEN if self.has_initiative_act() else SessionBehavior.END

    def build(self) -> ControlResult:
        return ControlResult(acts=tuple(self.acts), session_behavior=self.session_behavior)

    def __repr__(self) -> str:
        return f"ControlResultBuilder(acts={self.acts!r})"
