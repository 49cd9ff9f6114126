"""ControlManager - the skill-specific collaborator of a ControlHandler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..core.control import Control
from ..core.result import ControlResult, SessionBehavior
from ..core.tree import ControlTree
from ..models.config import Settings, get_settings
from ..models.input import ControlInput
from .response import ControlResponseBuilder

SESSION_BEHAVIOR_TO_SHOULD_END = {
    SessionBehavior.OPEN: False,
    SessionBehavior.END: True,
    SessionBehavior.IDLE: None,
}


class ControlManager(ABC):
    """Builds the control tree each turn and turns results into responses.

    Subclasses must implement ``create_control_tree``. ``render`` and
    ``handle_internal_error`` have working defaults and may be overridden.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @abstractmethod
    def create_control_tree(self, state: dict[str, Any], input: ControlInput) -> Control:
        """Build a fresh control tree for this turn.

        The tree must have the same shape every turn so persisted state can
        be matched to controls by id.

        Args:
            state: Persisted control state keyed by control id. Usually only
                needed when the tree's shape depends on earlier answers.
            input: The current input.
        """

    async def render(
        self,
        result: ControlResult,
        input: ControlInput,
        response_builder: ControlResponseBuilder,
        tree: ControlTree,
    ) -> None:
        """Render every act through the control that produced it, in order."""
        for act in result.acts:
            control = tree.get(act.control_id)
            await control.render_act(act, input, response_builder)

        if not response_builder.session_decided:
            response_builder.with_should_end_session(
                SESSION_BEHAVIOR_TO_SHOULD_END[result.session_behavior]
            )

    async def handle_internal_error(
        self,
        input: ControlInput,
        error: Exception,
        response_builder: ControlResponseBuilder,
    ) -> None:
        """Produce the response for a turn that failed with an exception.

        Overrides must decide the session, via
        ``response_builder.with_should_end_session``.
        """
        response_builder.add_prompt_fragment(self.settings.fallback_message)
        response_builder.with_should_end_session(True)
