"""ControlHandler - runs one turn through a control tree.

A turn has two phases. First the root is asked ``can_handle``; the decision
is carried in a ``TurnContext``. Then ``handle`` runs that decision, gives the
tree a chance to take initiative if no question has been asked yet, renders
the acts and serializes the state for the next turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from ..core.errors import ConfigurationError, DispatchMisuseError
from ..core.handlers import HandlerDecision, maybe_await
from ..core.result import ControlResultBuilder
from ..core.tree import ControlTree
from ..infrastructure.correlation import end_turn, start_turn
from ..infrastructure.logging_config import get_logger
from ..models.config import CanHandleThrowBehavior, Settings, get_settings
from ..models.input import ControlInput
from .manager import ControlManager
from .response import ControlResponse, ControlResponseBuilder

logger = get_logger(__name__)


class ControlRequest(BaseModel):
    """One turn as delivered by the host: the input plus session attributes."""

    input: ControlInput
    session_attributes: dict[str, Any] = Field(default_factory=dict)


@dataclass
class TurnContext:
    """Everything ``handle`` needs from ``can_handle``.

    Attributes:
        request: The request being processed.
        turn_id: Id bound to the log context for this turn.
        tree: The indexed, hydrated control tree (None if building it failed).
        decision: The root's handler decision, if any control handles the input.
        error: An exception raised by ``can_handle`` that the error hook
            will answer.
    """

    request: ControlRequest
    turn_id: str
    tree: ControlTree | None = None
    decision: HandlerDecision | None = None
    error: Exception | None = None

    @property
    def handled(self) -> bool:
        return self.decision is not None or self.error is not None


class ControlHandler:
    """Root orchestration for a ControlManager.

    Example:
        handler = ControlHandler(MyManager())
        response = await handler.invoke(ControlRequest(input=input))
    """

    def __init__(
        self,
        manager: ControlManager,
        settings: Settings | None = None,
        can_handle_throw_behavior: CanHandleThrowBehavior | str | None = None,
    ):
        self.manager = manager
        self.settings = settings or manager.settings or get_settings()
        self.can_handle_throw_behavior = CanHandleThrowBehavior(
            can_handle_throw_behavior or self.settings.can_handle_throw_behavior
        )

    @property
    def state_key(self) -> str:
        return self.settings.state_attribute_key

    async def can_handle(self, request: ControlRequest) -> TurnContext:
        """Build and hydrate the tree and ask the root whether it handles the input.

        Raises:
            Exception: Whatever ``can_handle`` raised, when the throw behavior
                is ``rethrow``.
        """
        turn_id = start_turn(request.input.session_id)
        context = TurnContext(request=request, turn_id=turn_id)
        state = request.session_attributes.get(self.state_key) or {}
        try:
            root = self.manager.create_control_tree(state, request.input)
            context.tree = ControlTree(root)
            context.tree.hydrate(state)
            context.decision = await root.can_handle(request.input)
        except Exception as error:
            logger.error(
                "can_handle_failed",
                error=str(error),
                error_type=type(error).__name__,
                behavior=self.can_handle_throw_behavior.value,
            )
            if self.can_handle_throw_behavior == CanHandleThrowBehavior.RETHROW:
                raise
            context.decision = None
            if self.can_handle_throw_behavior == CanHandleThrowBehavior.CUSTOM:
                context.error = error
            return context

        if context.decision is None:
            logger.info("turn_not_handled", intent=request.input.intent_name)
        else:
            logger.info(
                "turn_handled",
                intent=request.input.intent_name,
                path=context.decision.path,
                handler=context.decision.leaf.name,
            )
        return context

    async def handle(self, context: TurnContext) -> ControlResponse:
        """Run the turn decided by ``can_handle`` and build the response.

        Exceptions raised here always go to the manager's error hook.
        """
        if context.error is not None:
            return await self._handle_internal_error(context, context.error)
        if context.decision is None or context.tree is None:
            raise DispatchMisuseError(
                "ControlHandler.handle() called for a turn that can_handle() did not accept"
            )

        input = context.request.input
        tree = context.tree
        try:
            result_builder = ControlResultBuilder()
            await tree.root.handle(input, result_builder, context.decision)

            if not result_builder.has_initiative_act():
                initiative = await tree.root.can_take_initiative(input)
                if initiative is not None:
                    logger.debug("initiative", path=initiative.path, name=initiative.leaf.name)
                    await tree.root.take_initiative(input, result_builder, initiative)

            result = result_builder.build()
            tree.record_initiative(result)
            logger.info("turn_result", result=str(result))

            response_builder = ControlResponseBuilder()
            await self.manager.render(result, input, response_builder, tree)
        except Exception as error:
            return await self._handle_internal_error(context, error)

        attributes = {**context.request.session_attributes, self.state_key: tree.dump()}
        return response_builder.build(attributes)

    async def invoke(self, request: ControlRequest) -> ControlResponse:
        """Run a whole turn: ``can_handle`` then ``handle``."""
        try:
            context = await self.can_handle(request)
            if not context.handled:
                return self._unhandled_response(request)
            return await self.handle(context)
        finally:
            end_turn()

    def _unhandled_response(self, request: ControlRequest) -> ControlResponse:
        return ControlResponse(
            prompt=self.settings.unhandled_message,
            should_end_session=False,
            session_attributes=dict(request.session_attributes),
        )

    async def _handle_internal_error(
        self, context: TurnContext, error: Exception
    ) -> ControlResponse:
        logger.error(
            "turn_failed",
            error=str(error),
            error_type=type(error).__name__,
            exc_info=error,
        )
        response_builder = ControlResponseBuilder()
        await maybe_await(
            self.manager.handle_internal_error(context.request.input, error, response_builder)
        )
        if not response_builder.session_decided:
            raise ConfigurationError(
                f"{type(self.manager).__name__}.handle_internal_error() must decide whether "
                "the session ends (call with_should_end_session)"
            ) from error
        # State is not advanced by a failed turn.
        return response_builder.build(context.request.session_attributes)
