"""Tests for ControlHandler, ControlManager and the error policy."""

from unittest.mock import patch

import pytest
import structlog

from skillcontrols.controls import NumberControl
from skillcontrols.core import (
    ConfigurationError,
    ContainerControl,
    ControlResultBuilder,
    ControlTree,
    DispatchMisuseError,
    InputHandler,
    SessionBehavior,
    ValueSetAct,
)
from skillcontrols.models import (
    general_control_intent,
    simple_intent,
    value_control_intent,
    yes_intent,
)
from skillcontrols.runtime import (
    CanHandleThrowBehavior,
    ControlHandler,
    ControlRequest,
    ControlResponseBuilder,
)
from skillcontrols.utils import input_util

NUMBER = "AMAZON.NUMBER"
STATE_KEY = "__controlState"


def exploding_tree() -> ContainerControl:
    """A tree whose custom handler fails while handling BoomIntent."""

    def explode(input, result_builder):
        raise RuntimeError("boom")

    return ContainerControl(
        "root",
        custom_handlers=[
            InputHandler("Boom", lambda input: input_util.is_intent(input, "BoomIntent"), explode)
        ],
    ).add_child(NumberControl("count", interaction_model={"targets": ["count"]}))


def broken_tree() -> ContainerControl:
    raise RuntimeError("cannot build tree")


class TestInvoke:
    """Tests for a full turn through ControlHandler.invoke."""

    @pytest.mark.asyncio
    async def test_set_value_turn(self, tree_manager):
        """Test a handled turn renders prompts and persists state."""
        handler = ControlHandler(tree_manager)
        response = await handler.invoke(
            ControlRequest(
                input=value_control_intent(NUMBER, "3", action="builtin_set", target="count")
            )
        )

        assert response.prompt == "OK, 3. What number?"
        assert response.should_end_session is False
        assert response.session_attributes[STATE_KEY]["count"]["value"] == "3"
        assert response.session_attributes[STATE_KEY]["age"]["last_initiative_act"] == (
            "RequestValueAct"
        )
        assert response.directives[0]["slot_to_elicit"] == NUMBER

    @pytest.mark.asyncio
    async def test_state_carried_between_turns(self, tree_manager):
        """Test session attributes hydrate the next turn's tree."""
        handler = ControlHandler(tree_manager)
        first = await handler.invoke(
            ControlRequest(
                input=value_control_intent(NUMBER, "3", action="builtin_set", target="count")
            )
        )

        second = await handler.invoke(
            ControlRequest(
                input=value_control_intent(NUMBER, "42"),
                session_attributes=first.session_attributes,
            )
        )

        assert second.prompt == "OK, 42."
        assert second.should_end_session is True
        assert second.session_attributes[STATE_KEY]["count"]["value"] == "3"
        assert second.session_attributes[STATE_KEY]["age"]["value"] == "42"

    @pytest.mark.asyncio
    async def test_other_session_attributes_preserved(self, tree_manager):
        """Test attributes owned by the host survive the turn."""
        handler = ControlHandler(tree_manager)
        response = await handler.invoke(
            ControlRequest(
                input=value_control_intent(NUMBER, "3", action="builtin_set", target="count"),
                session_attributes={"visits": 2},
            )
        )
        assert response.session_attributes["visits"] == 2

    @pytest.mark.asyncio
    async def test_unhandled_turn(self, tree_manager):
        """Test no matching handler leaves the session open."""
        handler = ControlHandler(tree_manager)
        response = await handler.invoke(
            ControlRequest(input=yes_intent(), session_attributes={"keep": True})
        )
        assert response.prompt == "Unable to find a suitable request handler."
        assert response.should_end_session is False
        assert response.session_attributes == {"keep": True}


class TestTwoPhase:
    """Tests for calling can_handle and handle separately."""

    @pytest.mark.asyncio
    async def test_can_handle_is_repeatable(self, tree_manager):
        """Test can_handle can be asked twice with the same answer."""
        handler = ControlHandler(tree_manager)
        request = ControlRequest(
            input=general_control_intent(action="builtin_set", target="age")
        )
        first = await handler.can_handle(request)
        second = await handler.can_handle(request)

        assert first.handled and second.handled
        assert first.decision == second.decision
        assert first.decision.path == ["root", "age"]

        response = await handler.handle(second)
        assert response.prompt == "What number?"

    @pytest.mark.asyncio
    async def test_handle_without_acceptance_raises(self, tree_manager):
        """Test handle refuses a turn that can_handle rejected."""
        handler = ControlHandler(tree_manager)
        context = await handler.can_handle(ControlRequest(input=yes_intent()))
        assert not context.handled
        with pytest.raises(DispatchMisuseError):
            await handler.handle(context)

    @pytest.mark.asyncio
    async def test_turn_and_session_ids_bound_to_log_context(self, tree_manager):
        """Test each turn binds its ids for logging."""
        handler = ControlHandler(tree_manager)
        input = yes_intent().model_copy(update={"session_id": "session-1"})

        context = await handler.can_handle(ControlRequest(input=input))

        bound = structlog.contextvars.get_contextvars()
        assert bound["turn_id"] == context.turn_id
        assert bound["session_id"] == "session-1"

    @pytest.mark.asyncio
    async def test_turn_ids_are_fresh(self, tree_manager):
        """Test every turn gets its own id."""
        handler = ControlHandler(tree_manager)
        first = await handler.can_handle(ControlRequest(input=yes_intent()))
        second = await handler.can_handle(ControlRequest(input=yes_intent()))
        assert first.turn_id != second.turn_id


class TestCanHandleThrowBehavior:
    """Tests for exceptions raised while deciding."""

    @pytest.mark.asyncio
    async def test_rethrow(self, make_manager):
        """Test rethrow propagates the exception."""
        handler = ControlHandler(make_manager(broken_tree), can_handle_throw_behavior="rethrow")
        with pytest.raises(RuntimeError, match="cannot build tree"):
            await handler.invoke(ControlRequest(input=yes_intent()))

    @pytest.mark.asyncio
    async def test_return_false(self, make_manager):
        """Test return_false reports the turn as unhandled."""
        handler = ControlHandler(
            make_manager(broken_tree),
            can_handle_throw_behavior=CanHandleThrowBehavior.RETURN_FALSE,
        )
        context = await handler.can_handle(ControlRequest(input=yes_intent()))
        assert not context.handled

        response = await handler.invoke(ControlRequest(input=yes_intent()))
        assert response.prompt == "Unable to find a suitable request handler."

    @pytest.mark.asyncio
    async def test_custom_uses_error_hook(self, make_manager):
        """Test custom (the default) answers with the fallback response."""
        handler = ControlHandler(make_manager(broken_tree))
        assert handler.can_handle_throw_behavior == CanHandleThrowBehavior.CUSTOM

        context = await handler.can_handle(ControlRequest(input=yes_intent()))
        assert context.handled
        assert isinstance(context.error, RuntimeError)

        response = await handler.handle(context)
        assert response.prompt == "Sorry, something went wrong. Please try again later."
        assert response.should_end_session is True

    def test_behavior_from_settings(self, make_manager, settings):
        """Test the default behavior comes from configuration."""
        settings.can_handle_throw_behavior = "rethrow"
        handler = ControlHandler(make_manager(broken_tree), settings)
        assert handler.can_handle_throw_behavior == CanHandleThrowBehavior.RETHROW


class TestHandleErrors:
    """Tests for exceptions raised while handling."""

    @pytest.mark.asyncio
    async def test_handle_error_goes_to_hook(self, make_manager):
        """Test failures during handle use the fallback response."""
        handler = ControlHandler(make_manager(exploding_tree))
        response = await handler.invoke(
            ControlRequest(input=simple_intent("BoomIntent"), session_attributes={"a": 1})
        )
        assert response.prompt == "Sorry, something went wrong. Please try again later."
        assert response.should_end_session is True
        assert response.session_attributes == {"a": 1}

    @pytest.mark.asyncio
    async def test_handle_error_ignores_return_false(self, make_manager):
        """Test return_false does not apply once a control has accepted the turn."""
        handler = ControlHandler(
            make_manager(exploding_tree), can_handle_throw_behavior="return_false"
        )
        response = await handler.invoke(ControlRequest(input=simple_intent("BoomIntent")))
        assert response.prompt == "Sorry, something went wrong. Please try again later."

    @pytest.mark.asyncio
    async def test_hook_must_decide_session(self, make_manager):
        """Test an error hook that leaves the session undecided is a configuration error."""
        manager = make_manager(exploding_tree)

        async def undecided(input, error, response_builder):
            response_builder.add_prompt_fragment("Oops.")

        manager.handle_internal_error = undecided
        handler = ControlHandler(manager)

        with pytest.raises(ConfigurationError):
            await handler.invoke(ControlRequest(input=simple_intent("BoomIntent")))

    @pytest.mark.asyncio
    async def test_handle_error_logged(self, make_manager):
        """Test failures are logged with their type."""
        handler = ControlHandler(make_manager(exploding_tree))
        with patch("skillcontrols.runtime.handler.logger") as mock_logger:
            await handler.invoke(ControlRequest(input=simple_intent("BoomIntent")))
        events = [call.args[0] for call in mock_logger.error.call_args_list]
        assert "turn_failed" in events
        failed = next(c for c in mock_logger.error.call_args_list if c.args[0] == "turn_failed")
        assert failed.kwargs["error_type"] == "RuntimeError"


class TestManagerRender:
    """Tests for the default ControlManager.render."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "behavior,expected",
        [
            (SessionBehavior.OPEN, False),
            (SessionBehavior.END, True),
            (SessionBehavior.IDLE, None),
        ],
    )
    async def test_session_behavior_applied(self, tree_manager, behavior, expected):
        """Test each session behavior maps to should_end_session."""
        tree = ControlTree(tree_manager.create_control_tree({}, yes_intent()))
        result = ControlResultBuilder().with_session_behavior(behavior).build()
        builder = ControlResponseBuilder()

        await tree_manager.render(result, yes_intent(), builder, tree)

        assert builder.session_decided
        assert builder.should_end_session is expected

    @pytest.mark.asyncio
    async def test_explicit_session_decision_kept(self, tree_manager):
        """Test render leaves an already decided session alone."""
        tree = ControlTree(tree_manager.create_control_tree({}, yes_intent()))
        result = ControlResultBuilder([ValueSetAct("count", "3")]).build()
        builder = ControlResponseBuilder().with_should_end_session(None)

        await tree_manager.render(result, yes_intent(), builder, tree)

        assert builder.get_prompt() == "OK, 3."
        assert builder.should_end_session is None

    @pytest.mark.asyncio
    async def test_default_error_hook(self, tree_manager):
        """Test the default hook speaks the fallback and ends the session."""
        builder = ControlResponseBuilder()
        await tree_manager.handle_internal_error(yes_intent(), RuntimeError("x"), builder)
        assert builder.get_prompt() == tree_manager.settings.fallback_message
        assert builder.should_end_session is True
