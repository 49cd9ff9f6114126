"""Tests for input handlers, decisions, containers and the control tree."""

from unittest.mock import patch

import pytest

from skillcontrols.controls import ValueControl
from skillcontrols.core import (
    ConfigurationError,
    ContainerControl,
    ControlResultBuilder,
    ControlTree,
    DispatchMisuseError,
    HandlerDecision,
    InitiativeDecision,
    InputHandler,
    RequestValueAct,
    UnhandledActError,
    ValueSetAct,
    evaluate_input_handlers,
)
from skillcontrols.models import simple_intent, value_control_intent, yes_intent
from skillcontrols.runtime import ControlResponseBuilder
from skillcontrols.testing import TestInput
from skillcontrols.utils import input_util

NAME = "CUSTOM.name"


def make_name_control(id: str, **kwargs) -> ValueControl:
    return ValueControl(id, slot_type=NAME, **kwargs)


def two_children(second_id: str) -> ContainerControl:
    return (
        ContainerControl("root")
        .add_child(make_name_control("a"))
        .add_child(make_name_control(second_id))
    )


class TestEvaluateInputHandlers:
    """Tests for handler evaluation and conflict logging."""

    @pytest.mark.asyncio
    async def test_no_match_returns_none(self, name_control):
        """Test that nothing matching yields no decision."""
        decision = await evaluate_input_handlers(
            name_control, simple_intent("Other"), name_control.handlers
        )
        assert decision is None

    @pytest.mark.asyncio
    async def test_builtin_wins_over_earlier_custom_handler(self, name_control):
        """Test built-in handlers take precedence regardless of order."""
        custom = InputHandler("AlwaysMine", lambda input: True, lambda input, rb: None)
        handlers = [custom, *name_control.handlers]
        input = value_control_intent(NAME, "Bob", action="builtin_set")

        with patch("skillcontrols.core.handlers.logger") as mock_logger:
            decision = await evaluate_input_handlers(name_control, input, handlers)

        assert decision.name == "SetWithValue"
        mock_logger.error.assert_called_once()
        args, kwargs = mock_logger.error.call_args
        assert args[0] == "handler_conflict"
        assert kwargs["handlers"] == ["SetWithValue (built-in)", "AlwaysMine"]
        assert kwargs["control_id"] == "name"

    @pytest.mark.asyncio
    async def test_custom_handlers_in_registration_order(self, name_control):
        """Test that among custom handlers the first registered wins."""
        first = InputHandler("First", lambda input: True, lambda input, rb: None)
        second = InputHandler("Second", lambda input: True, lambda input, rb: None)

        with patch("skillcontrols.core.handlers.logger") as mock_logger:
            decision = await evaluate_input_handlers(
                name_control, simple_intent("Any"), [first, second]
            )

        assert decision.name == "First"
        assert mock_logger.error.call_args.kwargs["handlers"] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_single_match_not_logged_as_conflict(self, name_control):
        """Test that a unique match does not log an error."""
        input = value_control_intent(NAME, "Bob", action="builtin_set")
        with patch("skillcontrols.core.handlers.logger") as mock_logger:
            await evaluate_input_handlers(name_control, input, name_control.handlers)
        mock_logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_async_predicates(self, name_control):
        """Test that predicates may be coroutines."""

        async def predicate(input):
            return input_util.is_intent(input, "Ping")

        handler = InputHandler("Ping", predicate, lambda input, rb: None)
        decision = await evaluate_input_handlers(name_control, simple_intent("Ping"), [handler])
        assert decision == HandlerDecision("name", "Ping")


class TestDecisions:
    """Tests for explicit decisions passed between the dispatch calls."""

    @pytest.mark.asyncio
    async def test_handle_without_decision_raises(self, name_control):
        """Test handle() refuses to run without a decision."""
        with pytest.raises(DispatchMisuseError):
            await name_control.handle(yes_intent(), ControlResultBuilder(), None)

    @pytest.mark.asyncio
    async def test_take_initiative_without_decision_raises(self, name_control):
        """Test take_initiative() refuses to run without a decision."""
        with pytest.raises(DispatchMisuseError):
            await name_control.take_initiative(yes_intent(), ControlResultBuilder(), None)

    @pytest.mark.asyncio
    async def test_decision_from_other_control_raises(self, name_control):
        """Test a decision is only valid for the control that made it."""
        stranger = ValueControl("stranger", slot_type=NAME)
        input = value_control_intent(NAME, "Bob", action="builtin_set")
        decision = await stranger.can_handle(input)
        with pytest.raises(DispatchMisuseError):
            await name_control.handle(input, ControlResultBuilder(), decision)

    @pytest.mark.asyncio
    async def test_initiative_decision_not_accepted_by_handle(self, name_control):
        """Test that decision kinds are not interchangeable."""
        decision = await name_control.can_take_initiative(yes_intent())
        assert isinstance(decision, InitiativeDecision)
        with pytest.raises(DispatchMisuseError):
            await name_control.handle(yes_intent(), ControlResultBuilder(), decision)

    @pytest.mark.asyncio
    async def test_can_handle_is_idempotent(self, name_control):
        """Test repeated can_handle calls agree and leave state alone."""
        input = value_control_intent(NAME, "Bob", action="builtin_set")
        before = name_control.get_state()
        first = await name_control.can_handle(input)
        second = await name_control.can_handle(input)
        assert first == second
        assert name_control.get_state() == before


class TestContainerControl:
    """Tests for ContainerControl dispatch."""

    @pytest.mark.asyncio
    async def test_first_matching_child_wins(self):
        """Test depth-first, registration-order dispatch."""
        root = two_children("b")
        input = value_control_intent(NAME, "Bob", action="builtin_set")

        decision = await root.can_handle(input)

        assert decision.path == ["root", "a"]
        assert decision.leaf.name == "SetWithValue"

    @pytest.mark.asyncio
    async def test_nested_path(self):
        """Test decisions wrap each level of the tree."""
        group = ContainerControl("group").add_child(make_name_control("a"))
        root = ContainerControl("root").add_child(group)
        input = value_control_intent(NAME, "Bob", action="builtin_set")
        decision = await root.can_handle(input)
        assert decision.path == ["root", "group", "a"]

        builder = ControlResultBuilder()
        await root.handle(input, builder, decision)
        assert builder.build().acts == (ValueSetAct("a", "Bob"),)

    @pytest.mark.asyncio
    async def test_container_custom_handler_used_when_no_child_matches(self):
        """Test the container's own handlers are a fallback."""
        calls = []
        root = ContainerControl(
            "root",
            custom_handlers=[
                InputHandler(
                    "Help",
                    lambda input: input_util.is_intent(input, "HelpIntent"),
                    lambda input, rb: calls.append("help"),
                )
            ],
        ).add_child(make_name_control("a"))

        decision = await root.can_handle(simple_intent("HelpIntent"))
        assert decision == HandlerDecision("root", "Help")

        await root.handle(simple_intent("HelpIntent"), ControlResultBuilder(), decision)
        assert calls == ["help"]

    @pytest.mark.asyncio
    async def test_initiative_first_child(self):
        """Test initiative goes to the first child that wants it."""
        root = two_children("b")
        root.child_by_id("a").set_value("Alice")

        decision = await root.can_take_initiative(yes_intent())
        builder = ControlResultBuilder()
        await root.take_initiative(yes_intent(), builder, decision)

        assert decision.path == ["root", "b"]
        assert builder.build().acts == (RequestValueAct("b"),)

    def test_cannot_add_self(self):
        """Test a container cannot contain itself."""
        root = ContainerControl("root")
        with pytest.raises(ConfigurationError):
            root.add_child(root)

    def test_child_by_id_unknown(self):
        """Test looking up a missing child."""
        with pytest.raises(DispatchMisuseError):
            ContainerControl("root").child_by_id("ghost")

    def test_empty_id_rejected(self):
        """Test controls need an id."""
        with pytest.raises(ConfigurationError):
            ContainerControl("")

    @pytest.mark.asyncio
    async def test_render_act_of_nested_child(self):
        """Test a container renders a descendant's act through that descendant."""
        group = ContainerControl("group").add_child(make_name_control("name"))
        root = ContainerControl("root").add_child(make_name_control("a")).add_child(group)
        builder = ControlResponseBuilder()

        await root.render_act(ValueSetAct("name", "Bob"), TestInput.yes(), builder)

        assert builder.get_prompt() == "OK, Bob."

    @pytest.mark.asyncio
    async def test_render_act_without_owner_raises(self):
        """Test an act no descendant produced is reported as unhandled."""
        root = two_children("b")
        with pytest.raises(UnhandledActError):
            await root.render_act(
                ValueSetAct("ghost", "Bob"), TestInput.yes(), ControlResponseBuilder()
            )


class TestControlTree:
    """Tests for the per-turn tree index."""

    @pytest.fixture
    def root(self) -> ContainerControl:
        group = ContainerControl("group").add_child(make_name_control("b"))
        return ContainerControl("root").add_child(make_name_control("a")).add_child(group)

    def test_duplicate_ids_rejected(self):
        """Test that control ids must be unique."""
        root = two_children("a")
        with pytest.raises(ConfigurationError):
            ControlTree(root)

    def test_lookup(self, root):
        """Test id and parent lookup."""
        tree = ControlTree(root)
        assert tree.find("b").id == "b"
        assert tree.find("ghost") is None
        assert tree.parent_of("b").id == "group"
        assert tree.parent_of("root") is None
        assert "group" in tree
        assert len(tree) == 4
        with pytest.raises(KeyError):
            tree.get("ghost")

    def test_iteration_is_depth_first(self, root):
        """Test iteration follows dispatch order."""
        assert [control.id for control in ControlTree(root)] == ["root", "a", "group", "b"]

    def test_dump_and_hydrate(self, root):
        """Test state survives a rebuild of the tree."""
        ControlTree(root).find("a").set_value("Alice")
        saved = ControlTree(root).dump()

        group = ContainerControl("group").add_child(make_name_control("b"))
        fresh = ContainerControl("root").add_child(make_name_control("a")).add_child(group)
        tree = ControlTree(fresh)
        tree.hydrate({**saved, "removed": {"value": "x"}})

        assert tree.find("a").state.value == "Alice"
        assert tree.find("b").state.value is None
        assert saved["a"]["value"] == "Alice"

    def test_record_initiative(self, root):
        """Test only the asking control remembers its question."""
        tree = ControlTree(root)
        tree.find("a").state.last_initiative_act = "ConfirmValueAct"

        tree.record_initiative(ControlResultBuilder([RequestValueAct("b")]).build())

        assert tree.find("a").state.last_initiative_act is None
        assert tree.find("b").state.last_initiative_act == "RequestValueAct"

    def test_record_initiative_without_initiative(self, root):
        """Test a turn with no question clears every pending one."""
        tree = ControlTree(root)
        tree.find("b").state.last_initiative_act = "RequestValueAct"
        tree.record_initiative(ControlResultBuilder().build())
        assert all(control.state.last_initiative_act is None for control in tree)

    def test_diagram(self, root):
        """Test the text diagram shows structure and values."""
        tree = ControlTree(root)
        tree.find("a").set_value("Alice")
        assert tree.diagram() == "root\n  a: Alice\n  group\n    b: <none>"
