"""Demo skill: setting up a game night.

Used by the ``skillcontrols chat`` command. The tree collects a player
count (confirmed), a date and a difficulty. ``parse_utterance`` stands in
for the platform's language understanding and maps a few fixed phrasings
onto control inputs.
"""

from __future__ import annotations

import re
from typing import Any

from .controls import DATE_SLOT_TYPE, NUMBER_SLOT_TYPE, DateControl, ListControl, NumberControl
from .core import ContainerControl, ContentAct, InputHandler, SystemAct
from .core.result import ControlResultBuilder
from .models.input import (
    Action,
    ControlInput,
    RequestKind,
    general_control_intent,
    launch_request,
    no_intent,
    value_control_intent,
    yes_intent,
)
from .runtime import ControlManager, ControlResponseBuilder

DIFFICULTY_SLOT_TYPE = "Difficulty"
DIFFICULTIES = ["easy", "medium", "hard"]

# Spoken target word -> (target slot id, slot type of its value)
TARGETS: dict[str, tuple[str, str]] = {
    "count": ("count", NUMBER_SLOT_TYPE),
    "players": ("count", NUMBER_SLOT_TYPE),
    "date": ("date", DATE_SLOT_TYPE),
    "difficulty": ("difficulty", DIFFICULTY_SLOT_TYPE),
}
ACTIONS = {"set": Action.SET.value, "change": Action.CHANGE.value}


class WelcomeAct(ContentAct):
    """Greets the user at the start of a session."""


class GameNightControl(ContainerControl):
    """Root of the demo tree. Greets on launch; children do the rest."""

    def __init__(self, id: str = "gameNight"):
        super().__init__(
            id,
            custom_handlers=[
                InputHandler("Launch", self.is_launch, self.handle_launch),
            ],
        )
        self.add_child(
            NumberControl(
                "playerCount",
                min_value=1,
                max_value=8,
                confirmation_required=True,
                interaction_model={"targets": ["count", "builtin_number"]},
                prompts={"request_value": "How many players?"},
                reprompts={"request_value": "How many players will there be?"},
            )
        ).add_child(
            DateControl(
                "gameDate",
                interaction_model={"targets": ["date", "builtin_date"]},
                prompts={"request_value": "What date is the game night?"},
            )
        ).add_child(
            ListControl(
                "difficulty",
                slot_type=DIFFICULTY_SLOT_TYPE,
                list_item_ids=DIFFICULTIES,
                interaction_model={"targets": ["difficulty", "builtin_choice"]},
            )
        )

    def is_launch(self, input: ControlInput) -> bool:
        return input.kind == RequestKind.LAUNCH

    def handle_launch(self, input: ControlInput, result_builder: ControlResultBuilder) -> None:
        result_builder.add_act(WelcomeAct(self.id))

    async def render_act(
        self, act: SystemAct, input: ControlInput, response_builder: ControlResponseBuilder
    ) -> None:
        if isinstance(act, WelcomeAct):
            response_builder.add_prompt_fragment("Let's set up game night.")
            return
        await super().render_act(act, input, response_builder)


class DemoManager(ControlManager):
    """ControlManager for the game night demo."""

    def create_control_tree(self, state: dict[str, Any], input: ControlInput) -> GameNightControl:
        return GameNightControl()


def _value_slot_type(word: str) -> str:
    if re.fullmatch(r"-?\d+", word):
        return NUMBER_SLOT_TYPE
    if re.fullmatch(r"\d{4}(-\d{2}){0,2}", word):
        return DATE_SLOT_TYPE
    return DIFFICULTY_SLOT_TYPE


def parse_utterance(text: str) -> ControlInput | None:
    """Map a typed utterance onto a control input.

    Understood forms: ``start``, ``yes``, ``no``, ``<set|change> <target>
    [value]`` and a bare ``<value>``. Returns None for anything else.
    """
    words = text.strip().lower().split()
    if not words:
        return None
    if words == ["start"]:
        return launch_request()
    if words[0] in ("yes", "yeah", "yep"):
        return yes_intent()
    if words[0] in ("no", "nope"):
        return no_intent()

    if words[0] in ACTIONS:
        action = ACTIONS[words[0]]
        rest = [w for w in words[1:] if w not in ("the", "to", "my")]
        if not rest or rest[0] not in TARGETS:
            return general_control_intent(action=action)
        target, slot_type = TARGETS[rest[0]]
        if len(rest) == 1:
            return general_control_intent(action=action, target=target)
        return value_control_intent(slot_type, rest[1], action=action, target=target)

    if len(words) == 1:
        return value_control_intent(_value_slot_type(words[0]), words[0])
    return None
