"""Response assembly for the rendering collaborator."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ElicitSlotDirective(BaseModel):
    """Ask the platform to capture the next utterance into a specific slot."""

    type: str = "Dialog.ElicitSlot"
    slot_to_elicit: str
    intent_name: str
    slots: list[str] = Field(default_factory=list)


class ControlResponse(BaseModel):
    """The rendered output of one turn."""

    prompt: str = ""
    reprompt: str = ""
    directives: list[dict[str, Any]] = Field(default_factory=list)
    should_end_session: bool | None = None
    session_attributes: dict[str, Any] = Field(default_factory=dict)


class ControlResponseBuilder:
    """Append-only builder for prompt fragments, reprompts and directives."""

    def __init__(self) -> None:
        self.prompt_fragments: list[str] = []
        self.reprompt_fragments: list[str] = []
        self.directives: list[dict[str, Any]] = []
        self._should_end_session: bool | None = None
        self._session_decided = False

    def add_prompt_fragment(self, fragment: str) -> "ControlResponseBuilder":
        if fragment:
            self.prompt_fragments.append(fragment)
        return self

    def add_reprompt_fragment(self, fragment: str) -> "ControlResponseBuilder":
        if fragment:
            self.reprompt_fragments.append(fragment)
        return self

    def add_directive(self, directive: BaseModel | dict[str, Any]) -> "ControlResponseBuilder":
        if isinstance(directive, BaseModel):
            directive = directive.model_dump()
        self.directives.append(directive)
        return self

    def add_elicit_slot_directive(
        self, slot_name: str, intent_name: str, slots: list[str] | None = None
    ) -> "ControlResponseBuilder":
        return self.add_directive(
            ElicitSlotDirective(
                slot_to_elicit=slot_name, intent_name=intent_name, slots=slots or []
            )
        )

    def with_should_end_session(self, value: bool | None) -> "ControlResponseBuilder":
        """Decide whether the session continues. None leaves it idle."""
        self._should_end_session = value
        self._session_decided = True
        return self

    @property
    def session_decided(self) -> bool:
        return self._session_decided

    @property
    def should_end_session(self) -> bool | None:
        return self._should_end_session

    def get_prompt(self) -> str:
        return " ".join(self.prompt_fragments)

    def get_reprompt(self) -> str:
        return " ".join(self.reprompt_fragments)

    def build(self, session_attributes: dict[str, Any] | None = None) -> ControlResponse:
        return ControlResponse(
            prompt=self.get_prompt(),
            reprompt=self.get_reprompt(),
            directives=list(self.directives),
            should_end_session=self._should_end_session,
            session_attributes=dict(session_attributes or {}),
        )
