"""Pytest configuration and shared fixtures."""

from typing import Any

import pytest

from skillcontrols.controls import NumberControl, ValueControl
from skillcontrols.core import ContainerControl, Control
from skillcontrols.models import ControlInput, Settings, get_prompt_catalog
from skillcontrols.runtime import ControlManager

NAME_SLOT_TYPE = "CUSTOM.name"


@pytest.fixture(autouse=True)
def fresh_prompt_catalog():
    """Reload the prompt catalog around every test."""
    get_prompt_catalog.cache_clear()
    yield
    get_prompt_catalog.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings built from defaults only."""
    return Settings(_env_file=None)


@pytest.fixture
def name_control() -> ValueControl:
    """A required value control for names."""
    return ValueControl(
        "name",
        slot_type=NAME_SLOT_TYPE,
        interaction_model={"targets": ["name", "builtin_it"]},
    )


@pytest.fixture
def count_control() -> NumberControl:
    """A bounded number control."""
    return NumberControl(
        "count",
        min_value=1,
        max_value=8,
        interaction_model={"targets": ["count"]},
    )


class TreeManager(ControlManager):
    """Manager that builds its tree from a factory function."""

    def __init__(self, factory, settings: Settings | None = None):
        super().__init__(settings)
        self.factory = factory

    def create_control_tree(self, state: dict[str, Any], input: ControlInput) -> Control:
        return self.factory()


def count_and_age_tree() -> ContainerControl:
    """Root with a required count and a required age."""
    return (
        ContainerControl("root")
        .add_child(NumberControl("count", interaction_model={"targets": ["count"]}))
        .add_child(NumberControl("age", interaction_model={"targets": ["age"]}))
    )


@pytest.fixture
def tree_manager(settings):
    """Manager for a count/age tree."""
    return TreeManager(count_and_age_tree, settings)


@pytest.fixture
def make_manager(settings):
    """Build a TreeManager around any tree factory."""

    def make(factory) -> TreeManager:
        return TreeManager(factory, settings)

    return make
