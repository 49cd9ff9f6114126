"""Per-turn index over a control tree.

The root control owns the tree through ``children``. Parent relationships are
not stored on the controls; ``ControlTree`` records them as id lookups when it
indexes the tree at the start of each turn.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .control import Control
from .errors import ConfigurationError
from .result import ControlResult


class ControlTree:
    """Id index, parent lookup and state persistence for one control tree.

    Raises:
        ConfigurationError: If two controls share an id.
    """

    def __init__(self, root: Control):
        self.root = root
        self._controls: dict[str, Control] = {}
        self._parents: dict[str, str | None] = {}
        self._index(root, None)

    def _index(self, control: Control, parent_id: str | None) -> None:
        if control.id in self._controls:
            raise ConfigurationError(
                f"Duplicate control id '{control.id}'. Control ids must be unique within a tree."
            )
        self._controls[control.id] = control
        self._parents[control.id] = parent_id
        for child in control.children:
            self._index(child, control.id)

    def find(self, control_id: str) -> Control | None:
        return self._controls.get(control_id)

    def get(self, control_id: str) -> Control:
        """Like ``find`` but raises KeyError for unknown ids."""
        try:
            return self._controls[control_id]
        except KeyError:
            raise KeyError(f"No control with id '{control_id}' in tree '{self.root.id}'") from None

    def parent_of(self, control_id: str) -> Control | None:
        parent_id = self._parents.get(control_id)
        return self._controls[parent_id] if parent_id is not None else None

    def __iter__(self) -> Iterator[Control]:
        """Depth-first, registration order (the same order dispatch uses)."""
        return iter(self._controls.values())

    def __len__(self) -> int:
        return len(self._controls)

    def __contains__(self, control_id: str) -> bool:
        return control_id in self._controls

    def hydrate(self, state_map: dict[str, Any] | None) -> None:
        """Restore persisted state. Controls without saved state keep their defaults."""
        for control_id, data in (state_map or {}).items():
            control = self._controls.get(control_id)
            if control is not None:
                control.set_state(data)

    def dump(self) -> dict[str, Any]:
        """Serialize the state of every control, keyed by control id."""
        return {control.id: control.get_state() for control in self}

    def record_initiative(self, result: ControlResult) -> None:
        """Remember which control asked the question that ends this turn.

        Only the owner of the turn's initiative act keeps its name; every other
        control forgets any earlier initiative, so a bare yes/no next turn can
        only answer the question that was actually asked last.
        """
        act = result.initiative_act
        for control in self:
            if act is not None and control.id == act.control_id:
                control.state.last_initiative_act = act.name
            else:
                control.state.last_initiative_act = None

    def diagram(self) -> str:
        """Indented text rendering of the tree and each control's state."""
        lines: list[str] = []

        def walk(control: Control, depth: int) -> None:
            state = control.stringify_state_for_diagram()
            suffix = f": {state}" if state else ""
            lines.append(f"{'  ' * depth}{control.id}{suffix}")
            for child in control.children:
                walk(child, depth + 1)

        walk(self.root, 0)
        return "\n".join(lines)
