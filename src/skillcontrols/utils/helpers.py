"""Helper utility functions."""

from collections.abc import Sequence
from typing import Any


def deep_merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge overrides onto defaults, recursing into nested dicts.

    Non-dict values (including lists) in overrides replace the default
    outright. Keys whose override is None keep the default.
    """
    merged = dict(defaults)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def join_with_conjunction(items: Sequence[str], conjunction: str = "or") -> str:
    """Join items as natural language: 'a', 'a or b', 'a, b or c'."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} {conjunction} {items[-1]}"
