"""Utility functions."""

from .helpers import deep_merge, join_with_conjunction

__all__ = ["deep_merge", "join_with_conjunction"]
