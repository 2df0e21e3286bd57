"""Runtime type classification used by the argument resolver."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def is_function(value: Any) -> bool:
    """Return True if value can be called."""
    return callable(value)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_object(value: Any) -> bool:
    """Return True if value is a key/value mapping."""
    return isinstance(value, Mapping)


def is_defined(value: Any) -> bool:
    return value is not None


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a number here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))
