"""Value model for template bindings.

Bindings are plain Python data: ``str``, ``int``/``float``, ``bool``,
``None``, mappings and lists/tuples. :func:`classify` maps a value onto the
small set of kinds the template language understands, and the truthiness
and display rules are defined over those kinds rather than over Python's
own truthiness.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, List


class _Absent:
    """Marker for a path that does not resolve to anything."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


class ValueKind(Enum):
    """Kinds of values a binding tree may hold."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    SEQUENCE = "sequence"
    TREE = "tree"


def classify(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` of ``value``."""
    if value is None or value is ABSENT:
        return ValueKind.NULL
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.TREE
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.STRING


def is_truthy(value: Any) -> bool:
    """Truthiness as used by ``{{#if}}``.

    ``False``, ``None``/absent, ``0``, ``NaN``, ``""`` and empty sequences
    are falsy. Everything else is truthy, including empty mappings.
    """
    kind = classify(value)
    if kind is ValueKind.NULL:
        return False
    if kind is ValueKind.BOOLEAN:
        return value
    if kind is ValueKind.NUMBER:
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if kind is ValueKind.STRING:
        return str(value) != ""
    if kind is ValueKind.SEQUENCE:
        return len(value) > 0
    return True


def _format_number(value: Any) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
    return str(value)


def to_display(value: Any) -> str:
    """Render a bound value as it appears in template output."""
    kind = classify(value)
    if kind is ValueKind.NULL:
        return ""
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return _format_number(value)
    if kind is ValueKind.SEQUENCE:
        return ",".join(to_display(item) for item in value)
    if kind is ValueKind.TREE:
        return json.dumps(value, default=str, separators=(",", ":"))
    return str(value)


def resolve_path(value: Any, segments: Iterable[str]) -> Any:
    """Walk ``segments`` through nested mappings starting at ``value``.

    Returns :data:`ABSENT` as soon as a segment is missing or the current
    value is not a mapping.
    """
    current = value
    for segment in segments:
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        else:
            return ABSENT
    return current


def split_path(path: str) -> List[str]:
    """Split a dotted variable path into its segments."""
    return [segment.strip() for segment in path.strip().split(".")]


def is_defined(value: Any) -> bool:
    """True when ``value`` is neither absent nor ``None``."""
    return value is not ABSENT and value is not None
