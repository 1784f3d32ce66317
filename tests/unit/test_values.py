"""Unit tests for binding value classification and display."""

import math

import pytest

from uxkit.values import (
    ABSENT,
    ValueKind,
    classify,
    is_defined,
    is_truthy,
    resolve_path,
    split_path,
    to_display,
)


class TestClassify:
    """Test cases for classify."""

    @pytest.mark.parametrize("value, kind", [
        ("text", ValueKind.STRING),
        (1, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        (True, ValueKind.BOOLEAN),
        (None, ValueKind.NULL),
        (ABSENT, ValueKind.NULL),
        ([1], ValueKind.SEQUENCE),
        ((1,), ValueKind.SEQUENCE),
        ({"a": 1}, ValueKind.TREE),
    ])
    def test_kinds(self, value, kind):
        """Test the kind of each supported value."""
        assert classify(value) is kind


class TestTruthiness:
    """Test cases for is_truthy."""

    @pytest.mark.parametrize("value", [False, None, ABSENT, 0, 0.0, math.nan, "", [], ()])
    def test_falsy(self, value):
        """Test falsy values."""
        assert not is_truthy(value)

    @pytest.mark.parametrize("value", [True, 1, -0.5, "0", "false", [0], {}, {"a": 1}])
    def test_truthy(self, value):
        """Test truthy values, including empty mappings and the string "0"."""
        assert is_truthy(value)


class TestDisplay:
    """Test cases for to_display."""

    @pytest.mark.parametrize("value, expected", [
        (None, ""),
        (ABSENT, ""),
        (True, "true"),
        (False, "false"),
        (7, "7"),
        (7.0, "7"),
        (-3.0, "-3"),
        (0.1, "0.1"),
        (math.inf, "Infinity"),
        (["a", None, 2], "a,,2"),
        ({"k": [1, 2]}, '{"k":[1,2]}'),
        ("plain", "plain"),
    ])
    def test_display(self, value, expected):
        """Test the display form of each kind."""
        assert to_display(value) == expected


class TestPaths:
    """Test cases for path helpers."""

    def test_split_path(self):
        """Test splitting dotted paths."""
        assert split_path(" a.b.c ") == ["a", "b", "c"]

    def test_resolve_path(self):
        """Test walking nested mappings."""
        tree = {"a": {"b": {"c": 0}}}
        assert resolve_path(tree, ["a", "b", "c"]) == 0
        assert resolve_path(tree, ["a", "x"]) is ABSENT
        assert resolve_path({"a": "str"}, ["a", "b"]) is ABSENT

    def test_is_defined(self):
        """Test that only absent and None are undefined."""
        assert is_defined(0)
        assert is_defined("")
        assert not is_defined(None)
        assert not is_defined(ABSENT)
