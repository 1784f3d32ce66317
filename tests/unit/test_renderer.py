"""Unit tests for the UX-Kit template renderer.

This module tests variable substitution, conditional and iteration
blocks, scoping inside iterations, partials and the structural error.
"""

import math

import pytest

from uxkit.errors import TemplateRenderError, UXKitError
from uxkit.renderer import Scope, TemplateEngine, render, render_with_partials


@pytest.fixture
def engine():
    return TemplateEngine()


class TestVariableSubstitution:
    """Test cases for plain variable references."""

    def test_static_template_is_unchanged(self, engine):
        """Test that a template without tags renders as-is."""
        template = "# Research notes\n\nNothing to substitute here.\n"
        assert engine.render(template, {"anything": 1}) == template

    def test_empty_template(self, engine):
        """Test that an empty template renders to an empty string."""
        assert engine.render("", {"name": "x"}) == ""

    def test_simple_variable(self, engine):
        """Test substituting a top-level variable."""
        assert engine.render("Hello {{name}}!", {"name": "Ada"}) == "Hello Ada!"

    def test_whitespace_inside_tag(self, engine):
        """Test that whitespace around the path is ignored."""
        assert engine.render("{{ name }}", {"name": "Ada"}) == "Ada"

    def test_dotted_path(self, engine):
        """Test resolving a nested path."""
        variables = {"study": {"owner": {"name": "Grace"}}}
        assert engine.render("{{study.owner.name}}", variables) == "Grace"

    def test_missing_variable_renders_empty(self, engine):
        """Test that an unknown path renders as an empty string."""
        assert engine.render("{{missing}}", {}) == ""
        assert engine.render("[{{a.b.c}}]", {"a": {"b": "scalar"}}) == "[]"

    def test_none_variables(self, engine):
        """Test rendering without any bindings."""
        assert engine.render("Hi {{name}}", None) == "Hi "

    def test_null_renders_empty(self, engine):
        """Test that None renders as an empty string."""
        assert engine.render("[{{value}}]", {"value": None}) == "[]"

    def test_booleans(self, engine):
        """Test boolean display."""
        assert engine.render("{{yes}}/{{no}}", {"yes": True, "no": False}) == "true/false"

    def test_numbers(self, engine):
        """Test number display."""
        variables = {"count": 3, "whole": 2.0, "ratio": 0.25, "zero": 0}
        assert engine.render("{{count}} {{whole}} {{ratio}} {{zero}}", variables) == "3 2 0.25 0"

    def test_special_floats(self, engine):
        """Test NaN and infinity display."""
        variables = {"nan": math.nan, "inf": math.inf, "ninf": -math.inf}
        assert engine.render("{{nan}} {{inf}} {{ninf}}", variables) == "NaN Infinity -Infinity"

    def test_sequence_renders_comma_joined(self, engine):
        """Test that a list renders comma-joined without spaces."""
        assert engine.render("{{tags}}", {"tags": ["a", "b", 3]}) == "a,b,3"

    def test_mapping_renders_as_json(self, engine):
        """Test that a nested tree renders as compact JSON."""
        assert engine.render("{{meta}}", {"meta": {"a": 1, "b": "x"}}) == '{"a":1,"b":"x"}'

    def test_values_are_not_reparsed(self, engine):
        """Test that substituted values are never interpreted as template syntax."""
        variables = {"payload": "{{secret}}", "secret": "leaked"}
        assert engine.render("{{payload}}", variables) == "{{secret}}"

    def test_unknown_helper_renders_empty(self, engine):
        """Test that unsupported block helpers are plain (missing) references."""
        assert engine.render("a{{#unless x}}b", {"x": False}) == "ab"

    def test_stray_else_renders_empty(self, engine):
        """Test that {{else}} outside of an if block is an ordinary reference."""
        assert engine.render("a{{else}}b", {}) == "ab"

    def test_malformed_control_tag_is_literal(self, engine):
        """Test that tags resembling control forms are kept verbatim."""
        assert engine.render("{{#ifx flag}}", {"flag": True}) == "{{#ifx flag}}"


class TestConditionalBlocks:
    """Test cases for {{#if}} blocks."""

    @pytest.mark.parametrize("value, expected", [
        (True, "T"),
        (False, "F"),
        (None, "F"),
        (0, "F"),
        (0.0, "F"),
        (math.nan, "F"),
        ("", "F"),
        ([], "F"),
        (1, "T"),
        ("no", "T"),
        (["x"], "T"),
        ({}, "T"),
    ])
    def test_truthiness(self, engine, value, expected):
        """Test the truthiness table of {{#if}}."""
        assert engine.render("{{#if c}}T{{else}}F{{/if}}", {"c": value}) == expected

    def test_absent_value_takes_else_branch(self, engine):
        """Test that a missing path is falsy."""
        assert engine.render("{{#if c}}T{{else}}F{{/if}}", {}) == "F"

    def test_without_else(self, engine):
        """Test a conditional without an else branch."""
        assert engine.render("a{{#if c}}b{{/if}}c", {"c": False}) == "ac"
        assert engine.render("a{{#if c}}b{{/if}}c", {"c": True}) == "abc"

    def test_nested_conditionals(self, engine):
        """Test that conditionals inside a chosen branch are resolved."""
        template = "{{#if a}}A{{#if b}}B{{else}}b{{/if}}{{else}}x{{#if b}}B{{/if}}{{/if}}"
        assert engine.render(template, {"a": True, "b": False}) == "Ab"
        assert engine.render(template, {"a": False, "b": True}) == "xB"

    def test_dotted_condition(self, engine):
        """Test a conditional on a nested path."""
        template = "{{#if user.admin}}admin{{else}}guest{{/if}}"
        assert engine.render(template, {"user": {"admin": True}}) == "admin"

    def test_unclosed_if_is_literal(self, engine):
        """Test that an opener without a closer renders verbatim."""
        assert engine.render("{{#if c}}T", {"c": True}) == "{{#if c}}T"

    def test_stray_closer_is_literal(self, engine):
        """Test that a closer without an opener renders verbatim."""
        assert engine.render("T{{/if}}", {}) == "T{{/if}}"


class TestIterationBlocks:
    """Test cases for {{#each}} blocks."""

    def test_each_over_scalars(self, engine):
        """Test iterating a list of strings."""
        assert engine.render("{{#each items}}{{this}}{{/each}}", {"items": ["a", "b", "c"]}) == "abc"

    def test_index(self, engine):
        """Test the zero-based index variable."""
        template = "{{#each items}}{{@index}}:{{this}} {{/each}}"
        assert engine.render(template, {"items": ["x", "y"]}) == "0:x 1:y "

    def test_each_over_records(self, engine):
        """Test iterating records with this.field and plain field references."""
        variables = {"people": [{"name": "Ada"}, {"name": "Grace"}]}
        assert engine.render("{{#each people}}{{this.name}},{{/each}}", variables) == "Ada,Grace,"
        assert engine.render("{{#each people}}{{name}};{{/each}}", variables) == "Ada;Grace;"

    def test_element_fields_shadow_outer_scope(self, engine):
        """Test that element keys win over outer keys and outer keys remain visible."""
        variables = {"label": "outer", "study": "S1", "rows": [{"label": "inner"}, {}]}
        template = "{{#each rows}}{{label}}@{{study}} {{/each}}"
        assert engine.render(template, variables) == "inner@S1 outer@S1 "

    @pytest.mark.parametrize("value", [None, "abc", 42, {"a": 1}, True])
    def test_non_sequence_renders_empty(self, engine, value):
        """Test that only lists are iterated."""
        assert engine.render("[{{#each items}}x{{/each}}]", {"items": value}) == "[]"

    def test_missing_sequence_renders_empty(self, engine):
        """Test iterating a missing path."""
        assert engine.render("[{{#each items}}x{{/each}}]", {}) == "[]"

    def test_tuple_is_a_sequence(self, engine):
        """Test that tuples iterate like lists."""
        assert engine.render("{{#each items}}{{this}}{{/each}}", {"items": ("a", "b")}) == "ab"

    def test_conditional_inside_each(self, engine):
        """Test a conditional on the current element."""
        template = "{{#each items}}{{#if this}}Y{{else}}N{{/if}}{{/each}}"
        assert engine.render(template, {"items": [True, False, True]}) == "YNY"

    def test_each_inside_conditional(self, engine):
        """Test an iteration inside a chosen branch."""
        template = "{{#if show}}{{#each items}}{{this}}{{/each}}{{else}}none{{/if}}"
        assert engine.render(template, {"show": True, "items": [1, 2]}) == "12"
        assert engine.render(template, {"show": False, "items": [1, 2]}) == "none"

    def test_nested_each_indexes(self, engine):
        """Test that @index refers to the innermost iteration."""
        template = "{{#each rows}}[{{#each this.cells}}{{@index}}{{this}}{{/each}}]{{/each}}"
        variables = {"rows": [{"cells": ["a", "b"]}, {"cells": ["c"]}]}
        assert engine.render(template, variables) == "[0a1b][0c]"

    def test_documented_scenario(self, engine):
        """Test the research questions example."""
        template = "# Research Questions for {{studyName}}\n\n{{#each questions}}- {{this}}\n{{/each}}"
        variables = {"studyName": "Onboarding", "questions": ["Q1", "Q2"]}
        assert engine.render(template, variables) == "# Research Questions for Onboarding\n\n- Q1\n- Q2\n"

    def test_this_outside_each_is_a_key(self, engine):
        """Test that {{this}} at the top level is an ordinary lookup."""
        assert engine.render("[{{this}}]", {}) == "[]"
        assert engine.render("[{{this}}]", {"this": "root"}) == "[root]"


class TestPartials:
    """Test cases for render_with_partials."""

    def test_partial_substitution(self, engine):
        """Test that partials are inserted before rendering."""
        result = engine.render_with_partials("{{> header}}Body", {"header": "# {{title}}\n"}, {"title": "T"})
        assert result == "# T\nBody"

    def test_partial_whitespace_tolerated(self, engine):
        """Test partial names with surrounding whitespace."""
        assert engine.render_with_partials("{{>  footer }}", {"footer": "end"}, {}) == "end"

    def test_missing_partial_left_verbatim(self, engine):
        """Test that unknown partials stay in the output."""
        assert engine.render_with_partials("a{{> missing}}b", {}, {}) == "a{{> missing}}b"

    def test_partials_are_not_recursive(self, engine):
        """Test that a partial referencing another partial is expanded only once."""
        partials = {"outer": "[{{> inner}}]", "inner": "x"}
        assert engine.render_with_partials("{{> outer}}", partials, {}) == "[{{> inner}}]"

    def test_partial_with_unbalanced_braces_fails(self, engine):
        """Test that the structural check applies after substitution."""
        with pytest.raises(TemplateRenderError):
            engine.render_with_partials("{{> broken}}", {"broken": "{{oops"}, {})


class TestRenderErrors:
    """Test cases for the structural rendering error."""

    @pytest.mark.parametrize("template", ["Hello {{name", "a }} b", "{{a}} {{b", "{{a}}}}"])
    def test_unbalanced_delimiters(self, engine, template):
        """Test that unbalanced delimiters raise TemplateRenderError."""
        with pytest.raises(TemplateRenderError) as exc_info:
            engine.render(template, {"name": "x"})
        assert str(exc_info.value) == "Template rendering failed"
        assert isinstance(exc_info.value, UXKitError)

    def test_unclosed_block_does_not_raise(self, engine):
        """Test that unpaired blocks are not a structural error."""
        assert engine.render("{{#each items}}x", {"items": [1]}) == "{{#each items}}x"


class TestScope:
    """Test cases for the scope stack."""

    def test_root_lookup(self):
        """Test lookups against the bottom frame."""
        scope = Scope({"a": {"b": 1}})
        assert scope.lookup("a.b") == 1
        assert scope.depth == 1

    def test_push_does_not_mutate(self):
        """Test that pushing a frame returns a new scope."""
        scope = Scope({"a": 1})
        inner = scope.push({"a": 2}, 0)
        assert inner.lookup("a") == 2
        assert scope.lookup("a") == 1
        assert inner.depth == 2

    def test_this_and_index(self):
        """Test iteration references."""
        inner = Scope({}).push({"x": 5}, 3)
        assert inner.lookup("this.x") == 5
        assert inner.lookup("@index") == 3


class TestModuleFunctions:
    """Test cases for the module-level conveniences."""

    def test_render(self):
        """Test the shared-engine render function."""
        assert render("{{a}}", {"a": 1}) == "1"

    def test_render_with_partials(self):
        """Test the shared-engine partial render function."""
        assert render_with_partials("{{> p}}", {"p": "{{a}}"}, {"a": "z"}) == "z"
