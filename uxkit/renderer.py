"""Template rendering for UX-Kit research artifacts.

The engine understands a small Handlebars-like language::

    {{name}}  {{study.name}}          variable reference (dotted path)
    {{#if path}} .. {{else}} .. {{/if}}
    {{#each path}} .. {{this}} {{@index}} .. {{/each}}
    {{> partial}}                     partial inclusion (render_with_partials)

Rendering is a pure function of the template text and the bindings. Missing
variables render as an empty string; the only fatal condition is an
unbalanced number of ``{{`` and ``}}`` delimiters, reported as
:class:`~uxkit.errors.TemplateRenderError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

from .errors import TemplateRenderError
from .grammar import (
    EachBlock,
    IfBlock,
    Literal,
    Node,
    Variable,
    has_unclosed_braces,
    parse,
    substitute_partials,
)
from .values import (
    ABSENT,
    ValueKind,
    classify,
    is_truthy,
    resolve_path,
    split_path,
    to_display,
)

logger = logging.getLogger("uxkit.renderer")

TemplateVariables = Mapping[str, Any]
TemplatePartials = Mapping[str, str]


@dataclass(frozen=True, slots=True)
class _Frame:
    value: Any
    index: Optional[int] = None


class Scope:
    """Stack of binding frames consulted from the innermost outwards.

    The bottom frame holds the caller's variables; every ``{{#each}}``
    iteration pushes a frame with the current element and its index.
    """

    __slots__ = ("_frames",)

    def __init__(self, variables: Any = None, _frames: Tuple[_Frame, ...] = ()):
        self._frames = _frames or (_Frame(variables if variables is not None else {}),)

    @property
    def depth(self) -> int:
        return len(self._frames)

    def push(self, value: Any, index: int) -> "Scope":
        return Scope(_frames=self._frames + (_Frame(value, index),))

    def lookup(self, path: str) -> Any:
        """Resolve a reference such as ``name``, ``a.b``, ``this.x`` or ``@index``."""
        segments = split_path(path)
        head = segments[0]
        innermost = self._frames[-1]

        if self.depth > 1:
            if head == "this":
                return resolve_path(innermost.value, segments[1:])
            if head == "@index" and len(segments) == 1:
                return innermost.index

        for frame in reversed(self._frames):
            if isinstance(frame.value, Mapping) and head in frame.value:
                return resolve_path(frame.value[head], segments[1:])
        return ABSENT


class TemplateEngine:
    """Render templates against a binding tree."""

    def render(self, template: str, variables: Optional[TemplateVariables] = None) -> str:
        """Render ``template`` with ``variables``.

        Raises :class:`TemplateRenderError` when the template has an
        unmatched ``{{`` or ``}}``.
        """
        return self._render_source(template, variables)

    def render_with_partials(
        self,
        template: str,
        partials: Optional[TemplatePartials],
        variables: Optional[TemplateVariables] = None,
    ) -> str:
        """Substitute ``{{> name}}`` partials, then render as :meth:`render`."""
        expanded = substitute_partials(template, dict(partials or {}))
        return self._render_source(expanded, variables)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _render_source(self, template: str, variables: Optional[TemplateVariables]) -> str:
        if not template:
            return ""
        if has_unclosed_braces(template):
            logger.debug("Refusing to render template with unbalanced delimiters")
            raise TemplateRenderError(reason="unbalanced template delimiters")

        try:
            nodes = parse(template)
            output: List[str] = []
            self._render_nodes(nodes, Scope(variables), output)
            return "".join(output)
        except TemplateRenderError:
            raise
        except Exception as e:
            logger.debug(f"Template rendering failed: {e}")
            raise TemplateRenderError(reason=str(e)) from e

    def _render_nodes(self, nodes: List[Node], scope: Scope, output: List[str]) -> None:
        for node in nodes:
            if isinstance(node, Literal):
                output.append(node.text)
            elif isinstance(node, Variable):
                output.append(to_display(scope.lookup(node.path)))
            elif isinstance(node, IfBlock):
                branch = node.then_nodes if is_truthy(scope.lookup(node.path)) else node.else_nodes
                self._render_nodes(branch, scope, output)
            elif isinstance(node, EachBlock):
                items = scope.lookup(node.path)
                if classify(items) is not ValueKind.SEQUENCE:
                    continue
                for index, item in enumerate(items):
                    self._render_nodes(node.body, scope.push(item, index), output)


_default_engine = TemplateEngine()


def render(template: str, variables: Optional[TemplateVariables] = None) -> str:
    """Render with a shared :class:`TemplateEngine`."""
    return _default_engine.render(template, variables)


def render_with_partials(
    template: str,
    partials: Optional[TemplatePartials],
    variables: Optional[TemplateVariables] = None,
) -> str:
    """Render with partials using a shared :class:`TemplateEngine`."""
    return _default_engine.render_with_partials(template, partials, variables)

