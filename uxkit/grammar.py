"""Tokenizer and parser for the UX-Kit template language.

A template is scanned once into a flat list of :class:`Token` objects and
then matched into a small node tree (:class:`Literal`, :class:`Variable`,
:class:`IfBlock`, :class:`EachBlock`). Block openers and closers are
paired with a stack so nested blocks of either kind resolve naturally.
Tokens that cannot be paired are kept as literal text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

OPEN_DELIMITER = "{{"
CLOSE_DELIMITER = "}}"

# Same shape the validator uses to find references: no "}" inside a tag.
TAG_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
PARTIAL_PATTERN = re.compile(r"\{\{>\s*([^}\s]+)\s*\}\}")

_IF_OPEN = re.compile(r"^#if\s+(.+)$", re.DOTALL)
_EACH_OPEN = re.compile(r"^#each\s+(.+)$", re.DOTALL)

CONTROL_PREFIXES = ("#if", "#each", "/if", "/each", ">")


class TokenKind(Enum):
    TEXT = "text"
    VARIABLE = "variable"
    IF_OPEN = "if_open"
    EACH_OPEN = "each_open"
    ELSE = "else"
    IF_CLOSE = "if_close"
    EACH_CLOSE = "each_close"
    PARTIAL = "partial"
    RAW = "raw"


@dataclass(slots=True)
class Token:
    kind: TokenKind
    raw: str
    value: str = ""
    offset: int = 0


@dataclass(slots=True)
class Literal:
    text: str


@dataclass(slots=True)
class Variable:
    path: str


@dataclass(slots=True)
class IfBlock:
    path: str
    then_nodes: List["Node"] = field(default_factory=list)
    else_nodes: List["Node"] = field(default_factory=list)


@dataclass(slots=True)
class EachBlock:
    path: str
    body: List["Node"] = field(default_factory=list)


Node = Union[Literal, Variable, IfBlock, EachBlock]


def count_delimiters(template: str) -> Tuple[int, int]:
    """Return the number of ``{{`` and ``}}`` delimiters in ``template``."""
    return template.count(OPEN_DELIMITER), template.count(CLOSE_DELIMITER)


def has_unclosed_braces(template: str) -> bool:
    opened, closed = count_delimiters(template)
    return opened != closed


def is_control_reference(reference: str) -> bool:
    """True for tag contents that belong to block or partial syntax."""
    return reference.strip().startswith(CONTROL_PREFIXES)


def _classify_tag(raw: str, content: str, offset: int) -> Token:
    stripped = content.strip()

    match = _IF_OPEN.match(stripped)
    if match:
        return Token(TokenKind.IF_OPEN, raw, match.group(1).strip(), offset)
    match = _EACH_OPEN.match(stripped)
    if match:
        return Token(TokenKind.EACH_OPEN, raw, match.group(1).strip(), offset)
    if stripped == "else":
        return Token(TokenKind.ELSE, raw, stripped, offset)
    if stripped == "/if":
        return Token(TokenKind.IF_CLOSE, raw, stripped, offset)
    if stripped == "/each":
        return Token(TokenKind.EACH_CLOSE, raw, stripped, offset)
    if stripped.startswith(">"):
        return Token(TokenKind.PARTIAL, raw, stripped[1:].strip(), offset)
    if stripped.startswith(CONTROL_PREFIXES):
        # "#ifx", "/if foo" and friends are neither blocks nor variables
        return Token(TokenKind.RAW, raw, stripped, offset)
    return Token(TokenKind.VARIABLE, raw, stripped, offset)


def tokenize(template: str) -> List[Token]:
    """Split ``template`` into text and tag tokens, left to right."""
    tokens: List[Token] = []
    position = 0
    for match in TAG_PATTERN.finditer(template):
        if match.start() > position:
            tokens.append(Token(TokenKind.TEXT, template[position:match.start()], offset=position))
        tokens.append(_classify_tag(match.group(0), match.group(1), match.start()))
        position = match.end()
    if position < len(template):
        tokens.append(Token(TokenKind.TEXT, template[position:], offset=position))
    return tokens


_CLOSER_FOR = {
    TokenKind.IF_CLOSE: TokenKind.IF_OPEN,
    TokenKind.EACH_CLOSE: TokenKind.EACH_OPEN,
}


def match_blocks(tokens: List[Token]) -> Tuple[Dict[int, int], Dict[int, int]]:
    """Pair block openers with their closers.

    Returns ``(pairs, else_of)`` where ``pairs`` maps an opener index to
    its closer index and ``else_of`` maps an ``{{#if}}`` index to the index
    of its ``{{else}}``. A closer pairs with the nearest open block of its
    own kind; any blocks opened after that one are left unpaired.
    """
    pairs: Dict[int, int] = {}
    else_of: Dict[int, int] = {}
    stack: List[int] = []

    for index, token in enumerate(tokens):
        if token.kind in (TokenKind.IF_OPEN, TokenKind.EACH_OPEN):
            stack.append(index)
        elif token.kind is TokenKind.ELSE:
            if stack and tokens[stack[-1]].kind is TokenKind.IF_OPEN and stack[-1] not in else_of:
                else_of[stack[-1]] = index
        elif token.kind in _CLOSER_FOR:
            wanted = _CLOSER_FOR[token.kind]
            for depth in range(len(stack) - 1, -1, -1):
                if tokens[stack[depth]].kind is wanted:
                    opener = stack[depth]
                    for orphan in stack[depth + 1:]:
                        else_of.pop(orphan, None)
                    del stack[depth:]
                    pairs[opener] = index
                    break

    for orphan in stack:
        else_of.pop(orphan, None)
    return pairs, else_of


def _build(
    tokens: List[Token],
    start: int,
    end: int,
    pairs: Dict[int, int],
    else_of: Dict[int, int],
) -> List[Node]:
    nodes: List[Node] = []
    index = start
    while index < end:
        token = tokens[index]
        if token.kind is TokenKind.IF_OPEN and index in pairs:
            closer = pairs[index]
            else_index = else_of.get(index)
            if else_index is not None:
                then_nodes = _build(tokens, index + 1, else_index, pairs, else_of)
                else_nodes = _build(tokens, else_index + 1, closer, pairs, else_of)
            else:
                then_nodes = _build(tokens, index + 1, closer, pairs, else_of)
                else_nodes = []
            nodes.append(IfBlock(token.value, then_nodes, else_nodes))
            index = closer + 1
            continue
        if token.kind is TokenKind.EACH_OPEN and index in pairs:
            closer = pairs[index]
            nodes.append(EachBlock(token.value, _build(tokens, index + 1, closer, pairs, else_of)))
            index = closer + 1
            continue

        if token.kind is TokenKind.TEXT:
            _append_text(nodes, token.raw)
        elif token.kind in (TokenKind.VARIABLE, TokenKind.ELSE):
            # a stray {{else}} is an ordinary reference to "else"
            nodes.append(Variable(token.value))
        else:
            # unpaired openers/closers, unresolved partials and raw tags
            _append_text(nodes, token.raw)
        index += 1
    return nodes


def _append_text(nodes: List[Node], text: str) -> None:
    if nodes and isinstance(nodes[-1], Literal):
        nodes[-1].text += text
    else:
        nodes.append(Literal(text))


def parse(template: str, tokens: Optional[List[Token]] = None) -> List[Node]:
    """Parse ``template`` into a list of nodes."""
    if tokens is None:
        tokens = tokenize(template)
    pairs, else_of = match_blocks(tokens)
    return _build(tokens, 0, len(tokens), pairs, else_of)


def substitute_partials(template: str, partials: Dict[str, str]) -> str:
    """Replace ``{{> name}}`` with the registered partial text.

    Unknown partials are left untouched. Substitution is a single pass, so
    partial references inside a partial's own text are not expanded.
    """
    if not partials:
        return template

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        return partials[name] if name in partials else match.group(0)

    return PARTIAL_PATTERN.sub(_replace, template)
