"""Unit tests for the template tokenizer and block matcher."""

from uxkit.grammar import (
    EachBlock,
    IfBlock,
    Literal,
    TokenKind,
    Variable,
    count_delimiters,
    is_control_reference,
    match_blocks,
    parse,
    substitute_partials,
    tokenize,
)


class TestTokenize:
    """Test cases for tokenize."""

    def test_text_only(self):
        """Test a template without tags."""
        tokens = tokenize("plain text")
        assert [token.kind for token in tokens] == [TokenKind.TEXT]
        assert tokens[0].raw == "plain text"

    def test_token_kinds(self):
        """Test classification of every tag form."""
        template = "{{a}}{{#if b}}{{else}}{{/if}}{{#each c}}{{/each}}{{> p}}{{/if x}}"
        kinds = [token.kind for token in tokenize(template)]
        assert kinds == [
            TokenKind.VARIABLE,
            TokenKind.IF_OPEN,
            TokenKind.ELSE,
            TokenKind.IF_CLOSE,
            TokenKind.EACH_OPEN,
            TokenKind.EACH_CLOSE,
            TokenKind.PARTIAL,
            TokenKind.RAW,
        ]

    def test_values_and_offsets(self):
        """Test that tag values are stripped and offsets point into the source."""
        tokens = tokenize("ab{{#if  user.ok }}")
        assert tokens[1].value == "user.ok"
        assert tokens[1].offset == 2


class TestMatchBlocks:
    """Test cases for match_blocks."""

    def test_nested_pairs(self):
        """Test pairing of nested blocks."""
        tokens = tokenize("{{#each a}}{{#if b}}x{{else}}y{{/if}}{{/each}}")
        pairs, else_of = match_blocks(tokens)
        assert pairs == {0: 6, 1: 5}
        assert else_of == {1: 3}

    def test_unpaired_opener(self):
        """Test that an opener without closer is not paired."""
        pairs, else_of = match_blocks(tokenize("{{#if a}}x{{else}}y"))
        assert pairs == {}
        assert else_of == {}


class TestParse:
    """Test cases for parse."""

    def test_tree_shape(self):
        """Test the node tree for a nested template."""
        nodes = parse("Hi {{name}}{{#each xs}}{{#if this}}y{{else}}n{{/if}}{{/each}}")
        assert nodes[0] == Literal("Hi ")
        assert nodes[1] == Variable("name")
        each = nodes[2]
        assert isinstance(each, EachBlock)
        assert each.path == "xs"
        assert each.body == [IfBlock("this", [Literal("y")], [Literal("n")])]

    def test_unpaired_tags_become_literals(self):
        """Test that unpaired tags merge into literal text."""
        assert parse("a{{/each}}b") == [Literal("a{{/each}}b")]


class TestHelpers:
    """Test cases for the small helpers."""

    def test_count_delimiters(self):
        """Test counting of opening and closing delimiters."""
        assert count_delimiters("{{a}} {{b") == (2, 1)

    def test_is_control_reference(self):
        """Test detection of control references."""
        assert is_control_reference("#if x")
        assert is_control_reference(" /each")
        assert is_control_reference("> header")
        assert not is_control_reference("name")

    def test_substitute_partials(self):
        """Test single-pass partial substitution."""
        assert substitute_partials("{{> a}}-{{> b}}", {"a": "A"}) == "A-{{> b}}"
        assert substitute_partials("{{> a}}", {}) == "{{> a}}"
