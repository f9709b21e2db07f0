"""Tests for context-dependent style tags."""

from __future__ import annotations

import pytest

from regolab.core.lexer import Token, TokenKind
from regolab.core.parser import parse
from regolab.core.styles import StyleTag, highlight, style_for
from regolab.core.syntax import NodeKind, SyntaxNode

SOURCE = """package authz.v1

import rego.v1

# allow admins
default allow := false

allow if {
    count(input.items) > 0
    time.now_ns() > 0
    name := `raw`
}

f(x) := y if { y := x }

s := {v | some v in [1, 2]}
"""


def _tags(source: str) -> list[tuple[str, str]]:
    return [(source[s.start : s.end], s.tag) for s in highlight(parse(source))]


def _tag_of(text: str, nth: int = 0) -> str:
    matches = [tag for span_text, tag in _tags(SOURCE) if span_text == text]
    assert len(matches) > nth, f"{text!r} not styled"
    return matches[nth]


class TestHighlight:
    @pytest.mark.parametrize(
        ("text", "nth", "tag"),
        [
            ("package", 0, "keyword"),
            ("authz", 0, "namespace"),
            ("v1", 0, "namespace"),
            ("import", 0, "keyword"),
            ("rego", 0, "namespace"),
            ("# allow admins", 0, "comment"),
            ("default", 0, "keyword"),
            ("allow", 0, "function.definition"),
            ("allow", 1, "function.definition"),
            (":=", 0, "operator"),
            ("false", 0, "bool"),
            ("if", 0, "controlKeyword"),
            ("{", 0, "brace"),
            ("count", 0, "function.call"),
            ("(", 0, "paren"),
            ("input", 0, "variableName"),
            ("items", 0, "variableName"),
            (">", 0, "operator"),
            ("0", 0, "number"),
            ("time", 0, "namespace"),
            ("now_ns", 0, "function.call"),
            ("`raw`", 0, "string.special"),
            ("f", 0, "function.definition"),
            ("x", 0, "variableName"),
            ("|", 0, "separator"),
            ("some", 0, "controlKeyword"),
            ("in", 0, "controlKeyword"),
            ("[", 0, "squareBracket"),
            (",", 0, "separator"),
        ],
    )
    def test_tag(self, text: str, nth: int, tag: str) -> None:
        assert _tag_of(text, nth) == tag

    def test_dot_in_reference_is_deref(self) -> None:
        assert all(tag == "derefOperator" for text, tag in _tags(SOURCE) if text == ".")

    def test_spans_are_ordered_and_disjoint(self) -> None:
        spans = highlight(parse(SOURCE))
        for before, after in zip(spans, spans[1:]):
            assert before.end <= after.start

    def test_whitespace_is_not_styled(self) -> None:
        assert all(text.strip() for text, _ in _tags(SOURCE))

    def test_string_and_null(self) -> None:
        assert _tags('x := "a"\ny := null\n')[2:3] == [('"a"', "string")]
        assert ("null", "null") in _tags('x := "a"\ny := null\n')

    def test_set_union_pipe_is_an_operator(self) -> None:
        assert ("|", "operator") in _tags("s := a | b\n")

    def test_dotted_rule_head(self) -> None:
        tags = _tags("a.b := 1\n")
        assert tags[0] == ("a", "function.definition")
        assert tags[2] == ("b", "function.definition")

    def test_index_in_rule_head_is_a_variable(self) -> None:
        assert ("x", "variableName") in _tags("p[x] { x := 1 }\n")

    def test_invalid_token(self) -> None:
        assert ("@", "invalid") in _tags("x := @\n")


class TestStyleFor:
    def test_identifier_without_context_is_a_variable(self) -> None:
        token = Token(TokenKind.IDENT, "x", 0, 1)
        leaf = SyntaxNode(NodeKind.IDENTIFIER, 0, 1, token=token)
        assert style_for(leaf, ()) is StyleTag.VARIABLE

    def test_same_token_differs_by_context(self) -> None:
        tree = parse("package foo\nfoo := foo\n")
        tags = {(leaf.start, style_for(leaf, ancestors)) for leaf, ancestors in tree.walk() if leaf.text == "foo"}
        assert sorted(tags) == [
            (8, StyleTag.NAMESPACE),
            (12, StyleTag.FUNCTION_DEFINITION),
            (19, StyleTag.VARIABLE),
        ]

    def test_composite_nodes_have_no_tag(self) -> None:
        tree = parse("x := 1")
        assert style_for(tree, ()) is None
