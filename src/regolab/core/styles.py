"""Context-dependent style tags for syntax highlighting.

``style_for`` is a pure function of a leaf and its ancestor path, so the same
identifier token renders differently depending on whether it defines a rule,
names a package, calls a function or just references a variable.
"""

from __future__ import annotations

import enum

from regolab.core.lexer import TokenKind
from regolab.core.syntax import COMPREHENSION_KINDS, NodeKind, SyntaxNode
from regolab.models import StyledSpan


class StyleTag(str, enum.Enum):
    KEYWORD = "keyword"
    CONTROL_KEYWORD = "controlKeyword"
    BOOL = "bool"
    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    SPECIAL_STRING = "string.special"
    VARIABLE = "variableName"
    FUNCTION_DEFINITION = "function.definition"
    FUNCTION_CALL = "function.call"
    NAMESPACE = "namespace"
    COMMENT = "comment"
    OPERATOR = "operator"
    PAREN = "paren"
    SQUARE_BRACKET = "squareBracket"
    BRACE = "brace"
    DEREF_OPERATOR = "derefOperator"
    SEPARATOR = "separator"
    INVALID = "invalid"


_DECLARATION_KEYWORDS = frozenset({TokenKind.PACKAGE, TokenKind.IMPORT, TokenKind.DEFAULT})

_KEYWORD_TAGS: dict[TokenKind, StyleTag] = {
    TokenKind.TRUE: StyleTag.BOOL,
    TokenKind.FALSE: StyleTag.BOOL,
    TokenKind.NULL: StyleTag.NULL,
}

_PUNCTUATION_TAGS: dict[TokenKind, StyleTag] = {
    TokenKind.LPAREN: StyleTag.PAREN,
    TokenKind.RPAREN: StyleTag.PAREN,
    TokenKind.LBRACKET: StyleTag.SQUARE_BRACKET,
    TokenKind.RBRACKET: StyleTag.SQUARE_BRACKET,
    TokenKind.LBRACE: StyleTag.BRACE,
    TokenKind.RBRACE: StyleTag.BRACE,
    TokenKind.DOT: StyleTag.DEREF_OPERATOR,
    TokenKind.COMMA: StyleTag.SEPARATOR,
    TokenKind.SEMICOLON: StyleTag.SEPARATOR,
    TokenKind.COLON: StyleTag.SEPARATOR,
}

_LEAF_TAGS: dict[NodeKind, StyleTag] = {
    NodeKind.NUMBER: StyleTag.NUMBER,
    NodeKind.STRING: StyleTag.STRING,
    NodeKind.RAW_STRING: StyleTag.SPECIAL_STRING,
    NodeKind.COMMENT: StyleTag.COMMENT,
    NodeKind.INVALID: StyleTag.INVALID,
}

_NAMESPACE_PARENTS = frozenset({NodeKind.PACKAGE_DECLARATION, NodeKind.IMPORT_STATEMENT})


def _in_dotted_chain(ref: SyntaxNode, child: SyntaxNode) -> bool:
    """True when *child* is the base of *ref* or the name after its dot, not an index."""
    significant = ref.significant_children()
    if significant[0] is child:
        return True
    for before, current in zip(significant, significant[1:]):
        if current is child:
            return before.token is not None and before.token.kind is TokenKind.DOT
    return False


def _callee_tag(node: SyntaxNode, ancestors: tuple[SyntaxNode, ...]) -> StyleTag | None:
    """Tag identifiers making up the callee of a call: ``f(x)`` or ``time.now_ns()``."""
    child = node
    for parent in reversed(ancestors):
        if parent.kind is NodeKind.CALL_EXPRESSION:
            if parent.significant_children()[0] is not child:
                return None
            if child is node:
                return StyleTag.FUNCTION_CALL
            # Dotted callee: the trailing name is the function, the rest is its namespace.
            trailing = child.significant_children()[-1]
            return StyleTag.FUNCTION_CALL if trailing is node else StyleTag.NAMESPACE
        if parent.kind is not NodeKind.REF_EXPRESSION or not _in_dotted_chain(parent, child):
            return None
        child = parent
    return None


def style_for(node: SyntaxNode, ancestors: tuple[SyntaxNode, ...]) -> StyleTag | None:
    """Return the style tag for a leaf given its ancestors (root first)."""
    token = node.token
    if token is None or node.kind is NodeKind.WHITESPACE:
        return None

    if node.kind is NodeKind.IDENTIFIER:
        parent = ancestors[-1] if ancestors else None
        if parent is not None and parent.kind is NodeKind.RULE_HEAD and _in_dotted_chain(parent, node):
            return StyleTag.FUNCTION_DEFINITION
        if any(a.kind in _NAMESPACE_PARENTS for a in ancestors):
            return StyleTag.NAMESPACE
        return _callee_tag(node, ancestors) or StyleTag.VARIABLE

    if node.kind is NodeKind.KEYWORD:
        if token.kind in _KEYWORD_TAGS:
            return _KEYWORD_TAGS[token.kind]
        if token.kind in _DECLARATION_KEYWORDS:
            return StyleTag.KEYWORD
        return StyleTag.CONTROL_KEYWORD

    if node.kind is NodeKind.OPERATOR:
        if token.kind is TokenKind.PIPE and ancestors and ancestors[-1].kind in COMPREHENSION_KINDS:
            return StyleTag.SEPARATOR
        return StyleTag.OPERATOR

    if node.kind is NodeKind.PUNCTUATION:
        return _PUNCTUATION_TAGS.get(token.kind)

    return _LEAF_TAGS.get(node.kind)


def highlight(tree: SyntaxNode) -> list[StyledSpan]:
    """Walk *tree* and emit one span per styled leaf, in document order."""
    spans: list[StyledSpan] = []
    for node, ancestors in tree.walk():
        tag = style_for(node, ancestors)
        if tag is not None and node.end > node.start:
            spans.append(StyledSpan(start=node.start, end=node.end, tag=tag.value))
    return spans
