from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

from regolab.core.lexer import Token


class NodeKind(enum.Enum):
    SCRIPT = "Script"
    PACKAGE_DECLARATION = "PackageDeclaration"
    IMPORT_STATEMENT = "ImportStatement"
    RULE = "Rule"
    RULE_HEAD = "RuleHead"
    ARGUMENT_LIST = "ArgumentList"
    ELSE_CLAUSE = "ElseClause"
    BODY = "Body"
    STATEMENT = "Statement"
    SOME_DECLARATION = "SomeDeclaration"
    EVERY_EXPRESSION = "EveryExpression"
    NEGATION = "Negation"
    WITH_MODIFIER = "WithModifier"

    # Expressions
    ASSIGN_EXPRESSION = "AssignExpression"
    SET_OP_EXPRESSION = "SetOpExpression"
    COMPARE_EXPRESSION = "CompareExpression"
    ARITH_EXPRESSION = "ArithExpression"
    UNARY_EXPRESSION = "UnaryExpression"
    PAREN_EXPRESSION = "ParenExpression"
    CALL_EXPRESSION = "CallExpression"
    REF_EXPRESSION = "RefExpression"

    # Collections
    OBJECT = "Object"
    OBJECT_ITEM = "ObjectItem"
    ARRAY = "Array"
    SET = "Set"
    ARRAY_COMPREHENSION = "ArrayComprehension"
    SET_COMPREHENSION = "SetComprehension"
    OBJECT_COMPREHENSION = "ObjectComprehension"

    ERROR = "Error"

    # Leaves
    IDENTIFIER = "Identifier"
    KEYWORD = "Keyword"
    NUMBER = "Number"
    STRING = "String"
    RAW_STRING = "RawString"
    OPERATOR = "Operator"
    PUNCTUATION = "Punctuation"
    COMMENT = "LineComment"
    WHITESPACE = "Whitespace"
    INVALID = "Invalid"


BRACE_KINDS = frozenset(
    {
        NodeKind.OBJECT,
        NodeKind.SET,
        NodeKind.BODY,
        NodeKind.SET_COMPREHENSION,
        NodeKind.OBJECT_COMPREHENSION,
    }
)

COMPREHENSION_KINDS = frozenset(
    {
        NodeKind.ARRAY_COMPREHENSION,
        NodeKind.SET_COMPREHENSION,
        NodeKind.OBJECT_COMPREHENSION,
    }
)


@dataclass(frozen=True, slots=True)
class SyntaxNode:
    kind: NodeKind
    start: int
    end: int
    children: tuple[SyntaxNode, ...] = ()
    token: Token | None = None

    @property
    def is_leaf(self) -> bool:
        return self.token is not None

    @property
    def text(self) -> str:
        """Source text for leaves; composite nodes return an empty string."""
        return self.token.text if self.token is not None else ""

    def significant_children(self) -> list[SyntaxNode]:
        return [c for c in self.children if c.kind not in (NodeKind.WHITESPACE, NodeKind.COMMENT)]

    def child_of_kind(self, kind: NodeKind) -> SyntaxNode | None:
        for child in self.children:
            if child.kind is kind:
                return child
        return None

    def leaves(self) -> Iterator[SyntaxNode]:
        if self.token is not None:
            yield self
            return
        for child in self.children:
            yield from child.leaves()

    def walk(self, ancestors: tuple[SyntaxNode, ...] = ()) -> Iterator[tuple[SyntaxNode, tuple[SyntaxNode, ...]]]:
        """Pre-order traversal yielding ``(node, ancestors)`` pairs, root first."""
        yield self, ancestors
        path = (*ancestors, self)
        for child in self.children:
            yield from child.walk(path)

    def find_all(self, kind: NodeKind) -> list[SyntaxNode]:
        return [node for node, _ in self.walk() if node.kind is kind]

    def leaf_at(self, offset: int) -> tuple[SyntaxNode, tuple[SyntaxNode, ...]] | None:
        """Return the leaf ending at or covering *offset* with its ancestors.

        A cursor sitting right after a token belongs to that token, which is
        what completion wants when the user is still typing it.
        """
        best: tuple[SyntaxNode, tuple[SyntaxNode, ...]] | None = None
        for node, ancestors in self.walk():
            if node.token is None:
                continue
            if node.start < offset <= node.end or (node.start == offset and best is None):
                best = (node, ancestors)
        return best


def dump(node: SyntaxNode, source: str, indent: int = 0, include_trivia: bool = False) -> str:
    """Render a tree as an indented outline, mostly for debugging and the CLI."""
    lines: list[str] = []

    def _visit(n: SyntaxNode, depth: int) -> None:
        if not include_trivia and n.kind in (NodeKind.WHITESPACE, NodeKind.COMMENT):
            return
        pad = "  " * depth
        if n.token is not None:
            lines.append(f"{pad}{n.kind.value} {source[n.start : n.end]!r}")
        else:
            lines.append(f"{pad}{n.kind.value} [{n.start}, {n.end})")
            for child in n.children:
                _visit(child, depth + 1)

    _visit(node, indent)
    return "\n".join(lines)
