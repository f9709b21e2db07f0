"""Tolerant recursive-descent parser for Rego.

The parser never raises on malformed input. Unexpected tokens are wrapped in
``Error`` nodes and missing pieces (an operand, a closing bracket) become empty
``Error`` nodes, so the rest of the tree stays usable for highlighting and
completion while the user is typing.

Every token, trivia included, becomes exactly one leaf of the resulting tree.
Trivia is attached to whichever node is open when the next significant token
is consumed, which keeps composite node ranges tight around their tokens.
"""

from __future__ import annotations

from collections.abc import Sequence

from regolab.core.lexer import KEYWORDS, Token, TokenKind, tokenize
from regolab.core.syntax import NodeKind, SyntaxNode

_OPENERS = frozenset({TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE})
_CLOSERS = frozenset({TokenKind.RPAREN, TokenKind.RBRACKET, TokenKind.RBRACE})

_OPERATOR_TOKENS = frozenset(
    {
        TokenKind.ASSIGN,
        TokenKind.UNIFY,
        TokenKind.EQ,
        TokenKind.NEQ,
        TokenKind.LT,
        TokenKind.LTE,
        TokenKind.GT,
        TokenKind.GTE,
        TokenKind.PLUS,
        TokenKind.MINUS,
        TokenKind.STAR,
        TokenKind.SLASH,
        TokenKind.PERCENT,
        TokenKind.AMP,
        TokenKind.PIPE,
        TokenKind.BANG,
    }
)

_LEAF_KINDS: dict[TokenKind, NodeKind] = {
    TokenKind.IDENT: NodeKind.IDENTIFIER,
    TokenKind.NUMBER: NodeKind.NUMBER,
    TokenKind.STRING: NodeKind.STRING,
    TokenKind.RAW_STRING: NodeKind.RAW_STRING,
    TokenKind.COMMENT: NodeKind.COMMENT,
    TokenKind.WHITESPACE: NodeKind.WHITESPACE,
    TokenKind.ERROR: NodeKind.INVALID,
    **{kind: NodeKind.KEYWORD for kind in KEYWORDS.values()},
    **{kind: NodeKind.OPERATOR for kind in _OPERATOR_TOKENS},
}

# Binding power of binary operators, loosest first.
_ASSIGN_PREC = 1
_SET_OP_PREC = 2
_BINARY: dict[TokenKind, tuple[int, NodeKind]] = {
    TokenKind.ASSIGN: (_ASSIGN_PREC, NodeKind.ASSIGN_EXPRESSION),
    TokenKind.UNIFY: (_ASSIGN_PREC, NodeKind.ASSIGN_EXPRESSION),
    TokenKind.AMP: (_SET_OP_PREC, NodeKind.SET_OP_EXPRESSION),
    TokenKind.PIPE: (_SET_OP_PREC, NodeKind.SET_OP_EXPRESSION),
    TokenKind.EQ: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.NEQ: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.LT: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.LTE: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.GT: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.GTE: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.IN: (3, NodeKind.COMPARE_EXPRESSION),
    TokenKind.PLUS: (4, NodeKind.ARITH_EXPRESSION),
    TokenKind.MINUS: (4, NodeKind.ARITH_EXPRESSION),
    TokenKind.STAR: (5, NodeKind.ARITH_EXPRESSION),
    TokenKind.SLASH: (5, NodeKind.ARITH_EXPRESSION),
    TokenKind.PERCENT: (5, NodeKind.ARITH_EXPRESSION),
}

_LITERALS = frozenset(
    {
        TokenKind.IDENT,
        TokenKind.NUMBER,
        TokenKind.STRING,
        TokenKind.RAW_STRING,
        TokenKind.TRUE,
        TokenKind.FALSE,
        TokenKind.NULL,
    }
)

# A newline right after one of these never ends a statement.
_CONTINUATION = frozenset(
    {
        *_BINARY,
        *_OPENERS,
        TokenKind.BANG,
        TokenKind.COMMA,
        TokenKind.DOT,
        TokenKind.COLON,
        TokenKind.IF,
        TokenKind.ELSE,
        TokenKind.CONTAINS,
        TokenKind.NOT,
        TokenKind.SOME,
        TokenKind.EVERY,
        TokenKind.WITH,
        TokenKind.AS,
    }
)

# Tokens that can never begin an operand; a primary sitting on one is missing.
_NOT_OPERAND = frozenset(
    {*_CLOSERS, TokenKind.EOF, TokenKind.COMMA, TokenKind.SEMICOLON, TokenKind.COLON, TokenKind.PIPE}
)

_STATEMENT_MARKERS = frozenset(
    {
        TokenKind.SOME,
        TokenKind.EVERY,
        TokenKind.NOT,
        TokenKind.WITH,
        TokenKind.IF,
        TokenKind.DEFAULT,
        TokenKind.SEMICOLON,
        TokenKind.ASSIGN,
        TokenKind.UNIFY,
    }
)

_EXPRESSION_ENDS = frozenset({*_LITERALS, *_CLOSERS})
_EXPRESSION_STARTS = frozenset({*_LITERALS, *_OPENERS, TokenKind.BANG})


def _is_name(token: Token) -> bool:
    return token.kind is TokenKind.IDENT or token.kind in KEYWORDS.values()


def classify_brace(tokens: Sequence[Token], newline_before: Sequence[bool], open_index: int) -> NodeKind:
    """Decide what the ``{`` at *open_index* opens by scanning to its matching ``}``.

    Checked in order: a top-level ``|`` makes a comprehension (object form when
    a top-level ``:`` precedes it), a top-level ``:`` makes an Object, statement
    markers or newline-separated operands make a Body, anything else is a Set.
    ``{}`` is an empty Object. Only depth-zero tokens count, so nested
    collections never influence the outer classification.
    """
    depth = 0
    saw_colon = False
    saw_statement = False
    seen_content = False
    previous: Token | None = None

    for index in range(open_index + 1, len(tokens)):
        token = tokens[index]
        kind = token.kind
        if kind is TokenKind.EOF:
            break
        if depth == 0:
            if kind in _CLOSERS:
                break
            if kind is TokenKind.PIPE:
                return NodeKind.OBJECT_COMPREHENSION if saw_colon else NodeKind.SET_COMPREHENSION
            if kind is TokenKind.COLON:
                saw_colon = True
            elif kind in _STATEMENT_MARKERS:
                saw_statement = True
            elif (
                newline_before[index]
                and previous is not None
                and previous.kind in _EXPRESSION_ENDS
                and kind in _EXPRESSION_STARTS
            ):
                saw_statement = True
            seen_content = True
            previous = token
        if kind in _OPENERS:
            depth += 1
        elif kind in _CLOSERS:
            depth -= 1
            if depth == 0:
                previous = token

    if saw_colon or not seen_content:
        return NodeKind.OBJECT
    if saw_statement:
        return NodeKind.BODY
    return NodeKind.SET


def classify_bracket(tokens: Sequence[Token], open_index: int) -> NodeKind:
    """``[`` opens an ArrayComprehension when a top-level ``|`` appears before the matching ``]``."""
    depth = 0
    for index in range(open_index + 1, len(tokens)):
        kind = tokens[index].kind
        if kind is TokenKind.EOF:
            break
        if kind in _OPENERS:
            depth += 1
        elif kind in _CLOSERS:
            if depth == 0:
                break
            depth -= 1
        elif depth == 0 and kind is TokenKind.PIPE:
            return NodeKind.ARRAY_COMPREHENSION
    return NodeKind.ARRAY


class _Parser:
    def __init__(self, source: str) -> None:
        self._source = source
        tokens: list[Token] = []
        leading: list[list[Token]] = []
        newline: list[bool] = []
        pending: list[Token] = []
        saw_newline = True
        for token in tokenize(source):
            if token.is_trivia:
                pending.append(token)
                if "\n" in token.text:
                    saw_newline = True
                continue
            tokens.append(token)
            leading.append(pending)
            newline.append(saw_newline)
            pending = []
            saw_newline = False
        tokens.append(Token(TokenKind.EOF, "", len(source), len(source)))
        leading.append(pending)
        newline.append(True)

        self._tokens = tokens
        self._leading = leading
        self._newline = newline
        self._pos = 0
        self._flushed = -1
        self._anchor = 0
        self._stack: list[list[SyntaxNode]] = [[]]
        # (newline ends statements, top-level ``|`` ends the expression)
        self._ctx: list[tuple[bool, bool]] = [(True, False)]

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def _peek(self, ahead: int = 0) -> Token:
        return self._tokens[min(self._pos + ahead, len(self._tokens) - 1)]

    def _at(self, *kinds: TokenKind) -> bool:
        return self._tokens[self._pos].kind in kinds

    def _at_eof(self) -> bool:
        return self._tokens[self._pos].kind is TokenKind.EOF

    def _newline_before(self) -> bool:
        return self._newline[self._pos]

    def _stops_here(self) -> bool:
        """True when a newline at the cursor terminates the current statement."""
        if not self._ctx[-1][0] or not self._newline[self._pos] or self._pos == self._anchor:
            return False
        return self._pos == 0 or self._tokens[self._pos - 1].kind not in _CONTINUATION

    # ------------------------------------------------------------------
    # Tree building
    # ------------------------------------------------------------------

    def _flush_trivia(self) -> None:
        if self._flushed >= self._pos:
            return
        top = self._stack[-1]
        for token in self._leading[self._pos]:
            top.append(SyntaxNode(_LEAF_KINDS[token.kind], token.start, token.end, token=token))
        self._flushed = self._pos

    def _bump(self, kind: NodeKind | None = None) -> None:
        token = self._tokens[self._pos]
        if token.kind is TokenKind.EOF:
            return
        self._flush_trivia()
        leaf_kind = kind or _LEAF_KINDS.get(token.kind, NodeKind.PUNCTUATION)
        self._stack[-1].append(SyntaxNode(leaf_kind, token.start, token.end, token=token))
        self._pos += 1

    def _start(self) -> None:
        self._flush_trivia()
        self._stack.append([])

    def _checkpoint(self) -> int:
        self._flush_trivia()
        return len(self._stack[-1])

    def _start_at(self, checkpoint: int) -> None:
        top = self._stack[-1]
        wrapped = top[checkpoint:]
        del top[checkpoint:]
        self._stack.append(wrapped)

    def _finish(self, kind: NodeKind) -> SyntaxNode:
        children = self._stack.pop()
        if children:
            node = SyntaxNode(kind, children[0].start, children[-1].end, tuple(children))
        else:
            offset = self._peek().start
            node = SyntaxNode(kind, offset, offset)
        self._stack[-1].append(node)
        return node

    def _missing(self) -> None:
        self._start()
        self._finish(NodeKind.ERROR)

    def _expect(self, kind: TokenKind) -> None:
        if self._at(kind):
            self._bump()
        else:
            self._missing()

    def _error_token(self) -> None:
        self._start()
        self._bump()
        self._finish(NodeKind.ERROR)

    def _error_rest_of_line(self, stop: frozenset[TokenKind] = frozenset()) -> None:
        self._start()
        self._bump()
        while not self._at_eof() and not self._newline_before() and self._peek().kind not in stop:
            self._bump()
        self._finish(NodeKind.ERROR)

    def _push(self, newline_sensitive: bool, pipe_stops: bool = False) -> None:
        self._ctx.append((newline_sensitive, pipe_stops))

    def _pop(self) -> None:
        self._ctx.pop()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse_script(self) -> SyntaxNode:
        while not self._at_eof():
            kind = self._peek().kind
            if kind is TokenKind.PACKAGE:
                self._package()
            elif kind is TokenKind.IMPORT:
                self._import()
            elif kind in (TokenKind.IDENT, TokenKind.DEFAULT):
                self._rule()
            else:
                self._error_rest_of_line()
            if not self._at_eof() and not self._newline_before():
                self._error_rest_of_line()
        return self._root()

    def parse_expression(self) -> SyntaxNode:
        self._ctx = [(False, False)]
        self._expression()
        while not self._at_eof():
            self._error_token()
        return self._root()

    def _root(self) -> SyntaxNode:
        self._flush_trivia()
        children = self._stack.pop()
        return SyntaxNode(NodeKind.SCRIPT, 0, len(self._source), tuple(children))

    # ------------------------------------------------------------------
    # Top-level declarations
    # ------------------------------------------------------------------

    def _package(self) -> None:
        self._start()
        self._bump()
        self._ref_path()
        self._finish(NodeKind.PACKAGE_DECLARATION)

    def _import(self) -> None:
        self._start()
        self._bump()
        self._ref_path()
        if self._at(TokenKind.AS) and not self._newline_before():
            self._bump()
            if self._at(TokenKind.IDENT):
                self._bump()
            else:
                self._missing()
        self._finish(NodeKind.IMPORT_STATEMENT)

    def _ref_path(self) -> None:
        if self._newline_before() or not _is_name(self._peek()):
            self._missing()
            return
        self._start()
        self._bump(NodeKind.IDENTIFIER)
        while not self._newline_before():
            if self._at(TokenKind.DOT) and _is_name(self._peek(1)):
                self._bump()
                self._bump(NodeKind.IDENTIFIER)
            elif self._at(TokenKind.LBRACKET):
                self._bump()
                self._push(False)
                self._expression()
                self._pop()
                self._expect(TokenKind.RBRACKET)
            else:
                break
        self._finish(NodeKind.REF_EXPRESSION)

    def _rule(self) -> None:
        self._start()
        if self._at(TokenKind.DEFAULT):
            self._bump()
        self._rule_head()
        self._rule_tail()
        while self._at(TokenKind.ELSE):
            self._else_clause()
        self._finish(NodeKind.RULE)

    def _rule_head(self) -> None:
        self._start()
        if self._at(TokenKind.IDENT):
            self._bump()
        else:
            self._missing()
        while not self._newline_before():
            if self._at(TokenKind.DOT) and _is_name(self._peek(1)):
                self._bump()
                self._bump(NodeKind.IDENTIFIER)
            elif self._at(TokenKind.LBRACKET):
                self._bump()
                self._push(False)
                self._expression()
                self._pop()
                self._expect(TokenKind.RBRACKET)
            else:
                break
        if self._at(TokenKind.LPAREN) and not self._newline_before():
            self._argument_list()
        self._finish(NodeKind.RULE_HEAD)

    def _rule_tail(self) -> None:
        if self._newline_before():
            return
        if self._at(TokenKind.CONTAINS):
            self._bump()
            self._expression(_SET_OP_PREC)
            self._optional_rule_body()
        elif self._at(TokenKind.ASSIGN, TokenKind.UNIFY):
            self._bump()
            self._expression(_SET_OP_PREC)
            self._optional_rule_body()
        elif self._at(TokenKind.IF):
            self._if_body()
        elif self._at(TokenKind.LBRACE):
            self._brace_body()

    def _optional_rule_body(self) -> None:
        if self._newline_before():
            return
        if self._at(TokenKind.IF):
            self._if_body()
        elif self._at(TokenKind.LBRACE):
            self._brace_body()

    def _else_clause(self) -> None:
        self._start()
        self._bump()
        if self._at(TokenKind.ASSIGN, TokenKind.UNIFY):
            self._bump()
            self._expression(_SET_OP_PREC)
        if self._at(TokenKind.IF):
            self._if_body()
        elif self._at(TokenKind.LBRACE):
            self._brace_body()
        self._finish(NodeKind.ELSE_CLAUSE)

    def _if_body(self) -> None:
        self._bump()
        if self._at(TokenKind.LBRACE):
            self._brace_body()
            return
        self._start()
        self._push(True)
        self._statement()
        self._pop()
        self._finish(NodeKind.BODY)

    def _brace_body(self) -> None:
        self._start()
        self._bump()
        self._push(True)
        self._statements(frozenset({TokenKind.RBRACE}))
        self._pop()
        self._expect(TokenKind.RBRACE)
        self._finish(NodeKind.BODY)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statements(self, closers: frozenset[TokenKind]) -> None:
        stray = (_NOT_OPERAND - closers) - {TokenKind.EOF, TokenKind.SEMICOLON}
        while not self._at_eof() and self._peek().kind not in closers:
            kind = self._peek().kind
            if kind is TokenKind.SEMICOLON:
                self._bump()
                continue
            if kind in stray:
                self._error_token()
                continue
            self._statement()
            if (
                not self._at_eof()
                and self._peek().kind not in closers
                and not self._at(TokenKind.SEMICOLON)
                and not self._newline_before()
            ):
                self._error_rest_of_line(closers | {TokenKind.SEMICOLON})

    def _statement(self) -> None:
        self._start()
        self._anchor = self._pos
        if self._at(TokenKind.SOME):
            self._some()
        elif self._at(TokenKind.EVERY):
            self._every()
        elif self._at(TokenKind.NOT):
            self._start()
            self._bump()
            self._expression()
            self._finish(NodeKind.NEGATION)
        else:
            self._expression()
        while self._at(TokenKind.WITH) and not self._stops_here():
            self._with_modifier()
        self._finish(NodeKind.STATEMENT)

    def _some(self) -> None:
        self._start()
        self._bump()
        self._term_list()
        self._finish(NodeKind.SOME_DECLARATION)

    def _every(self) -> None:
        self._start()
        self._bump()
        self._term_list()
        if self._at(TokenKind.LBRACE):
            self._brace_body()
        else:
            self._missing()
        self._finish(NodeKind.EVERY_EXPRESSION)

    def _term_list(self) -> None:
        self._expression(_SET_OP_PREC)
        while self._at(TokenKind.COMMA):
            self._bump()
            self._expression(_SET_OP_PREC)

    def _with_modifier(self) -> None:
        self._start()
        self._bump()
        self._unary()
        self._expect(TokenKind.AS)
        self._expression(_SET_OP_PREC)
        self._finish(NodeKind.WITH_MODIFIER)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self, min_prec: int = _ASSIGN_PREC) -> None:
        checkpoint = self._checkpoint()
        self._unary()
        while True:
            entry = _BINARY.get(self._peek().kind)
            if entry is None:
                break
            prec, kind = entry
            if prec < min_prec:
                break
            if self._at(TokenKind.PIPE) and self._ctx[-1][1]:
                break
            if self._stops_here():
                break
            self._start_at(checkpoint)
            self._bump()
            self._expression(prec + 1)
            self._finish(kind)

    def _unary(self) -> None:
        if self._at(TokenKind.MINUS, TokenKind.BANG) and not self._stops_here():
            self._start()
            self._bump()
            self._unary()
            self._finish(NodeKind.UNARY_EXPRESSION)
            return
        self._postfix()

    def _postfix(self) -> None:
        checkpoint = self._checkpoint()
        if not self._primary():
            return
        while not self._stops_here():
            if self._at(TokenKind.DOT):
                self._start_at(checkpoint)
                self._bump()
                if _is_name(self._peek()) and not self._newline_before():
                    self._bump(NodeKind.IDENTIFIER)
                else:
                    self._missing()
                self._finish(NodeKind.REF_EXPRESSION)
            elif self._at(TokenKind.LBRACKET):
                self._start_at(checkpoint)
                self._bump()
                self._push(False)
                self._expression()
                self._pop()
                self._expect(TokenKind.RBRACKET)
                self._finish(NodeKind.REF_EXPRESSION)
            elif self._at(TokenKind.LPAREN):
                self._start_at(checkpoint)
                self._argument_list()
                self._finish(NodeKind.CALL_EXPRESSION)
            else:
                break

    def _primary(self) -> bool:
        """Parse one operand; returns False when nothing but a placeholder was produced."""
        kind = self._peek().kind
        if kind in _NOT_OPERAND or self._stops_here():
            self._missing()
            return False
        if kind in _LITERALS:
            self._bump()
        elif kind is TokenKind.LPAREN:
            self._start()
            self._bump()
            self._push(False)
            self._expression()
            self._pop()
            self._expect(TokenKind.RPAREN)
            self._finish(NodeKind.PAREN_EXPRESSION)
        elif kind is TokenKind.LBRACKET:
            self._bracket()
        elif kind is TokenKind.LBRACE:
            self._brace()
        else:
            self._error_token()
            return False
        return True

    def _argument_list(self) -> None:
        self._start()
        self._bump()
        self._push(False)
        while not self._at(TokenKind.RPAREN) and not self._at_eof():
            self._expression()
            if not self._at(TokenKind.COMMA):
                break
            self._bump()
        self._pop()
        self._expect(TokenKind.RPAREN)
        self._finish(NodeKind.ARGUMENT_LIST)

    def _expression_list(self, closer: TokenKind) -> None:
        while not self._at(closer) and not self._at_eof():
            self._expression()
            if not self._at(TokenKind.COMMA):
                break
            self._bump()

    def _bracket(self) -> None:
        kind = classify_bracket(self._tokens, self._pos)
        self._start()
        self._bump()
        if kind is NodeKind.ARRAY_COMPREHENSION:
            self._push(False, pipe_stops=True)
            self._expression()
            self._pop()
            self._expect(TokenKind.PIPE)
            self._comprehension_body(TokenKind.RBRACKET)
        else:
            self._push(False)
            self._expression_list(TokenKind.RBRACKET)
            self._pop()
        self._expect(TokenKind.RBRACKET)
        self._finish(kind)

    def _brace(self) -> None:
        kind = classify_brace(self._tokens, self._newline, self._pos)
        self._start()
        self._bump()
        if kind is NodeKind.OBJECT_COMPREHENSION:
            self._push(False, pipe_stops=True)
            self._object_item()
            self._pop()
            self._expect(TokenKind.PIPE)
            self._comprehension_body(TokenKind.RBRACE)
        elif kind is NodeKind.SET_COMPREHENSION:
            self._push(False, pipe_stops=True)
            self._expression()
            self._pop()
            self._expect(TokenKind.PIPE)
            self._comprehension_body(TokenKind.RBRACE)
        elif kind is NodeKind.OBJECT:
            self._push(False)
            while not self._at(TokenKind.RBRACE) and not self._at_eof():
                self._object_item()
                if not self._at(TokenKind.COMMA):
                    break
                self._bump()
            self._pop()
        elif kind is NodeKind.SET:
            self._push(False)
            self._expression_list(TokenKind.RBRACE)
            self._pop()
        else:
            self._push(True)
            self._statements(frozenset({TokenKind.RBRACE}))
            self._pop()
        self._expect(TokenKind.RBRACE)
        self._finish(kind)

    def _object_item(self) -> None:
        self._start()
        self._expression(_SET_OP_PREC)
        self._expect(TokenKind.COLON)
        self._expression(_SET_OP_PREC)
        self._finish(NodeKind.OBJECT_ITEM)

    def _comprehension_body(self, closer: TokenKind) -> None:
        self._start()
        self._push(True)
        self._statements(frozenset({closer}))
        self._pop()
        self._finish(NodeKind.BODY)


def parse(source: str) -> SyntaxNode:
    """Parse a Rego module into a ``Script`` tree. Never raises."""
    return _Parser(source).parse_script()


def parse_expression(source: str) -> SyntaxNode:
    """Parse a standalone expression; the result is a ``Script`` node wrapping it."""
    return _Parser(source).parse_expression()
