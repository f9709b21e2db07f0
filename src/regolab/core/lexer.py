"""Tokenizer for Rego source text.

Tokenization is total: every character of the input ends up in exactly one
token, and unrecognised input becomes an ``ERROR`` token instead of raising.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenKind(enum.Enum):
    # Reserved words
    PACKAGE = "package"
    IMPORT = "import"
    DEFAULT = "default"
    SOME = "some"
    EVERY = "every"
    IF = "if"
    ELSE = "else"
    CONTAINS = "contains"
    WITH = "with"
    AS = "as"
    IN = "in"
    NOT = "not"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"

    # Operators
    ASSIGN = ":="
    UNIFY = "="
    EQ = "=="
    NEQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    AMP = "&"
    PIPE = "|"
    BANG = "!"

    # Punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    DOT = "."
    COLON = ":"
    SEMICOLON = ";"

    # Literals and names
    IDENT = "IDENT"
    NUMBER = "NUMBER"
    STRING = "STRING"
    RAW_STRING = "RAW_STRING"

    # Trivia
    WHITESPACE = "WHITESPACE"
    COMMENT = "COMMENT"

    ERROR = "ERROR"
    EOF = "EOF"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    start: int
    end: int

    @property
    def is_trivia(self) -> bool:
        return self.kind in TRIVIA


KEYWORDS: dict[str, TokenKind] = {
    kind.value: kind
    for kind in (
        TokenKind.PACKAGE,
        TokenKind.IMPORT,
        TokenKind.DEFAULT,
        TokenKind.SOME,
        TokenKind.EVERY,
        TokenKind.IF,
        TokenKind.ELSE,
        TokenKind.CONTAINS,
        TokenKind.WITH,
        TokenKind.AS,
        TokenKind.IN,
        TokenKind.NOT,
        TokenKind.TRUE,
        TokenKind.FALSE,
        TokenKind.NULL,
    )
}

TRIVIA = frozenset({TokenKind.WHITESPACE, TokenKind.COMMENT})

# Longest match first.
_TWO_CHAR_OPERATORS: dict[str, TokenKind] = {
    ":=": TokenKind.ASSIGN,
    "==": TokenKind.EQ,
    "!=": TokenKind.NEQ,
    "<=": TokenKind.LTE,
    ">=": TokenKind.GTE,
}

_ONE_CHAR_TOKENS: dict[str, TokenKind] = {
    "=": TokenKind.UNIFY,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    "&": TokenKind.AMP,
    "|": TokenKind.PIPE,
    "!": TokenKind.BANG,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
}


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_ident_char(ch: str) -> bool:
    return _is_ident_start(ch) or ch.isdigit()


def tokenize(source: str) -> list[Token]:
    """Split *source* into tokens, trivia included. No EOF token is appended."""
    tokens: list[Token] = []
    pos = 0
    length = len(source)

    while pos < length:
        ch = source[pos]
        start = pos

        if ch.isspace():
            while pos < length and source[pos].isspace():
                pos += 1
            kind = TokenKind.WHITESPACE
        elif ch == "#":
            newline = source.find("\n", pos)
            pos = length if newline == -1 else newline
            kind = TokenKind.COMMENT
        elif ch == '"':
            pos, terminated = _scan_string(source, pos)
            kind = TokenKind.STRING if terminated else TokenKind.ERROR
        elif ch == "`":
            close = source.find("`", pos + 1)
            if close == -1:
                pos = length
                kind = TokenKind.ERROR
            else:
                pos = close + 1
                kind = TokenKind.RAW_STRING
        elif ch.isdigit():
            pos = _scan_number(source, pos)
            kind = TokenKind.NUMBER
        elif _is_ident_start(ch):
            while pos < length and _is_ident_char(source[pos]):
                pos += 1
            kind = KEYWORDS.get(source[start:pos], TokenKind.IDENT)
        elif source[pos : pos + 2] in _TWO_CHAR_OPERATORS:
            kind = _TWO_CHAR_OPERATORS[source[pos : pos + 2]]
            pos += 2
        elif ch in _ONE_CHAR_TOKENS:
            kind = _ONE_CHAR_TOKENS[ch]
            pos += 1
        else:
            pos += 1
            kind = TokenKind.ERROR

        tokens.append(Token(kind, source[start:pos], start, pos))

    return tokens


def _scan_string(source: str, pos: int) -> tuple[int, bool]:
    """Scan a double-quoted string starting at *pos*; stops at end of line if unterminated."""
    length = len(source)
    pos += 1
    while pos < length:
        ch = source[pos]
        if ch == "\\":
            if pos + 1 < length and source[pos + 1] == "\n":
                return pos + 1, False
            pos += 2
            continue
        if ch == '"':
            return pos + 1, True
        if ch == "\n":
            return pos, False
        pos += 1
    return min(pos, length), False


def _scan_number(source: str, pos: int) -> int:
    length = len(source)
    while pos < length and source[pos].isdigit():
        pos += 1
    if pos + 1 < length and source[pos] == "." and source[pos + 1].isdigit():
        pos += 1
        while pos < length and source[pos].isdigit():
            pos += 1
    if pos < length and source[pos] in "eE":
        exp = pos + 1
        if exp < length and source[exp] in "+-":
            exp += 1
        if exp < length and source[exp].isdigit():
            pos = exp
            while pos < length and source[pos].isdigit():
                pos += 1
    return pos
