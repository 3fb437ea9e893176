"""Tokenizer for arithmetic expressions.

Tokens are produced lazily: the parser pulls them one at a time, so a bad
character late in the input only surfaces once the parser reaches it.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from arith.errors import LiteralOverflow, MalformedLiteral, UnrecognizedCharacter

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

_DIGITS = frozenset("0123456789")


class TokenKind(Enum):
    """All lexical token types produced by the tokenizer."""

    INT = "integer"
    FLT = "float"
    PLUS = "'+'"
    MINUS = "'-'"
    STAR = "'*'"
    SLASH = "'/'"
    CARET = "'^'"
    LPAREN = "'('"
    RPAREN = "')'"
    IDENT = "identifier"
    END = "end of input"


_SINGLE_CHAR: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "^": TokenKind.CARET,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token."""

    kind: TokenKind
    text: str  # raw text of the token (e.g. "3.14", "+", "sin"); "" for END
    pos: int  # 0-based character offset in the input string
    value: int | float | None = None  # numeric value for INT/FLT

    def describe(self) -> str:
        """Human-readable form for error messages."""
        if self.kind is TokenKind.END:
            return "end of input"
        if self.kind in (TokenKind.INT, TokenKind.FLT, TokenKind.IDENT):
            return f"{self.kind.value} {self.text!r}"
        return self.kind.value


def _is_letter(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def _scan_number(source: str, start: int) -> Token:
    n = len(source)
    i = start
    while i < n and source[i] in _DIGITS:
        i += 1

    if i < n and source[i] == ".":
        i += 1
        frac_start = i
        while i < n and source[i] in _DIGITS:
            i += 1
        if i == frac_start or (i < n and source[i] == "."):
            # "5." or "1.2.3": swallow the rest of the run for the message.
            while i < n and (source[i] in _DIGITS or source[i] == "."):
                i += 1
            raise MalformedLiteral(source[start:i], position=start)
        text = source[start:i]
        value = float(text)
        if math.isinf(value):
            raise LiteralOverflow(text, position=start)
        return Token(TokenKind.FLT, text, start, value)

    text = source[start:i]
    # Wider than a signed 64-bit integer: keep magnitude, lose exactness.
    # Very long runs never reach int(), which caps the digits it converts.
    if len(text.lstrip("0")) > len(str(INT_MAX)) or int(text) > INT_MAX:
        value = float(text)
        if math.isinf(value):
            raise LiteralOverflow(text, position=start)
        return Token(TokenKind.FLT, text, start, value)
    return Token(TokenKind.INT, text, start, int(text))


def iter_tokens(source: str) -> Iterator[Token]:
    """Yield tokens from `source` on demand, finishing with a single END token."""

    n = len(source)
    i = 0
    while i < n:
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in _DIGITS:
            tok = _scan_number(source, i)
            i += len(tok.text)
            yield tok
            continue

        if ch == ".":
            j = i + 1
            while j < n and (source[j] in _DIGITS or source[j] == "."):
                j += 1
            raise MalformedLiteral(source[i:j], position=i)

        if _is_letter(ch):
            start = i
            while i < n and _is_letter(source[i]):
                i += 1
            yield Token(TokenKind.IDENT, source[start:i], start)
            continue

        kind = _SINGLE_CHAR.get(ch)
        if kind is None:
            raise UnrecognizedCharacter(ch, position=i)
        yield Token(kind, ch, i)
        i += 1

    yield Token(TokenKind.END, "", n)


class Lexer:
    """Restartable token stream over a source string.

    Each call to `iter()` scans from the beginning again; nothing is cached.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return iter_tokens(self.source)

    def __repr__(self) -> str:
        return f"Lexer({self.source!r})"
