"""Recursive-descent parser.

One method per grammar production; precedence falls out of which method
calls which:

    pg         := expr END
    expr       := term (('+' | '-') term)*
    term       := factor (('*' | '/')? factor)*
    factor     := ('+' | '-')? pow
    pow        := atomic ('^' pow)?
    atomic     := INT | FLT | IDENT paren_expr | paren_expr
    paren_expr := '(' expr ')'
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from arith.errors import (
    ExpectedParenAfterFunction,
    NestingTooDeep,
    TrailingInput,
    UnbalancedParen,
    UnexpectedToken,
)
from arith.lexer import Token, TokenKind
from arith.nodes import (
    BinaryOp,
    BinaryOperator,
    FunctionCall,
    Node,
    NumberLiteral,
    Sign,
    UnaryOp,
)

# Every nesting level costs several interpreter frames (pow -> atomic ->
# paren_expr -> expr -> term -> factor), so stay well under the default
# recursion limit.
DEFAULT_MAX_DEPTH = 100

_ADDITIVE = {TokenKind.PLUS: BinaryOperator.ADD, TokenKind.MINUS: BinaryOperator.SUB}
_MULTIPLICATIVE = {TokenKind.STAR: BinaryOperator.MUL, TokenKind.SLASH: BinaryOperator.DIV}
_SIGNS = {TokenKind.PLUS: Sign.PLUS, TokenKind.MINUS: Sign.MINUS}

# Tokens that start a factor without a sign. A sign is deliberately absent:
# "1 - 2" is a subtraction, never "1 * (-2)".
_JUXTAPOSABLE = frozenset({TokenKind.INT, TokenKind.FLT, TokenKind.IDENT, TokenKind.LPAREN})


class Parser:
    """Builds an AST from a token stream, pulling one token of lookahead."""

    def __init__(self, tokens: Iterable[Token], *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        self._tokens: Iterator[Token] = iter(tokens)
        self._current: Token | None = None
        self._last_pos = 0
        self._depth = 0
        self.max_depth = max_depth

    # -- token helpers ------------------------------------------------------

    def _peek(self) -> Token:
        if self._current is None:
            tok = next(self._tokens, None)
            if tok is None:
                # Hand-built streams may omit END; synthesize one.
                tok = Token(TokenKind.END, "", self._last_pos)
            self._current = tok
        return self._current

    def _advance(self) -> Token:
        tok = self._peek()
        if tok.kind is not TokenKind.END:
            self._current = None
            self._last_pos = tok.pos + len(tok.text)
        return tok

    # -- productions --------------------------------------------------------

    def parse(self) -> Node:
        """pg: one complete expression followed by END."""
        node = self._expr()
        tok = self._peek()
        # _expr stops only at END or a ')' it has no '(' for.
        if tok.kind is not TokenKind.END:
            raise TrailingInput(tok)
        return node

    def _expr(self) -> Node:
        node = self._term()
        while (op := _ADDITIVE.get(self._peek().kind)) is not None:
            self._advance()
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._factor()
        while True:
            kind = self._peek().kind
            op = _MULTIPLICATIVE.get(kind)
            if op is not None:
                self._advance()
            elif kind in _JUXTAPOSABLE:
                op = BinaryOperator.MUL
            else:
                return node
            node = BinaryOp(op, node, self._factor())

    def _factor(self) -> Node:
        sign = _SIGNS.get(self._peek().kind)
        if sign is None:
            return self._pow()
        self._advance()
        return UnaryOp(sign, self._pow())

    def _pow(self) -> Node:
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise NestingTooDeep(self.max_depth, position=self._peek().pos)
            base = self._atomic()
            if self._peek().kind is not TokenKind.CARET:
                return base
            self._advance()
            return BinaryOp(BinaryOperator.POW, base, self._pow())
        finally:
            self._depth -= 1

    def _atomic(self) -> Node:
        tok = self._peek()

        if tok.kind in (TokenKind.INT, TokenKind.FLT):
            self._advance()
            assert tok.value is not None
            return NumberLiteral(tok.value)

        if tok.kind is TokenKind.IDENT:
            self._advance()
            nxt = self._peek()
            if nxt.kind is not TokenKind.LPAREN:
                raise ExpectedParenAfterFunction(tok.text, found=nxt, position=nxt.pos)
            return FunctionCall(tok.text, self._paren_expr())

        if tok.kind is TokenKind.LPAREN:
            return self._paren_expr()

        raise UnexpectedToken(expected="an expression", found=tok)

    def _paren_expr(self) -> Node:
        opening = self._advance()
        if opening.kind is not TokenKind.LPAREN:
            raise UnexpectedToken(expected="'('", found=opening)

        node = self._expr()

        closing = self._peek()
        if closing.kind is not TokenKind.RPAREN:
            raise UnbalancedParen(opening, found=closing)
        self._advance()
        return node


def parse_tokens(tokens: Iterable[Token], *, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Parse a complete expression from `tokens`."""
    return Parser(tokens, max_depth=max_depth).parse()
