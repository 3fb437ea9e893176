"""Arith exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from arith.lexer import Token


class ArithError(Exception):
    """Base exception for all Arith errors."""


class ArithConfigError(ArithError):
    """Raised for invalid user configuration."""


# ---------------------------------------------------------------------------
# Positioned errors (lexing and parsing)
# ---------------------------------------------------------------------------


class _PositionedError(ArithError):
    """An error tied to a character offset in the source text."""

    def __init__(self, message: str, *, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.position = position


class LexError(_PositionedError):
    """Raised when the source text cannot be split into tokens."""


class UnrecognizedCharacter(LexError):
    def __init__(self, char: str, *, position: int) -> None:
        super().__init__(f"unrecognized character {char!r}", position=position)
        self.char = char


class MalformedLiteral(LexError):
    def __init__(self, text: str, *, position: int) -> None:
        super().__init__(
            f"malformed number {text!r} (expected digits on both sides of '.')",
            position=position,
        )
        self.text = text


class LiteralOverflow(LexError):
    def __init__(self, text: str, *, position: int) -> None:
        super().__init__(f"number {text!r} is too large to represent", position=position)
        self.text = text


class ParseError(_PositionedError):
    """Raised when the token stream does not match the grammar."""


class UnexpectedToken(ParseError):
    def __init__(self, *, expected: str, found: Token) -> None:
        super().__init__(f"expected {expected}, found {found.describe()}", position=found.pos)
        self.expected = expected
        self.found = found


class UnbalancedParen(ParseError):
    """A '(' without its ')' or a ')' without its '('.

    `token` is the unmatched parenthesis; `found` is the token seen where the
    closing parenthesis was expected (the stray ')' itself when unopened).
    """

    def __init__(self, token: Token, *, found: Token | None = None) -> None:
        found = token if found is None else found
        if token.text == "(":
            message = f"unbalanced '(': expected ')', found {found.describe()}"
        else:
            message = "unbalanced ')': no matching '('"
        super().__init__(message, position=token.pos)
        self.token = token
        self.found = found


class TrailingInput(UnbalancedParen):
    """A ')' left over after a complete expression.

    Nothing else can be left over: every other token either continues the
    expression or starts an implicit multiplication.
    """

    def __init__(self, token: Token) -> None:
        super().__init__(token)


class ExpectedParenAfterFunction(ParseError):
    def __init__(self, name: str, *, found: Token, position: int) -> None:
        super().__init__(
            f"expected '(' after function name {name!r}, found {found.describe()}",
            position=position,
        )
        self.name = name
        self.found = found


class NestingTooDeep(ParseError):
    def __init__(self, limit: int, *, position: int) -> None:
        super().__init__(f"expression nests deeper than {limit} levels", position=position)
        self.limit = limit


# ---------------------------------------------------------------------------
# Evaluation errors
# ---------------------------------------------------------------------------


class EvalError(ArithError):
    """Raised when a well-formed expression cannot be computed."""


class DivisionByZero(EvalError):
    def __init__(self, message: str = "division by zero") -> None:
        super().__init__(message)


class InvalidPow(EvalError):
    def __init__(self, base: float, exponent: float) -> None:
        super().__init__(
            f"cannot raise negative base {base!r} to non-integer power {exponent!r}"
        )
        self.base = base
        self.exponent = exponent


class UnknownFunction(EvalError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown function {name!r}")
        self.name = name


class DomainError(EvalError):
    def __init__(self, function: str, argument: float) -> None:
        super().__init__(f"{function}({argument!r}) is outside the function's domain")
        self.function = function
        self.argument = argument


class NumericOverflow(EvalError):
    def __init__(self, message: str = "result is too large to represent") -> None:
        super().__init__(message)


# Union of the errors a single evaluation may raise.
EngineError = LexError | ParseError | EvalError
