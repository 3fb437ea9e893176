from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from arith.engine import evaluate, parse, tokenize
from arith.errors import (
    ArithConfigError,
    ArithError,
    DivisionByZero,
    DomainError,
    EngineError,
    EvalError,
    ExpectedParenAfterFunction,
    InvalidPow,
    LexError,
    LiteralOverflow,
    MalformedLiteral,
    NestingTooDeep,
    NumericOverflow,
    ParseError,
    TrailingInput,
    UnbalancedParen,
    UnexpectedToken,
    UnknownFunction,
    UnrecognizedCharacter,
)
from arith.evaluator import evaluate_tree
from arith.nodes import from_records, render_tree, to_records, to_source


def _package_version() -> str:
    try:
        return version("arith")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "__version__",
    "evaluate",
    "evaluate_tree",
    "from_records",
    "parse",
    "render_tree",
    "to_records",
    "to_source",
    "tokenize",
    "ArithError",
    "ArithConfigError",
    "EngineError",
    "LexError",
    "UnrecognizedCharacter",
    "MalformedLiteral",
    "LiteralOverflow",
    "ParseError",
    "UnexpectedToken",
    "UnbalancedParen",
    "TrailingInput",
    "ExpectedParenAfterFunction",
    "NestingTooDeep",
    "EvalError",
    "DivisionByZero",
    "InvalidPow",
    "UnknownFunction",
    "DomainError",
    "NumericOverflow",
]
