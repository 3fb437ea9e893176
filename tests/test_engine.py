from __future__ import annotations

import logging
import math

import pytest

from arith.engine import evaluate, parse, tokenize
from arith.errors import (
    ArithError,
    DivisionByZero,
    ExpectedParenAfterFunction,
    LexError,
    NestingTooDeep,
    ParseError,
    UnbalancedParen,
    UnexpectedToken,
    UnknownFunction,
    UnrecognizedCharacter,
)
from arith.lexer import TokenKind


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("1+2*3", 7),
        ("(1+2)*3", 9),
        ("2^3^2", 512),
        ("2 3", 6),
        ("-2^2", -4),
        ("10-4-3", 3),
        ("2(3+4)", 14),
        ("(1+2)(3+4)", 21),
        ("2 + -3", -1),
        ("+5", 5),
        ("  42  ", 42),
    ],
)
def test_integer_results(source: str, expected: int) -> None:
    result = evaluate(source)
    assert result == expected
    assert type(result) is int


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("7/2", 3.5),
        ("1.5 + 1", 2.5),
        ("sqrt(16)", 4.0),
        ("2^(0-1)", 0.5),
        ("2 sqrt(4)", 4.0),
        ("100/10/2", 5.0),
    ],
)
def test_float_results(source: str, expected: float) -> None:
    result = evaluate(source)
    assert result == expected
    assert type(result) is float


@pytest.mark.parametrize(("a", "b"), [(7, 2), (1, 3), (-9, 4), (10, 5)])
def test_division_matches_float_quotient(a: int, b: int) -> None:
    assert evaluate(f"{a}/{b}") == float(a) / float(b)


def test_nested_function_calls() -> None:
    assert math.isclose(evaluate("sin(cos(0))"), math.sin(1.0))
    assert evaluate("abs(-3) + sqrt(9)") == 6.0


def test_division_by_zero() -> None:
    with pytest.raises(DivisionByZero):
        evaluate("1/0")


def test_empty_input() -> None:
    with pytest.raises(UnexpectedToken) as excinfo:
        evaluate("")
    assert excinfo.value.found.kind is TokenKind.END


def test_whitespace_only_input() -> None:
    with pytest.raises(ParseError):
        evaluate("   ")


def test_unclosed_paren() -> None:
    with pytest.raises(UnbalancedParen):
        evaluate("(1+2")


def test_unknown_function_fails_at_evaluation() -> None:
    tree = parse("foo(1)")
    assert tree is not None
    with pytest.raises(UnknownFunction):
        evaluate("foo(1)")


def test_bare_identifier() -> None:
    with pytest.raises(ExpectedParenAfterFunction):
        evaluate("x + 1")


def test_lex_error_surfaces_through_evaluate() -> None:
    with pytest.raises(UnrecognizedCharacter) as excinfo:
        evaluate("1 + 2 $ 3")
    assert excinfo.value.position == 6


def test_all_failures_share_a_base_class() -> None:
    for source in ["1/0", "", "(1", "foo(1)", "1 @ 2", "5."]:
        with pytest.raises(ArithError):
            evaluate(source)


def test_max_depth_is_forwarded() -> None:
    source = "(" * 5 + "1" + ")" * 5
    assert evaluate(source) == 1
    with pytest.raises(NestingTooDeep):
        evaluate(source, max_depth=3)


def test_deep_parens_at_default_limit_fail_cleanly() -> None:
    source = "(" * 1000 + "1" + ")" * 1000
    with pytest.raises(NestingTooDeep):
        evaluate(source)


def test_tokenize_is_eager_and_ends_with_end() -> None:
    tokens = tokenize("sin(2)")
    assert [t.kind for t in tokens] == [
        TokenKind.IDENT,
        TokenKind.LPAREN,
        TokenKind.INT,
        TokenKind.RPAREN,
        TokenKind.END,
    ]


def test_tokenize_raises_lex_errors() -> None:
    with pytest.raises(LexError):
        tokenize("2 # 3")


def test_repeated_evaluation_is_stable() -> None:
    results = {evaluate("sin(1) + 2^10 / 3") for _ in range(5)}
    assert len(results) == 1


def test_debug_logging(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="arith")
    evaluate("2 (3 + 4)")
    messages = [r.getMessage() for r in caplog.records]
    assert "Parsed '2 (3 + 4)' into a tree of depth 3" in messages
    assert "Evaluated tree to int 14" in messages


@pytest.mark.parametrize(
    ("separator", "expected"),
    [("+", 10_000), ("-", 1 - 9_999), (" ", 1), ("*", 1), ("/", 1.0)],
)
def test_long_flat_chains_evaluate(separator: str, expected: int | float) -> None:
    assert evaluate(separator.join(["1"] * 10_000)) == expected


def test_long_chain_of_calls_and_groups() -> None:
    source = " ".join(["abs(-1)"] * 3_000) + " + " + "+".join(["(1)"] * 3_000)
    assert evaluate(source) == 3_001.0
