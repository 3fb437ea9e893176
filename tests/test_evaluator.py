from __future__ import annotations

import math

import pytest

from arith.errors import (
    DivisionByZero,
    DomainError,
    InvalidPow,
    NumericOverflow,
    UnknownFunction,
)
from arith.evaluator import evaluate_tree
from arith.lexer import INT_MAX, INT_MIN
from arith.nodes import (
    BinaryOp,
    BinaryOperator,
    FunctionCall,
    Node,
    NumberLiteral,
    Sign,
    UnaryOp,
)


def num(value: int | float) -> NumberLiteral:
    return NumberLiteral(value)


def binop(op: BinaryOperator, left: int | float, right: int | float) -> BinaryOp:
    return BinaryOp(op, num(left), num(right))


# --- promotion ---


@pytest.mark.parametrize(
    ("op", "expected"),
    [(BinaryOperator.ADD, 9), (BinaryOperator.SUB, 5), (BinaryOperator.MUL, 14)],
)
def test_integer_operations_stay_integer(op: BinaryOperator, expected: int) -> None:
    result = evaluate_tree(binop(op, 7, 2))
    assert result == expected
    assert type(result) is int


@pytest.mark.parametrize("op", [BinaryOperator.ADD, BinaryOperator.SUB, BinaryOperator.MUL])
def test_float_operand_promotes(op: BinaryOperator) -> None:
    assert type(evaluate_tree(binop(op, 7, 2.0))) is float
    assert type(evaluate_tree(binop(op, 7.0, 2))) is float


def test_integer_division_is_true_division() -> None:
    result = evaluate_tree(binop(BinaryOperator.DIV, 7, 2))
    assert result == 3.5
    assert type(result) is float


def test_exact_integer_division_is_still_float() -> None:
    result = evaluate_tree(binop(BinaryOperator.DIV, 6, 3))
    assert result == 2.0
    assert type(result) is float


def test_integer_power_stays_integer() -> None:
    result = evaluate_tree(binop(BinaryOperator.POW, 2, 10))
    assert result == 1024
    assert type(result) is int


def test_negative_integer_exponent_gives_float() -> None:
    tree = BinaryOp(BinaryOperator.POW, num(2), UnaryOp(Sign.MINUS, num(1)))
    result = evaluate_tree(tree)
    assert result == 0.5
    assert type(result) is float


def test_fractional_exponent_gives_float() -> None:
    assert evaluate_tree(binop(BinaryOperator.POW, 9, 0.5)) == 3.0


def test_integer_overflow_promotes_to_float() -> None:
    result = evaluate_tree(binop(BinaryOperator.ADD, INT_MAX, 1))
    assert type(result) is float
    assert result == float(INT_MAX) + 1.0


def test_integer_product_overflow_promotes_to_float() -> None:
    result = evaluate_tree(binop(BinaryOperator.MUL, INT_MAX, INT_MAX))
    assert type(result) is float


def test_integer_min_is_representable() -> None:
    tree = BinaryOp(BinaryOperator.SUB, UnaryOp(Sign.MINUS, num(INT_MAX)), num(1))
    result = evaluate_tree(tree)
    assert result == INT_MIN
    assert type(result) is int


def test_negating_integer_min_promotes() -> None:
    inner = BinaryOp(BinaryOperator.SUB, UnaryOp(Sign.MINUS, num(INT_MAX)), num(1))
    result = evaluate_tree(UnaryOp(Sign.MINUS, inner))
    assert type(result) is float
    assert result == 2.0**63


def test_large_integer_power_promotes_to_float() -> None:
    result = evaluate_tree(binop(BinaryOperator.POW, 2, 64))
    assert type(result) is float
    assert result == 2.0**64
    assert evaluate_tree(binop(BinaryOperator.POW, 2, 100)) == 2.0**100


def test_trivial_bases_with_huge_exponents_stay_integer() -> None:
    assert evaluate_tree(binop(BinaryOperator.POW, 1, 10**12)) == 1
    assert evaluate_tree(binop(BinaryOperator.POW, -1, 10**12 + 1)) == -1
    assert evaluate_tree(binop(BinaryOperator.POW, 0, 10**12)) == 0


# --- unary ---


def test_unary_minus_preserves_tag() -> None:
    assert evaluate_tree(UnaryOp(Sign.MINUS, num(3))) == -3
    assert type(evaluate_tree(UnaryOp(Sign.MINUS, num(3)))) is int
    assert type(evaluate_tree(UnaryOp(Sign.MINUS, num(3.0)))) is float


def test_unary_plus_is_identity() -> None:
    assert evaluate_tree(UnaryOp(Sign.PLUS, num(3))) == 3


# --- failures ---


@pytest.mark.parametrize("zero", [0, 0.0, -0.0])
def test_division_by_zero(zero: int | float) -> None:
    with pytest.raises(DivisionByZero):
        evaluate_tree(binop(BinaryOperator.DIV, 1, zero))


def test_zero_to_negative_power_is_division_by_zero() -> None:
    tree = BinaryOp(BinaryOperator.POW, num(0), UnaryOp(Sign.MINUS, num(1)))
    with pytest.raises(DivisionByZero):
        evaluate_tree(tree)


def test_negative_base_fractional_exponent_is_invalid() -> None:
    tree = BinaryOp(BinaryOperator.POW, UnaryOp(Sign.MINUS, num(8)), num(0.5))
    with pytest.raises(InvalidPow) as excinfo:
        evaluate_tree(tree)
    assert excinfo.value.base == -8.0
    assert excinfo.value.exponent == 0.5


def test_negative_base_integral_float_exponent_is_fine() -> None:
    tree = BinaryOp(BinaryOperator.POW, UnaryOp(Sign.MINUS, num(2)), num(2.0))
    assert evaluate_tree(tree) == 4.0


def test_float_power_overflow() -> None:
    with pytest.raises(NumericOverflow):
        evaluate_tree(binop(BinaryOperator.POW, 10.0, 400))


def test_float_product_overflow() -> None:
    with pytest.raises(NumericOverflow):
        evaluate_tree(binop(BinaryOperator.MUL, 1e308, 10.0))


def test_float_quotient_overflow() -> None:
    with pytest.raises(NumericOverflow):
        evaluate_tree(binop(BinaryOperator.DIV, 1e308, 1e-308))


# --- function calls ---


def test_function_call_returns_float() -> None:
    result = evaluate_tree(FunctionCall("sqrt", num(16)))
    assert result == 4.0
    assert type(result) is float


def test_abs_of_integer_returns_float() -> None:
    result = evaluate_tree(FunctionCall("abs", UnaryOp(Sign.MINUS, num(3))))
    assert result == 3.0
    assert type(result) is float


def test_unknown_function() -> None:
    with pytest.raises(UnknownFunction) as excinfo:
        evaluate_tree(FunctionCall("foo", num(1)))
    assert excinfo.value.name == "foo"


def test_function_names_are_case_sensitive() -> None:
    with pytest.raises(UnknownFunction):
        evaluate_tree(FunctionCall("SIN", num(1)))


def test_argument_is_evaluated_before_lookup() -> None:
    # The argument's own failure wins over the unknown name.
    with pytest.raises(DivisionByZero):
        evaluate_tree(FunctionCall("foo", binop(BinaryOperator.DIV, 1, 0)))


@pytest.mark.parametrize(
    ("name", "arg"),
    [("sqrt", -1.0), ("ln", 0.0), ("ln", -2.0), ("asin", 2.0), ("acos", -1.5), ("csc", 0.0)],
)
def test_domain_errors(name: str, arg: float) -> None:
    with pytest.raises(DomainError) as excinfo:
        evaluate_tree(FunctionCall(name, num(arg)))
    assert excinfo.value.function == name


def test_exp_overflow() -> None:
    with pytest.raises(NumericOverflow):
        evaluate_tree(FunctionCall("exp", num(1000)))


def test_left_operand_failure_wins() -> None:
    tree = BinaryOp(
        BinaryOperator.ADD,
        FunctionCall("sqrt", num(-1)),
        FunctionCall("nope", num(1)),
    )
    with pytest.raises(DomainError):
        evaluate_tree(tree)


# --- purity ---


def test_evaluating_twice_gives_identical_results() -> None:
    tree = BinaryOp(
        BinaryOperator.ADD,
        FunctionCall("sin", num(1)),
        binop(BinaryOperator.POW, 2, 3),
    )
    first = evaluate_tree(tree)
    second = evaluate_tree(tree)
    assert first == second
    assert type(first) is type(second)
    assert math.isclose(first, math.sin(1) + 8)


def test_very_deep_unary_chain() -> None:
    tree: NumberLiteral | UnaryOp = num(1)
    for _ in range(50_000):
        tree = UnaryOp(Sign.MINUS, tree)
    assert evaluate_tree(tree) == 1


def test_left_deep_sum_beyond_recursion_limit() -> None:
    tree: Node = num(1)
    for _ in range(9_999):
        tree = BinaryOp(BinaryOperator.ADD, tree, num(1))
    assert evaluate_tree(tree) == 10_000


def test_deep_chain_still_reports_first_failure() -> None:
    tree: Node = binop(BinaryOperator.DIV, 1, 0)
    for _ in range(5_000):
        tree = BinaryOp(BinaryOperator.MUL, tree, FunctionCall("nope", num(1)))
    with pytest.raises(DivisionByZero):
        evaluate_tree(tree)


def test_non_node_is_rejected() -> None:
    with pytest.raises(TypeError):
        evaluate_tree("1 + 1")  # type: ignore[arg-type]
