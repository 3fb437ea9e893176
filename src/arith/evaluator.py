"""Tree-walking evaluator.

A pure function of the tree: no state, no side effects, left operand before
right. Numbers are plain Python values whose type is the tag: `int` results
stay `int` for `+ - *` and non-negative integer powers as long as they fit a
signed 64-bit word; everything else is `float`.
"""

from __future__ import annotations

import logging
import math

from arith import functions
from arith.errors import (
    DivisionByZero,
    DomainError,
    InvalidPow,
    NumericOverflow,
    UnknownFunction,
)
from arith.lexer import INT_MAX, INT_MIN
from arith.nodes import BinaryOp, BinaryOperator, FunctionCall, Node, NumberLiteral, Sign, UnaryOp

logger = logging.getLogger("arith.evaluator")

Number = int | float


def _fit(value: int) -> Number:
    """Keep `value` as an int when it fits 64 bits, otherwise promote it."""
    if INT_MIN <= value <= INT_MAX:
        return value
    try:
        return float(value)
    except OverflowError as e:
        raise NumericOverflow() from e


def _negate(value: Number) -> Number:
    if isinstance(value, int):
        return _fit(-value)
    return -value


def _finite(value: float, left: Number, right: Number) -> float:
    """Reject an infinity produced from finite operands."""
    if math.isinf(value) and math.isfinite(left) and math.isfinite(right):
        raise NumericOverflow()
    return value


def _divide(left: Number, right: Number) -> float:
    if right == 0:
        raise DivisionByZero()
    return _finite(left / right, left, right)


def _power(base: Number, exponent: Number) -> Number:
    if isinstance(base, int) and isinstance(exponent, int) and exponent >= 0:
        # Anything past 63 bits is promoted anyway; don't build huge ints.
        if abs(base) > 1 and exponent > 64:
            return _float_power(float(base), float(exponent))
        return _fit(base**exponent)
    return _float_power(float(base), float(exponent))


def _float_power(base: float, exponent: float) -> float:
    if base < 0 and not exponent.is_integer():
        raise InvalidPow(base, exponent)
    try:
        return math.pow(base, exponent)
    except ValueError as e:
        if base == 0 and exponent < 0:
            raise DivisionByZero("zero raised to a negative power") from e
        raise InvalidPow(base, exponent) from e
    except OverflowError as e:
        raise NumericOverflow() from e


def _apply_binary(op: BinaryOperator, left: Number, right: Number) -> Number:
    both_int = isinstance(left, int) and isinstance(right, int)
    if op is BinaryOperator.ADD:
        return _fit(left + right) if both_int else _finite(left + right, left, right)
    if op is BinaryOperator.SUB:
        return _fit(left - right) if both_int else _finite(left - right, left, right)
    if op is BinaryOperator.MUL:
        return _fit(left * right) if both_int else _finite(left * right, left, right)
    if op is BinaryOperator.DIV:
        return _divide(left, right)
    return _power(left, right)


def _call(name: str, argument: Number) -> float:
    builtin = functions.lookup(name)
    if builtin is None:
        raise UnknownFunction(name)
    x = float(argument)
    try:
        return float(builtin(x))
    except (ValueError, ZeroDivisionError) as e:
        raise DomainError(name, x) from e
    except OverflowError as e:
        raise NumericOverflow(f"{name}({x!r}) is too large to represent") from e


def _children(node: Node) -> tuple[Node, ...]:
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, UnaryOp):
        return (node.operand,)
    if isinstance(node, FunctionCall):
        return (node.argument,)
    raise TypeError(f"not an AST node: {node!r}")


def _reduce(node: Node, values: list[Number]) -> Number:
    """Combine the already computed operands of `node` popped off `values`."""
    if isinstance(node, BinaryOp):
        right = values.pop()
        left = values.pop()
        return _apply_binary(node.op, left, right)
    value = values.pop()
    if isinstance(node, UnaryOp):
        return _negate(value) if node.sign is Sign.MINUS else value
    assert isinstance(node, FunctionCall)
    return _call(node.name, value)


def evaluate_tree(node: Node) -> Number:
    """Compute the value of `node`.

    Post-order walk over an explicit stack, left operand first; the height
    of the tree is not bounded by the interpreter's recursion limit.

    Raises an `EvalError` subclass on division by zero, invalid powers,
    unknown functions and domain/range failures of built-ins.
    """
    values: list[Number] = []
    stack: list[tuple[Node, bool]] = [(node, False)]
    while stack:
        cur, operands_done = stack.pop()
        if isinstance(cur, NumberLiteral):
            values.append(cur.value)
        elif operands_done:
            values.append(_reduce(cur, values))
        else:
            stack.append((cur, True))
            stack.extend((child, False) for child in reversed(_children(cur)))
    result = values.pop()
    logger.debug("Evaluated tree to %s %r", type(result).__name__, result)
    return result
