"""AST node types and the walks over them.

The tree is immutable and strictly owned: every node appears exactly once,
under its parent or as the root held by the caller. Evaluation never mutates
it, so a parsed tree can be evaluated any number of times.

Long operator chains fold into left-deep trees whose height is only bounded
by the input length, so every walk here uses an explicit stack.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class Sign(Enum):
    PLUS = "+"
    MINUS = "-"


class BinaryOperator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "^"


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    """Literal numeric value; `int` and `float` keep their own tags."""

    value: int | float


@dataclass(frozen=True, slots=True)
class UnaryOp:
    sign: Sign
    operand: Node


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: BinaryOperator
    left: Node
    right: Node


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """Call of a built-in; `name` is resolved when the tree is evaluated."""

    name: str
    argument: Node


Node = NumberLiteral | UnaryOp | BinaryOp | FunctionCall


def _label(node: Node) -> str:
    if isinstance(node, NumberLiteral):
        return repr(node.value)
    if isinstance(node, UnaryOp):
        return f"Op({node.sign.value})"
    if isinstance(node, BinaryOp):
        return f"Op({node.op.value})"
    return f"Func({node.name})"


def _operands(node: Node) -> tuple[Node, ...]:
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, UnaryOp):
        return (node.operand,)
    if isinstance(node, FunctionCall):
        return (node.argument,)
    return ()


def render_tree(node: Node) -> str:
    """Draw `node` as an indented tree, one node per line.

    >>> print(render_tree(parse("1 + 2 * 3")))
    Op(+)
    `-- 1
    `-- Op(*)
        `-- 2
        `-- 3
    """
    lines: list[str] = []
    # (node, prefix of its own line, prefix of its descendants' lines)
    stack: list[tuple[Node, str, str]] = [(node, "", "")]
    while stack:
        cur, head, rest = stack.pop()
        lines.append(head + _label(cur))
        operands = _operands(cur)
        # Every child but the last keeps the rail for the siblings below it.
        for i in reversed(range(len(operands))):
            rail = "    " if i == len(operands) - 1 and len(operands) > 1 else "|   "
            stack.append((operands[i], rest + "`-- ", rest + rail))
    return "\n".join(lines)


def _literal_text(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    # The lexer has no exponent notation, so spell floats out positionally.
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else text + ".0"


def to_source(node: Node) -> str:
    """Fully parenthesized expression text that parses back to an equal tree."""
    out: list[str] = []
    stack: list[Node | str] = [node]
    while stack:
        cur = stack.pop()
        if isinstance(cur, str):
            out.append(cur)
        elif isinstance(cur, NumberLiteral):
            out.append(_literal_text(cur.value))
        elif isinstance(cur, UnaryOp):
            stack.extend([")", cur.operand, "(" + cur.sign.value])
        elif isinstance(cur, BinaryOp):
            stack.extend([")", cur.right, f" {cur.op.value} ", cur.left, "("])
        else:
            stack.extend([")", cur.argument, cur.name + "("])
    return "".join(out)


def depth(node: Node) -> int:
    """Number of nodes on the longest root-to-leaf path."""
    deepest = 0
    stack: list[tuple[Node, int]] = [(node, 1)]
    while stack:
        cur, level = stack.pop()
        deepest = max(deepest, level)
        stack.extend((child, level + 1) for child in _operands(cur))
    return deepest


# ---------------------------------------------------------------------------
# Tagged records
# ---------------------------------------------------------------------------

_CHILD_FIELDS: dict[str, tuple[str, ...]] = {
    "NumberLiteral": (),
    "UnaryOp": ("operand",),
    "BinaryOp": ("left", "right"),
    "FunctionCall": ("argument",),
}


def _record(node: Node) -> dict[str, Any]:
    if isinstance(node, NumberLiteral):
        return {"type": "NumberLiteral", "value": node.value}
    if isinstance(node, UnaryOp):
        return {"type": "UnaryOp", "sign": node.sign.value}
    if isinstance(node, BinaryOp):
        return {"type": "BinaryOp", "op": node.op.value}
    return {"type": "FunctionCall", "name": node.name}


def to_records(node: Node) -> list[dict[str, Any]]:
    """Flatten `node` into tagged, JSON-ready records in pre-order.

    The root is record 0. Child fields (`left`, `right`, `operand`,
    `argument`) hold the index of the child's record, which is always greater
    than the parent's. The list nests no deeper than one level, so it
    serializes regardless of the tree's height.

    >>> to_records(parse("-2"))
    [{'type': 'UnaryOp', 'sign': '-', 'operand': 1}, {'type': 'NumberLiteral', 'value': 2}]
    """
    records: list[dict[str, Any]] = []
    stack: list[tuple[Node, int | None, str]] = [(node, None, "")]
    while stack:
        cur, parent, field = stack.pop()
        index = len(records)
        if parent is not None:
            records[parent][field] = index
        records.append(_record(cur))
        fields = _CHILD_FIELDS[records[index]["type"]]
        for name, child in reversed(list(zip(fields, _operands(cur)))):
            stack.append((child, index, name))
    return records


def _child_ref(rec: Mapping[str, Any], field: str, *, index: int, count: int) -> int:
    ref = rec.get(field)
    if not isinstance(ref, int) or isinstance(ref, bool) or not index < ref < count:
        raise ValueError(f"record {index}: {field!r} must reference a later record")
    return ref


def from_records(records: Sequence[Mapping[str, Any]]) -> Node:
    """Rebuild the tree written by `to_records`.

    Raises ValueError for unknown tags, bad operator symbols, dangling or
    shared child references and records that are not part of the tree.
    """
    count = len(records)
    if count == 0:
        raise ValueError("no records")

    built: list[Node | None] = [None] * count
    claimed: set[int] = set()
    for index in reversed(range(count)):
        rec = records[index]
        kind = rec.get("type")
        if not isinstance(kind, str) or kind not in _CHILD_FIELDS:
            raise ValueError(f"record {index}: unknown type {kind!r}")

        children: list[Node] = []
        for field in _CHILD_FIELDS[kind]:
            ref = _child_ref(rec, field, index=index, count=count)
            if ref in claimed:
                raise ValueError(f"record {index}: record {ref} already has a parent")
            claimed.add(ref)
            child = built[ref]
            assert child is not None
            children.append(child)

        if kind == "NumberLiteral":
            value = rec.get("value")
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"record {index}: 'value' must be a number")
            built[index] = NumberLiteral(value)
        elif kind == "UnaryOp":
            built[index] = UnaryOp(Sign(rec.get("sign")), children[0])
        elif kind == "BinaryOp":
            built[index] = BinaryOp(BinaryOperator(rec.get("op")), children[0], children[1])
        else:
            name = rec.get("name")
            if not isinstance(name, str) or not name:
                raise ValueError(f"record {index}: 'name' must be a non-empty string")
            built[index] = FunctionCall(name, children[0])

    if len(claimed) != count - 1:
        raise ValueError("records contain nodes that are not reachable from record 0")
    root = built[0]
    assert root is not None
    return root
