"""Built-in function registry.

A fixed, read-only table from name to a one-argument real function. It is
built once at import time and never mutated, so concurrent readers need no
locking. Lookup is by exact, case-sensitive name.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class Builtin:
    name: str
    func: Callable[[float], float]
    summary: str

    def __call__(self, x: float) -> float:
        return self.func(x)


def _sec(x: float) -> float:
    return 1.0 / math.cos(x)


def _csc(x: float) -> float:
    return 1.0 / math.sin(x)


def _cot(x: float) -> float:
    return 1.0 / math.tan(x)


def _asec(x: float) -> float:
    return math.acos(1.0 / x)


def _acsc(x: float) -> float:
    return math.asin(1.0 / x)


def _acot(x: float) -> float:
    if x == 0:
        # Limit of atan(1/x) from the side of the zero's sign.
        return math.copysign(math.pi / 2, x)
    return math.atan(1.0 / x)


_TABLE = (
    Builtin("sin", math.sin, "sine (radians)"),
    Builtin("cos", math.cos, "cosine (radians)"),
    Builtin("tan", math.tan, "tangent (radians)"),
    Builtin("sec", _sec, "secant, 1/cos(x)"),
    Builtin("csc", _csc, "cosecant, 1/sin(x)"),
    Builtin("cot", _cot, "cotangent, 1/tan(x)"),
    Builtin("asin", math.asin, "inverse sine, x in [-1, 1]"),
    Builtin("acos", math.acos, "inverse cosine, x in [-1, 1]"),
    Builtin("atan", math.atan, "inverse tangent"),
    Builtin("asec", _asec, "inverse secant, |x| >= 1"),
    Builtin("acsc", _acsc, "inverse cosecant, |x| >= 1"),
    Builtin("acot", _acot, "inverse cotangent"),
    Builtin("sqrt", math.sqrt, "square root, x >= 0"),
    Builtin("abs", math.fabs, "absolute value"),
    Builtin("ln", math.log, "natural logarithm, x > 0"),
    Builtin("exp", math.exp, "e raised to x"),
)

BUILTINS: MappingProxyType[str, Builtin] = MappingProxyType({b.name: b for b in _TABLE})


def lookup(name: str) -> Builtin | None:
    """Return the built-in called exactly `name`, or None."""
    return BUILTINS.get(name)


def names() -> list[str]:
    """Sorted list of built-in function names."""
    return sorted(BUILTINS)
