"""Error formatting and actionable hints for Arith CLI output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy and the function registry.
"""

from __future__ import annotations

from arith import functions
from arith.errors import (
    ArithConfigError,
    ExpectedParenAfterFunction,
    InvalidPow,
    LexError,
    MalformedLiteral,
    NestingTooDeep,
    ParseError,
    UnknownFunction,
)


def error_position(exc: BaseException) -> int | None:
    """Character offset carried by lex/parse errors, or None."""
    if isinstance(exc, (LexError, ParseError)):
        return exc.position
    return None


def format_caret(source: str, position: int) -> str:
    """Two-line excerpt: the source and a caret under `position`."""
    line = source.replace("\n", " ").replace("\t", " ")
    position = max(0, min(position, len(line)))
    return f"  {line}\n  {' ' * position}^"


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""

    if isinstance(exc, UnknownFunction):
        return "available functions: " + ", ".join(functions.names())

    if isinstance(exc, ExpectedParenAfterFunction):
        return "names are only valid as function calls, e.g. sin(1); variables are not supported"

    if isinstance(exc, MalformedLiteral):
        return "write decimals with digits on both sides, e.g. 0.5 or 5.0"

    if isinstance(exc, NestingTooDeep):
        return "raise engine.max_depth in arith.toml or pass --max-depth"

    if isinstance(exc, InvalidPow):
        return "results that would be complex numbers are not supported"

    if isinstance(exc, ArithConfigError):
        if "version" in str(exc):
            return "start arith.toml with `version = 1`"
        return "fix or remove arith.toml"

    return None


def format_error_with_hint(exc: BaseException, *, source: str | None = None) -> str:
    """Format error message, optional caret excerpt and hint for stderr output."""
    msg = (str(exc) or repr(exc)).strip()

    result = f"error: {msg}"
    position = error_position(exc)
    if source is not None and position is not None:
        result += "\n" + format_caret(source, position)
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result


def error_kind(exc: BaseException) -> str:
    """Stable machine-readable name for JSON output."""
    return type(exc).__name__


def format_file_failures(failed: dict[int, str]) -> str:
    """Summarize failed lines of an expression file for stderr."""
    if not failed:
        return ""
    lines = [f"Evaluation failed for {len(failed)} line(s):\n"]
    for lineno in sorted(failed):
        lines.append(f"  line {lineno}: {failed[lineno]}")
    return "\n".join(lines).rstrip() + "\n"
