"""MCP server for Arith: exposes evaluate/parse_tree/list_functions as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import json

from arith import functions
from arith.diagnostics import error_kind, error_position, format_hint
from arith.engine import evaluate, parse
from arith.errors import ArithError
from arith.nodes import render_tree, to_records, to_source
from arith.parser import DEFAULT_MAX_DEPTH

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def _error_envelope(command: str, expression: str, exc: ArithError) -> str:
    payload: dict[str, object] = {
        "command": command,
        "ok": False,
        "expression": expression,
        "error": str(exc),
        "kind": error_kind(exc),
        "position": error_position(exc),
    }
    hint = format_hint(exc)
    if hint:
        payload["hint"] = hint
    return json.dumps(payload)


def tool_evaluate(expression: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Evaluate an expression and return a JSON result envelope."""
    try:
        value = evaluate(expression, max_depth=max_depth)
    except ArithError as e:
        return _error_envelope("evaluate", expression, e)
    return json.dumps(
        {
            "command": "evaluate",
            "ok": True,
            "expression": expression,
            "result": value,
            "type": type(value).__name__,
        }
    )


def tool_parse_tree(expression: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Parse an expression; return its tree drawing, canonical form and records."""
    try:
        tree = parse(expression, max_depth=max_depth)
    except ArithError as e:
        return _error_envelope("parse_tree", expression, e)
    return json.dumps(
        {
            "command": "parse_tree",
            "ok": True,
            "expression": expression,
            "tree": render_tree(tree),
            "canonical": to_source(tree),
            "ast": to_records(tree),
        }
    )


def tool_list_functions() -> str:
    """List the built-in functions with one-line summaries."""
    return json.dumps(
        {
            "command": "list_functions",
            "ok": True,
            "functions": [
                {"name": name, "summary": functions.BUILTINS[name].summary}
                for name in functions.names()
            ],
        }
    )


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def check_fastmcp_available() -> None:
    """Raise ImportError with a helpful message if fastmcp is not installed."""
    import importlib

    try:
        importlib.import_module("fastmcp")
    except ImportError:
        raise ImportError(
            "fastmcp is required for the MCP server. Install it with: pip install arith[mcp]"
        ) from None


def create_mcp_server(*, max_depth: int = DEFAULT_MAX_DEPTH):
    """Create and return a FastMCP server with arith tools registered.

    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    mcp = FastMCP("arith", instructions="Arithmetic expression engine")

    @mcp.tool()
    def arith_evaluate(expression: str) -> str:
        """Evaluate an arithmetic expression.

        Supports + - * / ^, parentheses, implicit multiplication such as
        `2(3)`, and one-argument functions such as sin(x) or sqrt(x).
        Returns JSON with the result and its type, or the error.
        """
        return tool_evaluate(expression, max_depth=max_depth)

    @mcp.tool()
    def arith_parse_tree(expression: str) -> str:
        """Parse an expression and return its syntax tree without evaluating it."""
        return tool_parse_tree(expression, max_depth=max_depth)

    @mcp.tool()
    def arith_list_functions() -> str:
        """List the built-in functions available to expressions."""
        return tool_list_functions()

    return mcp


def run_server(*, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Entry point: create and run the MCP server (stdio transport)."""
    mcp = create_mcp_server(max_depth=max_depth)
    mcp.run()
