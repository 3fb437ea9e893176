from __future__ import annotations

import argparse
import asyncio
import json
import logging
import math
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from arith import __version__, functions
from arith.config import ArithConfig, resolve_config
from arith.diagnostics import (
    error_kind,
    error_position,
    format_error_with_hint,
    format_file_failures,
)
from arith.engine import evaluate, parse
from arith.errors import ArithConfigError, ArithError
from arith.evaluator import Number, evaluate_tree
from arith.nodes import render_tree, to_records

EXIT_OK = 0
EXIT_EVAL_ERROR = 1
EXIT_USAGE_OR_CONFIG = 2

_REPL_QUIT = frozenset({"quit", "exit"})


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to arith.toml (defaults to searching upward from cwd).",
    )
    p.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum nesting depth accepted by the parser.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def _add_precision_flag(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--precision",
        type=int,
        default=None,
        help="Significant digits for float results (default: shortest round-trip form).",
    )


def _add_json_flag(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print a machine-readable JSON document instead of text.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arith")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    eval_p = subparsers.add_parser("eval", help="Evaluate one expression.")
    eval_p.add_argument("expression", help="Expression text, e.g. '2(3 + 4)^2'.")
    _add_common_flags(eval_p)
    _add_precision_flag(eval_p)
    _add_json_flag(eval_p)
    eval_p.add_argument(
        "--tree", action="store_true", default=None, help="Print the syntax tree first."
    )

    file_p = subparsers.add_parser("file", help="Evaluate each line of a file.")
    file_p.add_argument("path", help="File with one expression per line ('#' comments).")
    _add_common_flags(file_p)
    _add_precision_flag(file_p)
    _add_json_flag(file_p)

    repl_p = subparsers.add_parser("repl", help="Interactive read-eval-print loop.")
    _add_common_flags(repl_p)
    _add_precision_flag(repl_p)

    fn_p = subparsers.add_parser("functions", help="List built-in functions.")
    _add_json_flag(fn_p)

    watch_p = subparsers.add_parser("watch", help="Re-evaluate a file whenever it changes.")
    watch_p.add_argument("path", help="File with one expression per line.")
    _add_common_flags(watch_p)
    _add_precision_flag(watch_p)
    _add_json_flag(watch_p)

    mcp_p = subparsers.add_parser("mcp", help="MCP server commands.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Run the MCP server over stdio.")
    _add_common_flags(serve_p)

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException, *, source: str | None = None) -> None:
    _eprint(format_error_with_hint(e, source=source))


def _configure_logging(args: argparse.Namespace) -> None:
    if not getattr(args, "verbose", False):
        return
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("arith").setLevel(logging.DEBUG)


def _load_config(args: argparse.Namespace) -> ArithConfig:
    config_path = Path(args.config).resolve() if getattr(args, "config", None) else None
    return resolve_config(config_path=config_path)


def _max_depth(args: argparse.Namespace, cfg: ArithConfig) -> int:
    override = getattr(args, "max_depth", None)
    if override is None:
        return cfg.engine.max_depth
    if override < 1:
        raise ArithConfigError("--max-depth must be >= 1.")
    return int(override)


def _precision(args: argparse.Namespace, cfg: ArithConfig) -> int | None:
    override = getattr(args, "precision", None)
    if override is None:
        return cfg.output.precision
    if override < 0:
        raise ArithConfigError("--precision must be >= 0.")
    return int(override)


def format_number(value: Number, *, precision: int | None = None) -> str:
    """Render a result: ints verbatim, floats shortest-repr or to `precision` digits."""
    if isinstance(value, int):
        return str(value)
    if precision is None:
        return repr(value)
    return f"{value:.{precision}g}"


def _json_value(value: Number | None) -> Number | str | None:
    # JSON has no NaN/Infinity literals.
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    return value


def _error_payload(exc: ArithError) -> dict[str, object]:
    return {"error": str(exc), "kind": error_kind(exc), "position": error_position(exc)}


# ---------------------------------------------------------------------------
# Expression files
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LineResult:
    lineno: int
    expression: str
    value: Number | None = None
    error: ArithError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def iter_expression_lines(text: str) -> Iterable[tuple[int, str]]:
    """Yield (1-based line number, expression) for non-blank, non-comment lines."""
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield lineno, line


def evaluate_lines(text: str, *, max_depth: int) -> list[LineResult]:
    """Evaluate every expression line independently; failures do not stop the run."""
    results: list[LineResult] = []
    for lineno, expr in iter_expression_lines(text):
        try:
            results.append(LineResult(lineno, expr, value=evaluate(expr, max_depth=max_depth)))
        except ArithError as e:
            results.append(LineResult(lineno, expr, error=e))
    return results


def _line_json(r: LineResult) -> dict[str, object]:
    doc: dict[str, object] = {"line": r.lineno, "expression": r.expression, "ok": r.ok}
    if r.error is None:
        doc["result"] = _json_value(r.value)
    else:
        doc.update(_error_payload(r.error))
    return doc


def run_file(args: argparse.Namespace) -> tuple[int, int, int]:
    """Evaluate the file named by `args.path`.

    Returns (exit code, lines evaluated, lines failed).
    """
    try:
        cfg = _load_config(args)
        max_depth = _max_depth(args, cfg)
        precision = _precision(args, cfg)
    except ArithConfigError as e:
        _print_error(e)
        return EXIT_USAGE_OR_CONFIG, 0, 0

    path = Path(args.path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _eprint(f"error: failed reading {path}: {e}")
        return EXIT_USAGE_OR_CONFIG, 0, 0

    results = evaluate_lines(text, max_depth=max_depth)
    failed = {r.lineno: str(r.error) for r in results if not r.ok}
    rc = EXIT_EVAL_ERROR if failed else EXIT_OK

    if _is_json_mode(args):
        doc = {
            "command": "file",
            "ok": not failed,
            "path": str(path),
            "results": [_line_json(r) for r in results],
        }
        print(json.dumps(doc))
        return rc, len(results), len(failed)

    for r in results:
        if r.ok:
            assert r.value is not None
            print(f"{r.lineno}: {r.expression} = {format_number(r.value, precision=precision)}")
        else:
            print(f"{r.lineno}: {r.expression} -> error")
    if failed:
        _eprint(format_file_failures(failed).rstrip())
    return rc, len(results), len(failed)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_eval(args: argparse.Namespace) -> int:
    source = args.expression
    try:
        cfg = _load_config(args)
        max_depth = _max_depth(args, cfg)
        precision = _precision(args, cfg)
    except ArithConfigError as e:
        _print_error(e)
        return EXIT_USAGE_OR_CONFIG

    show_tree = cfg.output.tree if args.tree is None else bool(args.tree)
    try:
        tree = parse(source, max_depth=max_depth)
        if show_tree and not _is_json_mode(args):
            print(render_tree(tree))
        value = evaluate_tree(tree)
    except ArithError as e:
        if _is_json_mode(args):
            doc = {"command": "eval", "ok": False, "expression": source}
            print(json.dumps({**doc, **_error_payload(e)}))
        else:
            _print_error(e, source=source)
        return EXIT_EVAL_ERROR

    if _is_json_mode(args):
        doc: dict[str, object] = {
            "command": "eval",
            "ok": True,
            "expression": source,
            "result": _json_value(value),
            "type": type(value).__name__,
        }
        if show_tree:
            doc["tree"] = render_tree(tree)
            doc["ast"] = to_records(tree)
        print(json.dumps(doc))
    else:
        print(format_number(value, precision=precision))
    return EXIT_OK


def cmd_file(args: argparse.Namespace) -> int:
    rc, _, _ = run_file(args)
    return rc


def run_repl(
    *,
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
    max_depth: int,
    precision: int | None,
    prompt: str = "> ",
) -> int:
    """Read expressions from `stdin` until EOF or quit; returns the exit code."""
    interactive = stdin.isatty()
    while True:
        if interactive:
            stdout.write(prompt)
            stdout.flush()
        line = stdin.readline()
        if not line:
            if interactive:
                stdout.write("\n")
            return EXIT_OK
        source = line.strip()
        if not source or source.startswith("#"):
            continue
        if source in _REPL_QUIT:
            return EXIT_OK
        try:
            value = evaluate(source, max_depth=max_depth)
        except ArithError as e:
            print(format_error_with_hint(e, source=source), file=stderr)
            continue
        print(format_number(value, precision=precision), file=stdout)


def cmd_repl(args: argparse.Namespace) -> int:
    try:
        cfg = _load_config(args)
        max_depth = _max_depth(args, cfg)
        precision = _precision(args, cfg)
    except ArithConfigError as e:
        _print_error(e)
        return EXIT_USAGE_OR_CONFIG
    try:
        return run_repl(
            stdin=sys.stdin,
            stdout=sys.stdout,
            stderr=sys.stderr,
            max_depth=max_depth,
            precision=precision,
        )
    except KeyboardInterrupt:
        return EXIT_OK


def cmd_functions(args: argparse.Namespace) -> int:
    if _is_json_mode(args):
        doc = {
            "command": "functions",
            "ok": True,
            "functions": [
                {"name": n, "summary": functions.BUILTINS[n].summary} for n in functions.names()
            ],
        }
        print(json.dumps(doc))
        return EXIT_OK

    width = max(len(n) for n in functions.names())
    for name in functions.names():
        print(f"{name.ljust(width)}  {functions.BUILTINS[name].summary}")
    return EXIT_OK


def cmd_watch(args: argparse.Namespace) -> int:
    from arith import watcher

    try:
        watcher.check_watchfiles_available()
    except ImportError as e:
        if _is_json_mode(args):
            print(json.dumps({"command": "watch", "ok": False, "error": str(e)}))
        else:
            _print_error(e)
        return EXIT_USAGE_OR_CONFIG

    target = Path(args.path).resolve()
    if not target.is_file():
        _eprint(f"error: not a file: {target}")
        return EXIT_USAGE_OR_CONFIG

    async def watch() -> None:
        changes = watcher.make_watchfiles_iter([target.parent])
        async for _ in watcher.target_changes(changes, target=target):
            _eprint(f"[watch] change detected: {target}")
            result = watcher.timed_cycle(lambda: run_file(args))
            _eprint(watcher.format_cycle_summary(result))
            if _is_json_mode(args):
                print(json.dumps(watcher.format_watch_cycle_json(result)))

    # Evaluate once up front so the first output doesn't wait for an edit.
    rc, _, _ = run_file(args)
    if rc == EXIT_USAGE_OR_CONFIG:
        return rc

    _eprint(f"[watch] watching {target} (Ctrl-C to stop)")
    try:
        asyncio.run(watch())
    except KeyboardInterrupt:
        pass
    return EXIT_OK


def cmd_mcp(args: argparse.Namespace) -> int:
    from arith import mcp_server

    try:
        cfg = _load_config(args)
        max_depth = _max_depth(args, cfg)
        mcp_server.check_fastmcp_available()
    except (ArithConfigError, ImportError) as e:
        _print_error(e)
        return EXIT_USAGE_OR_CONFIG

    mcp_server.run_server(max_depth=max_depth)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_USAGE_OR_CONFIG

    _configure_logging(args)

    if args.command == "eval":
        return cmd_eval(args)
    if args.command == "file":
        return cmd_file(args)
    if args.command == "repl":
        return cmd_repl(args)
    if args.command == "functions":
        return cmd_functions(args)
    if args.command == "watch":
        return cmd_watch(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_USAGE_OR_CONFIG


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
