"""Watch mode: re-evaluate an expression file whenever it changes."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Outcome of re-evaluating the watched file once."""

    exit_code: int
    evaluated: int
    failed: int
    duration_s: float


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install arith[watch]"
        ) from None


def make_watchfiles_iter(watch_paths: list[Path]) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=200)


def touches_target(raw_changes: set[tuple[Any, str]], *, target: Path) -> bool:
    """True if a watchfiles batch includes `target` (editors touch siblings too)."""
    target = target.resolve()
    return any(Path(p).resolve() == target for _, p in raw_changes)


async def target_changes(
    changes_iter: AsyncIterator[set[tuple[Any, str]]], *, target: Path
) -> AsyncIterator[None]:
    """Yield once for every batch of changes touching `target`."""
    async for raw_changes in changes_iter:
        if touches_target(raw_changes, target=target):
            yield None


def timed_cycle(run: Callable[[], tuple[int, int, int]]) -> WatchCycleResult:
    """Call `run` (returning exit code, lines evaluated, lines failed) and time it."""
    t0 = time.monotonic()
    exit_code, evaluated, failed = run()
    return WatchCycleResult(
        exit_code=exit_code,
        evaluated=evaluated,
        failed=failed,
        duration_s=time.monotonic() - t0,
    )


def format_cycle_summary(result: WatchCycleResult) -> str:
    return (
        f"[watch] {result.evaluated} line(s), {result.failed} failed "
        f"({result.duration_s:.2f}s)"
    )


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": result.exit_code == 0,
        "exit_code": result.exit_code,
        "evaluated": result.evaluated,
        "failed": result.failed,
        "duration_s": round(result.duration_s, 2),
    }
