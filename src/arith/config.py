"""Configuration loading for Arith.

This module is intentionally small and deterministic: it only reads
`arith.toml` and performs light validation. The file is optional; without one
the defaults below apply.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from arith.errors import ArithConfigError
from arith.parser import DEFAULT_MAX_DEPTH

CONFIG_FILENAME = "arith.toml"


@dataclass(frozen=True)
class EngineConfig:
    max_depth: int


@dataclass(frozen=True)
class OutputConfig:
    precision: int | None
    tree: bool


@dataclass(frozen=True)
class ArithConfig:
    version: int
    engine: EngineConfig
    output: OutputConfig

    @classmethod
    def default(cls) -> ArithConfig:
        return cls(
            version=1,
            engine=EngineConfig(max_depth=DEFAULT_MAX_DEPTH),
            output=OutputConfig(precision=None, tree=False),
        )


def find_config(start: Path) -> Path | None:
    """Walk upward from `start` (file or directory) looking for `arith.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        candidate = cur / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if cur.parent == cur:
            return None
        cur = cur.parent


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ArithConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise ArithConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ArithConfigError(f"Expected {name} to be an integer.")
    return value


def load_config(config_path: Path) -> ArithConfig:
    """Load and validate an `arith.toml` file."""

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise ArithConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise ArithConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ArithConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ArithConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise ArithConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise ArithConfigError(f"Unsupported config version: {version_i} (expected 1).")

    engine_tbl = _as_table(data.get("engine"), name="engine")
    output_tbl = _as_table(data.get("output"), name="output")

    if "max_depth" in engine_tbl:
        max_depth = _as_int(engine_tbl["max_depth"], name="engine.max_depth")
    else:
        max_depth = DEFAULT_MAX_DEPTH

    precision: int | None = None
    if "precision" in output_tbl:
        precision = _as_int(output_tbl["precision"], name="output.precision")

    if "tree" in output_tbl:
        tree = _as_bool(output_tbl["tree"], name="output.tree")
    else:
        tree = False

    # Validation
    if max_depth < 1:
        raise ArithConfigError("Invalid config: engine.max_depth must be >= 1.")

    if precision is not None and precision < 0:
        raise ArithConfigError("Invalid config: output.precision must be >= 0.")

    return ArithConfig(
        version=version_i,
        engine=EngineConfig(max_depth=max_depth),
        output=OutputConfig(precision=precision, tree=tree),
    )


def resolve_config(*, config_path: Path | None = None, start: Path | None = None) -> ArithConfig:
    """Load `config_path` if given, else the nearest `arith.toml`, else defaults."""

    if config_path is None:
        config_path = find_config(Path.cwd() if start is None else start)
        if config_path is None:
            return ArithConfig.default()
    return load_config(config_path)
