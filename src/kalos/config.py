"""TOML config loading for kalos.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "kalos.toml"


@dataclass
class FormatConfig:
    indent_width: int = 4


@dataclass
class DiagnosticsConfig:
    color: bool = True


@dataclass
class KalosConfig:
    format: FormatConfig = field(default_factory=FormatConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find kalos.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def _typed(table: dict, key: str, kind: type, default: object) -> object:
    value = table.get(key, default)
    # bool is an int subclass; keep the two apart.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"{key} must be {kind.__name__}, got {value!r}")
    return value


def load_config(path: Path) -> KalosConfig:
    """Parse a kalos.toml file into a KalosConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = KalosConfig()

    if "format" in data:
        fmt = data["format"]
        indent = _typed(fmt, "indent_width", int, 4)
        if indent < 1:
            raise ValueError(f"indent_width must be positive, got {indent}")
        config.format = FormatConfig(indent_width=indent)

    if "diagnostics" in data:
        diag = data["diagnostics"]
        config.diagnostics = DiagnosticsConfig(
            color=_typed(diag, "color", bool, True),
        )

    return config


def config_for(path: Path) -> KalosConfig:
    """Load the kalos.toml governing ``path``, or defaults if there is none."""
    try:
        return load_config(find_config(path))
    except FileNotFoundError:
        return KalosConfig()
