"""Configuration helpers for tailboard."""
from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

import yaml

from .errors import ConfigError
from .input_field import DEFAULT_SCROLL_MARGIN
from .source import DEFAULT_CAPACITY, DEFAULT_QUIET_GAP


@dataclass
class TailboardConfig:
    """Runtime knobs for the dashboard."""

    capacity: int = DEFAULT_CAPACITY
    quiet_gap: float = DEFAULT_QUIET_GAP
    refresh_interval: float = 0.5
    scroll_margin: int = DEFAULT_SCROLL_MARGIN
    commands: Sequence[Sequence[str]] = field(default_factory=tuple)
    files: Sequence[str] = field(default_factory=tuple)
    adb: bool = False
    from_start: bool = False
    filters: Sequence[str] = field(default_factory=tuple)
    log_file: Path | None = None
    log_level: str = "INFO"


def _as_command(value) -> List[str]:
    if isinstance(value, str):
        return shlex.split(value)
    return [str(part) for part in value]


def load_config(path: Path | None, overrides: dict | None = None) -> TailboardConfig:
    """Load configuration from YAML if present, then apply ``overrides``."""

    config_data: dict = {}
    if path is not None and path.exists():
        try:
            config_data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: {exc}") from exc
        if not isinstance(config_data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
    if overrides:
        config_data.update(overrides)

    try:
        capacity = int(config_data.get("capacity", DEFAULT_CAPACITY))
        quiet_gap = float(config_data.get("quiet_gap", DEFAULT_QUIET_GAP))
        refresh_interval = float(config_data.get("refresh_interval", 0.5))
        scroll_margin = int(config_data.get("scroll_margin", DEFAULT_SCROLL_MARGIN))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid numeric setting: {exc}") from exc
    if capacity <= 0:
        raise ConfigError(f"capacity must be positive, got {capacity}")
    if quiet_gap <= 0:
        raise ConfigError(f"quiet_gap must be positive, got {quiet_gap}")
    if refresh_interval <= 0:
        raise ConfigError(f"refresh_interval must be positive, got {refresh_interval}")
    if scroll_margin < 0:
        raise ConfigError(f"scroll_margin must not be negative, got {scroll_margin}")

    log_file = config_data.get("log_file")
    return TailboardConfig(
        capacity=capacity,
        quiet_gap=quiet_gap,
        refresh_interval=refresh_interval,
        scroll_margin=scroll_margin,
        commands=tuple(tuple(_as_command(c)) for c in config_data.get("commands") or ()),
        files=tuple(str(p) for p in config_data.get("files") or ()),
        adb=bool(config_data.get("adb", False)),
        from_start=bool(config_data.get("from_start", False)),
        filters=tuple(str(f) for f in config_data.get("filters") or ()),
        log_file=Path(log_file) if log_file else None,
        log_level=str(config_data.get("log_level", "INFO")).upper(),
    )
