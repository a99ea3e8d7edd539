"""
Game configuration.

A ``SnakeConfig`` is built once at startup and handed to ``GameState`` and the
frame loop.  Values come from, in increasing priority: the defaults below, an
optional JSON file, ``SNAKE_*`` environment variables, explicit overrides.
"""

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

Color = Tuple[int, int, int, int]

ENV_PREFIX = "SNAKE_"
COLOR_FIELDS = ("background", "snake_head", "snake_body", "food")
INT_FIELDS = ("grid_width", "grid_height", "cell_width", "cell_height")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class SnakeConfig:
    grid_width: int = 30
    grid_height: int = 30
    cell_width: int = 16
    cell_height: int = 16
    updates_per_second: float = 8.0
    background: Color = (51, 33, 0, 255)
    snake_head: Color = (230, 25, 25, 255)
    snake_body: Color = (76, 178, 25, 255)
    food: Color = (0, 0, 255, 255)

    def __post_init__(self):
        for name in INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.grid_width < 2:
            raise ConfigError(f"grid_width must be at least 2, got {self.grid_width}")
        ups = self.updates_per_second
        if isinstance(ups, bool) or not isinstance(ups, (int, float)) or ups <= 0:
            raise ConfigError(f"updates_per_second must be positive, got {ups!r}")
        for name in COLOR_FIELDS:
            object.__setattr__(self, name, _check_color(name, getattr(self, name)))

    @property
    def screen_size(self) -> Tuple[int, int]:
        return (self.grid_width * self.cell_width, self.grid_height * self.cell_height)

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.updates_per_second


def _check_color(name: str, value) -> Color:
    try:
        color = tuple(value)
    except TypeError:
        raise ConfigError(f"{name} must be an RGBA sequence, got {value!r}") from None
    if len(color) != 4 or not all(
        isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in color
    ):
        raise ConfigError(f"{name} must be four integers in [0, 255], got {value!r}")
    return color


def _parse_env_value(name: str, raw: str):
    var = ENV_PREFIX + name.upper()
    try:
        if name in COLOR_FIELDS:
            return tuple(int(part) for part in raw.split(","))
        if name in INT_FIELDS:
            return int(raw)
        return float(raw)
    except ValueError:
        raise ConfigError(f"{var}: cannot parse {raw!r}") from None


def _read_file(path: Path) -> Dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {path}: {exc}") from None
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")
    known = {f.name for f in fields(SnakeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{path}: unknown keys {', '.join(unknown)}")
    return data


def load_config(
    path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    **overrides,
) -> SnakeConfig:
    env = os.environ if env is None else env
    values: Dict = {}
    if path is not None:
        values.update(_read_file(Path(path)))

    for f in fields(SnakeConfig):
        raw = env.get(ENV_PREFIX + f.name.upper())
        if raw is not None and raw.strip():
            values[f.name] = _parse_env_value(f.name, raw.strip())

    values.update({k: v for k, v in overrides.items() if v is not None})
    return replace(SnakeConfig(), **values)
