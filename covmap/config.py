"""
Runtime configuration for the map application.

Defaults live on the ``MapConfig`` dataclass.  A JSON file can override any
field, and two environment variables override the feed settings last:

  COVMAP_FEED_URL     feed endpoint
  COVMAP_REFRESH_S    refresh interval in seconds

Usage
-----
    cfg = load_config("covmap.json")
    cfg.feed_url, cfg.radius_stops
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple, Union

log = logging.getLogger(__name__)

DEFAULT_FEED_URL = "https://disease.sh/v3/covid-19/jhucsse"

# Yellow → dark red, 7 stops
DEFAULT_COLOR_RAMP: Tuple[str, ...] = (
    "#ffffb2",
    "#fed976",
    "#feb24c",
    "#fd8d3c",
    "#fc4e2a",
    "#e31a1c",
    "#b10026",
)

_HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


@dataclass(frozen=True)
class MapConfig:
    """All tunables for fetching, encoding and displaying the point layer."""

    feed_url: str = DEFAULT_FEED_URL
    timeout_s: float = 15.0
    retries: int = 2
    refresh_interval_s: float = 600.0
    flag_url_template: str = "https://flagcdn.com/64x48/{iso2}.png"

    # Visual channels
    radius_stops: Tuple[float, ...] = (4.0, 8.0, 10.0, 14.0, 18.0, 50.0)
    color_ramp: Tuple[str, ...] = DEFAULT_COLOR_RAMP
    stroke_range: Tuple[float, float] = (1.0, 1.75)
    circle_opacity: float = 0.75

    # Initial view (lon, lat) and zoom level
    initial_center: Tuple[float, float] = (16.0, 27.0)
    initial_zoom: float = 2.0

    def validate(self) -> "MapConfig":
        """Raise ValueError on an unusable configuration, else return self."""
        if len(self.radius_stops) != 6:
            raise ValueError(
                f"radius_stops needs 6 values, got {len(self.radius_stops)}"
            )
        if any(r <= 0 for r in self.radius_stops):
            raise ValueError("radius_stops must be positive")
        if any(a > b for a, b in zip(self.radius_stops, self.radius_stops[1:])):
            raise ValueError("radius_stops must be ascending")

        if not 6 <= len(self.color_ramp) <= 7:
            raise ValueError(
                f"color_ramp needs 6 or 7 colours, got {len(self.color_ramp)}"
            )
        bad = [c for c in self.color_ramp if not _HEX_RE.match(c)]
        if bad:
            raise ValueError(f"color_ramp entries must be #rrggbb: {bad}")

        if len(self.stroke_range) != 2:
            raise ValueError("stroke_range needs exactly 2 values")
        lo, hi = self.stroke_range
        if lo <= 0 or lo > hi:
            raise ValueError("stroke_range must be positive and ascending")

        if not 0.0 < self.circle_opacity <= 1.0:
            raise ValueError("circle_opacity must be in (0, 1]")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.timeout_s <= 0 or self.refresh_interval_s <= 0:
            raise ValueError("timeout_s and refresh_interval_s must be positive")
        if "{iso2}" not in self.flag_url_template:
            raise ValueError("flag_url_template must contain '{iso2}'")
        return self

    def as_dict(self) -> dict:
        return asdict(self)


def _coerce(value):
    """JSON has no tuples; convert list values for tuple-typed fields."""
    if isinstance(value, list):
        return tuple(value)
    return value


def load_config(path: Optional[Union[str, Path]] = None) -> MapConfig:
    """Load configuration from *path* (JSON) merged over the defaults.

    A missing file is not an error; defaults are used.  Unknown keys in the
    file raise ValueError so typos do not go unnoticed.
    """
    cfg = MapConfig()
    overrides: dict = {}

    p = Path(path) if path else None
    if p and p.exists():
        with p.open("r", encoding="utf-8") as f:
            user = json.load(f)
        if not isinstance(user, dict):
            raise ValueError(f"{p}: top-level JSON value must be an object")
        known = {f.name for f in fields(MapConfig)}
        unknown = sorted(set(user) - known)
        if unknown:
            raise ValueError(f"{p}: unknown config keys {unknown}")
        overrides.update({k: _coerce(v) for k, v in user.items()})
        log.info("Config loaded: %s (%d overrides)", p, len(overrides))
    elif p:
        log.info("Config file %s not found, using defaults", p)

    env_url = os.environ.get("COVMAP_FEED_URL")
    if env_url:
        overrides["feed_url"] = env_url
    env_refresh = os.environ.get("COVMAP_REFRESH_S")
    if env_refresh:
        try:
            overrides["refresh_interval_s"] = float(env_refresh)
        except ValueError:
            raise ValueError(
                f"COVMAP_REFRESH_S must be a number, got {env_refresh!r}"
            ) from None

    if overrides:
        cfg = replace(cfg, **overrides)
    return cfg.validate()
