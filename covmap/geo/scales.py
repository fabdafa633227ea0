"""
Data-driven visual scales for the point layer.

Case counts are heavily right-skewed: a handful of locations have orders of
magnitude more cases than the rest.  A straight min-max mapping would draw
almost every point at the minimum size, so the radius and colour channels
put their intermediate stops at fractions of the mean instead:

    radius  : min, mean/4, mean/2, mean, 2*mean, max
    colour  : min, mean/4, mean/2, mean, 2*mean, 4*mean, max
    stroke  : min, max

Anchors are clipped into [min, max].  Anchors that collide after clipping
are collapsed so the table inputs stay strictly increasing; a collision at
the low end keeps the first stop, one at ``max`` keeps the last stop.
Lookups use ``numpy.interp``, which clamps outside the table.

Usage
-----
    scale = derive_scale(features)
    scale.radius(12000), scale.color(12000), scale.stroke_width(12000)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import MapConfig
from ..errors import EmptyDatasetError
from .features import PointFeature

log = logging.getLogger(__name__)

# Anchor: "min", "max", or a multiple of the mean
Anchor = Union[str, float]

RADIUS_ANCHORS: Tuple[Anchor, ...] = ("min", 0.25, 0.5, 1.0, 2.0, "max")
COLOR_ANCHORS: Tuple[Anchor, ...] = ("min", 0.25, 0.5, 1.0, 2.0, 4.0, "max")
# 6-colour ramps drop the 4*mean anchor
COLOR_ANCHORS_6: Tuple[Anchor, ...] = ("min", 0.25, 0.5, 1.0, 2.0, "max")
STROKE_ANCHORS: Tuple[Anchor, ...] = ("min", "max")

Stops = Tuple[Tuple[float, float], ...]


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    c = color.lstrip("#")
    return int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)


def _rgb_to_hex(rgb) -> str:
    r, g, b = (int(round(v)) for v in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def build_stops(
    anchors: Sequence[Anchor],
    outputs: Sequence[float],
    minimum: float,
    maximum: float,
    mean: float,
) -> Stops:
    """Resolve anchors against the dataset range into an (x, y) stop table.

    The returned inputs are strictly increasing, except for a degenerate
    range (min == max) where a single stop at min is returned.
    """
    if len(anchors) != len(outputs):
        raise ValueError(
            f"{len(anchors)} anchors but {len(outputs)} outputs"
        )
    xs: List[float] = []
    for a in anchors:
        if a == "min":
            x = minimum
        elif a == "max":
            x = maximum
        else:
            x = float(a) * mean
        xs.append(float(np.clip(x, minimum, maximum)))

    kept: List[Tuple[float, float]] = [(xs[0], float(outputs[0]))]
    last = len(xs) - 1
    for i in range(1, len(xs)):
        x, y = xs[i], float(outputs[i])
        if x > kept[-1][0]:
            kept.append((x, y))
        elif i == last and len(kept) > 1:
            # final stop owns max
            kept[-1] = (x, y)
    return tuple(kept)


def _interp(value: float, stops: Stops) -> float:
    xp = [s[0] for s in stops]
    fp = [s[1] for s in stops]
    return float(np.interp(float(value), xp, fp))


@dataclass(frozen=True)
class ChannelScale:
    """Case-count statistics and the three channel stop tables for one load.

    Read-only after construction; shared by every render call for the
    dataset it was derived from.
    """
    minimum: float
    maximum: float
    mean: float
    radius_stops: Stops
    color_stops: Stops        # y = position on the colour ramp (0..n-1)
    stroke_stops: Stops
    color_ramp: Tuple[str, ...]
    opacity: float = 0.75

    def radius(self, cases: float) -> float:
        return _interp(cases, self.radius_stops)

    def stroke_width(self, cases: float) -> float:
        return _interp(cases, self.stroke_stops)

    def color_position(self, cases: float) -> float:
        """Fractional index into ``color_ramp`` (monotonic in cases)."""
        return _interp(cases, self.color_stops)

    def color(self, cases: float) -> str:
        """Hex colour, blended between the two nearest ramp entries."""
        pos = self.color_position(cases)
        lo = int(np.floor(pos))
        hi = min(lo + 1, len(self.color_ramp) - 1)
        t = pos - lo
        a = np.array(_hex_to_rgb(self.color_ramp[lo]), dtype=float)
        b = np.array(_hex_to_rgb(self.color_ramp[hi]), dtype=float)
        return _rgb_to_hex(a + (b - a) * t)

    def as_paint(self, field: str = "cases") -> Dict[str, object]:
        """Render the tables as map-engine ``interpolate`` style expressions."""
        def _expr(pairs) -> list:
            expr: list = ["interpolate", ["linear"], ["get", field]]
            for x, y in pairs:
                expr.extend([x, y])
            return expr

        color_pairs = [
            (x, self.color_ramp[int(round(pos))]) for x, pos in self.color_stops
        ]
        return {
            "circle-radius": _expr(self.radius_stops),
            "circle-color": _expr(color_pairs),
            "circle-opacity": self.opacity,
            "circle-stroke-width": _expr(self.stroke_stops),
        }

    def as_dict(self) -> Dict[str, float]:
        return {
            "min": self.minimum,
            "max": self.maximum,
            "mean": round(self.mean, 2),
        }


def derive_scale(
    features: Sequence[PointFeature],
    config: Optional[MapConfig] = None,
) -> ChannelScale:
    """Compute min / max / mean of case counts and build the channel tables.

    Raises
    ------
    EmptyDatasetError
        When *features* is empty (the statistics are undefined).
    """
    if not features:
        raise EmptyDatasetError("cannot derive scales from an empty dataset")
    cfg = config or MapConfig()

    cases = np.fromiter((f.cases for f in features), dtype=float,
                        count=len(features))
    lo, hi, mean = float(cases.min()), float(cases.max()), float(cases.mean())

    ramp = tuple(cfg.color_ramp)
    color_anchors = COLOR_ANCHORS if len(ramp) == 7 else COLOR_ANCHORS_6
    scale = ChannelScale(
        minimum=lo,
        maximum=hi,
        mean=mean,
        radius_stops=build_stops(RADIUS_ANCHORS, cfg.radius_stops, lo, hi, mean),
        color_stops=build_stops(
            color_anchors, range(len(ramp)), lo, hi, mean,
        ),
        stroke_stops=build_stops(STROKE_ANCHORS, cfg.stroke_range, lo, hi, mean),
        color_ramp=ramp,
        opacity=cfg.circle_opacity,
    )
    log.info(
        "Scale derived from %d points: min=%.0f max=%.0f mean=%.1f",
        len(features), lo, hi, mean,
    )
    return scale
