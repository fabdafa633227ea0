"""
Antimeridian handling for tooltip anchors.

When the map is zoomed out far enough, the world repeats horizontally and
one feature is drawn at lon, lon ± 360, lon ± 720, ...  The pointer's
longitude is then unbounded, while a feature stores its canonical
longitude.  The tooltip has to anchor on the copy under the pointer.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from .features import PointFeature


@dataclass(frozen=True)
class TooltipAnchor:
    lon: float
    lat: float


def wrap_longitude(lng: float, pointer_lng: float) -> float:
    """Shift *lng* by whole turns until it is within 180° of *pointer_lng*.

    Equivalent to repeatedly adding 360 (pointer east of lng) or
    subtracting 360 (otherwise) while ``|pointer_lng - lng| > 180``, but
    computed in one step so it also terminates for pointer longitudes too
    large for a 360° step to register in float precision.
    """
    if not (math.isfinite(lng) and math.isfinite(pointer_lng)):
        raise ValueError(f"non-finite longitude: {lng!r}, {pointer_lng!r}")
    diff = pointer_lng - lng
    if abs(diff) <= 180.0:
        return lng
    # math.remainder is exact and lies in [-180, 180]
    return pointer_lng - math.remainder(diff, 360.0)


def tooltip_anchor(feature: PointFeature, pointer_lng: float) -> TooltipAnchor:
    """Anchor for *feature*'s tooltip on the world copy nearest the pointer."""
    return TooltipAnchor(
        lon=wrap_longitude(feature.lon, pointer_lng),
        lat=feature.lat,
    )
