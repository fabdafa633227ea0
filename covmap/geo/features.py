"""
Point feature data model and feed record transformation.

Each feed record becomes one immutable ``PointFeature``.  A feature's
``feature_id`` is its position in the feed for the current load; ids are
dense (0..N-1), unique within one load, and reassigned on every reload.
Hover debouncing relies on that, so the transform must preserve order.

Example
-------
    features = transform_records(records)
    features[0].feature_id  # 0
    features[0].geometry    # shapely Point(lon, lat)
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Dict, List, Optional, Sequence

from shapely.geometry import Point, mapping

from ..errors import MalformedRecordError

log = logging.getLogger(__name__)

# The feed spells a missing province as the string "null"
NULL_SUBREGION = "null"


@dataclass(frozen=True)
class PointFeature:
    """One located case/death count."""
    feature_id: int
    lon: float
    lat: float
    country: str
    province: Optional[str]     # None = no subregion
    cases: int
    deaths: int
    county: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def geometry(self) -> Point:
        return Point(self.lon, self.lat)

    @property
    def label(self) -> str:
        if self.province:
            return f"{self.province}, {self.country}"
        return self.country

    def as_geojson(self) -> Dict:
        """GeoJSON Feature dict (for map engines that take a source)."""
        return {
            "type": "Feature",
            "id": self.feature_id,
            "geometry": mapping(self.geometry),
            "properties": {
                "country": self.country,
                "province": self.province,
                "cases": self.cases,
                "deaths": self.deaths,
            },
        }


def normalize_subregion(value) -> Optional[str]:
    """Map the feed's absent-subregion spellings to None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == NULL_SUBREGION:
        return None
    return text


def _coordinate(index: int, coords: dict, key: str, limit: float) -> float:
    raw = coords.get(key)
    if raw is None or isinstance(raw, bool):
        raise MalformedRecordError(index, f"missing coordinates.{key}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise MalformedRecordError(
            index, f"coordinates.{key} is not a number: {raw!r}"
        ) from None
    if not math.isfinite(value) or abs(value) > limit:
        raise MalformedRecordError(
            index, f"coordinates.{key} out of range: {raw!r}"
        )
    return value


def _count(index: int, stats: dict, key: str) -> int:
    raw = stats.get(key)
    if raw is None or isinstance(raw, bool):
        raise MalformedRecordError(index, f"missing stats.{key}")
    if isinstance(raw, str):
        try:
            raw = float(raw)
        except ValueError:
            raise MalformedRecordError(
                index, f"stats.{key} is not a number: {raw!r}"
            ) from None
    if isinstance(raw, Integral):
        value = int(raw)
    elif isinstance(raw, Real) and math.isfinite(raw) and float(raw).is_integer():
        value = int(raw)
    else:
        raise MalformedRecordError(
            index, f"stats.{key} is not an integer: {raw!r}"
        )
    if value < 0:
        raise MalformedRecordError(index, f"stats.{key} is negative: {value}")
    return value


def _parse_record(index: int, rec) -> PointFeature:
    if not isinstance(rec, dict):
        raise MalformedRecordError(
            index, f"record is {type(rec).__name__}, not an object", rec
        )
    coords = rec.get("coordinates")
    if not isinstance(coords, dict):
        raise MalformedRecordError(index, "missing coordinates", rec)
    stats = rec.get("stats")
    if not isinstance(stats, dict):
        raise MalformedRecordError(index, "missing stats", rec)

    country = rec.get("country")
    if not isinstance(country, str) or not country.strip():
        raise MalformedRecordError(index, "missing country", rec)

    try:
        lon = _coordinate(index, coords, "longitude", 180.0)
        lat = _coordinate(index, coords, "latitude", 90.0)
        cases = _count(index, stats, "confirmed")
        deaths = _count(index, stats, "deaths")
    except MalformedRecordError as exc:
        exc.record = rec
        raise

    if deaths > cases:
        log.debug("Record %d (%s): deaths %d exceed cases %d",
                  index, country, deaths, cases)

    return PointFeature(
        feature_id=index,
        lon=lon,
        lat=lat,
        country=country.strip(),
        province=normalize_subregion(rec.get("province")),
        cases=cases,
        deaths=deaths,
        county=normalize_subregion(rec.get("county")),
        updated_at=rec.get("updatedAt"),
    )


def transform_records(records: Sequence[dict]) -> List[PointFeature]:
    """Convert raw feed records into point features, in input order.

    All or nothing: the first malformed record aborts the whole transform
    with ``MalformedRecordError`` so a partially valid dataset is never
    displayed.
    """
    features = [_parse_record(i, rec) for i, rec in enumerate(records)]
    log.info("Transformed %d feed records", len(features))
    return features


def to_feature_collection(features: Sequence[PointFeature]) -> Dict:
    """Wrap features in a GeoJSON FeatureCollection."""
    return {
        "type": "FeatureCollection",
        "features": [f.as_geojson() for f in features],
    }
