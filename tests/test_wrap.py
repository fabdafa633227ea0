"""Unit tests for antimeridian tooltip anchoring."""

import math

import pytest

from covmap.geo.features import PointFeature
from covmap.geo.wrap import tooltip_anchor, wrap_longitude


class TestWrapLongitude:
    def test_near_pointer_unchanged(self):
        assert wrap_longitude(12.5, 20.0) == 12.5
        assert wrap_longitude(-170.0, 10.0) == -170.0   # exactly 180 apart

    def test_one_turn_east(self):
        assert wrap_longitude(12.5, 372.0) == pytest.approx(372.5)

    def test_one_turn_west(self):
        assert wrap_longitude(170.0, -185.0) == pytest.approx(-190.0)

    def test_across_antimeridian(self):
        # pointer just west of 180 on the right copy, feature at -179
        assert wrap_longitude(-179.0, 179.5) == pytest.approx(181.0)

    @pytest.mark.parametrize("lng", [-180.0, -90.0, 0.0, 45.5, 179.9])
    @pytest.mark.parametrize("pointer", [-1085.3, -360.0, -12.0, 0.0, 200.0, 721.7, 5000.1])
    def test_result_within_half_turn(self, lng, pointer):
        out = wrap_longitude(lng, pointer)
        assert abs(pointer - out) <= 180.0
        turns = (out - lng) / 360.0
        assert turns == pytest.approx(round(turns))

    @pytest.mark.parametrize("pointer", [-700.0, 3.0, 545.0])
    def test_idempotent(self, pointer):
        once = wrap_longitude(100.0, pointer)
        assert wrap_longitude(once, pointer) == once

    @pytest.mark.parametrize("lng,pointer", [
        (0.1, 1e20),
        (-47.48, -5.80e19),
        (-152.41, -5.92e22),
        (179.0, 1e300),
        (-180.0, -1e300),
    ])
    def test_huge_pointer_terminates(self, lng, pointer):
        """Pointers far beyond float precision of a 360° step still resolve."""
        out = wrap_longitude(lng, pointer)
        assert math.isfinite(out)
        assert abs(pointer - out) <= 180.0

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            wrap_longitude(math.nan, 0.0)
        with pytest.raises(ValueError):
            wrap_longitude(0.0, math.inf)


class TestTooltipAnchor:
    def test_latitude_preserved(self):
        f = PointFeature(0, 12.56738, 41.87194, "Italy", None, 1000, 50)
        anchor = tooltip_anchor(f, -350.0)
        assert anchor.lat == f.lat
        assert anchor.lon == pytest.approx(12.56738 - 360.0)
