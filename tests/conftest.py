"""Shared pytest fixtures for covmap tests.

Provides raw feed records in the shape the JHU feed publishes them and
their transformed point features.
"""

import json

import pytest

from covmap.geo.features import transform_records


def make_record(country="Italy", province="null", confirmed=1000, deaths=50,
                lat="41.87194", lon="12.56738", county=None):
    """Build one raw feed record."""
    return {
        "country": country,
        "province": province,
        "county": county,
        "updatedAt": "2023-03-10 04:21:03",
        "stats": {"confirmed": confirmed, "deaths": deaths, "recovered": None},
        "coordinates": {"latitude": lat, "longitude": lon},
    }


@pytest.fixture
def italy_record():
    """The single Italy record used by the end-to-end scenario."""
    return make_record()


@pytest.fixture
def sample_records():
    """A small skewed feed: one large outlier and several small locations."""
    return [
        make_record("Italy", "Lombardy", 90000, 15000, "45.4668", "9.1905"),
        make_record("US", "New York", 400000, 30000, "42.1657", "-74.9481"),
        make_record("Fiji", "null", 18, 0, "-17.7134", "178.065"),
        make_record("Germany", "", 5000, 100, "51.1657", "10.4515"),
        make_record("Brazil", None, 120000, 4000, "-14.235", "-51.9253"),
        make_record("Diamond Princess", "null", 712, 13, "0", "0"),
    ]


@pytest.fixture
def sample_features(sample_records):
    """Transformed features for ``sample_records``."""
    return transform_records(sample_records)


@pytest.fixture
def snapshot_file(tmp_path, sample_records):
    """sample_records written to a JSON snapshot file."""
    path = tmp_path / "feed.json"
    path.write_text(json.dumps(sample_records), encoding="utf-8")
    return path


class FakeRenderer:
    """Records every command the session sends."""

    def __init__(self):
        self.calls = []

    def show_layer(self, features, scale):
        self.calls.append(("show_layer", len(features), scale))

    def show_no_data(self, reason):
        self.calls.append(("show_no_data", reason))

    def show_tooltip(self, command):
        self.calls.append(("show_tooltip", command))

    def hide_tooltip(self):
        self.calls.append(("hide_tooltip",))

    def names(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def record_factory():
    """Factory for single raw records with overridable fields."""
    return make_record
