"""Unit tests for the map session (dataset lifecycle and hover protocol)."""

import pytest

from covmap.geo.country import CountryLookup
from covmap.session import HideTooltip, MapSession, SessionStatus, ShowTooltip


@pytest.fixture
def session(renderer):
    return MapSession(renderer=renderer, lookup=CountryLookup())


class TestLifecycle:
    def test_initially_pending(self, session):
        assert session.status is SessionStatus.PENDING
        assert session.features == []
        assert session.scale is None

    def test_load_ready(self, session, renderer, sample_records):
        assert session.load(sample_records) is SessionStatus.READY
        assert len(session.features) == len(sample_records)
        assert session.scale is not None
        assert renderer.names() == ["hide_tooltip", "show_layer"]
        assert renderer.calls[-1][1] == len(sample_records)

    def test_empty_feed_no_data(self, session, renderer):
        assert session.load([]) is SessionStatus.NO_DATA
        assert renderer.names()[-1] == "show_no_data"

    def test_malformed_feed_drops_previous_dataset(self, session, renderer,
                                                   sample_records, record_factory):
        session.load(sample_records)
        bad = record_factory()
        del bad["coordinates"]
        assert session.load([bad]) is SessionStatus.NO_DATA
        assert session.features == []
        assert session.scale is None
        assert renderer.names()[-1] == "show_no_data"

    def test_fetch_failure_no_data(self, session, renderer):
        assert session.fail("connection refused") is SessionStatus.NO_DATA
        assert renderer.calls[-1] == ("show_no_data", "connection refused")

    def test_begin_fetch_keeps_ready(self, session, sample_records):
        session.load(sample_records)
        session.begin_fetch()
        assert session.status is SessionStatus.READY

    def test_begin_fetch_after_no_data(self, session):
        session.fail("x")
        session.begin_fetch()
        assert session.status is SessionStatus.PENDING

    def test_attach_replays_layer(self, sample_records, renderer):
        session = MapSession(lookup=CountryLookup())
        session.load(sample_records)
        session.attach_renderer(renderer)
        assert renderer.names() == ["show_layer"]


class TestPointerEvents:
    def test_show_then_debounce(self, session, renderer, sample_records):
        session.load(sample_records)
        cmd = session.pointer_move(0, 9.0)
        assert isinstance(cmd, ShowTooltip)
        assert cmd.feature_id == 0
        assert cmd.content.province == "Lombardy"
        assert session.pointer_move(0, 9.1) is None
        assert renderer.names().count("show_tooltip") == 1

    def test_anchor_wrapped_to_pointer_copy(self, session, sample_records):
        session.load(sample_records)
        cmd = session.pointer_move(0, 9.0 + 360.0)
        assert cmd.anchor.lon == pytest.approx(9.1905 + 360.0)

    def test_leave_hides(self, session, renderer, sample_records):
        session.load(sample_records)
        session.pointer_move(2, 178.0)
        assert session.pointer_leave() == HideTooltip()
        assert renderer.names()[-1] == "hide_tooltip"
        assert session.hovered_id is None

    def test_events_ignored_without_dataset(self, session):
        assert session.pointer_move(0, 0.0) is None
        assert session.pointer_leave() is None

    def test_stale_id_ignored(self, session, sample_records):
        session.load(sample_records)
        assert session.pointer_move(len(sample_records), 0.0) is None
        assert session.hovered_id is None

    def test_reload_resets_hover(self, session, sample_records):
        session.load(sample_records)
        session.pointer_move(1, -75.0)
        session.load(sample_records)
        assert session.hovered_id is None
        # same id after a reload is a new hover
        assert session.pointer_move(1, -75.0) is not None

    def test_zero_case_location(self, session, record_factory):
        session.load([record_factory(confirmed=0, deaths=0), record_factory()])
        cmd = session.pointer_move(0, 12.0)
        assert cmd.content.mortality == "N/A"


class TestSummary:
    def test_summary_ready(self, session, sample_records):
        session.load(sample_records)
        s = session.summary(top=2)
        assert s["status"] == "ready"
        assert s["points"] == len(sample_records)
        assert s["total_cases"] == sum(r["stats"]["confirmed"] for r in sample_records)
        assert [t["label"] for t in s["top"]] == ["New York, US", "Brazil"]
        assert s["top"][0]["radius"] == pytest.approx(50.0)

    def test_summary_no_data(self, session):
        session.fail("down")
        assert session.summary() == {"status": "no_data", "points": 0}
