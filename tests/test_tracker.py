"""Unit tests for the hover state machine."""

from covmap.hover.tracker import Hide, HoverState, HoverTracker, Show


def _run(tracker, events):
    out = []
    for ev in events:
        if ev == "leave":
            out.append(tracker.pointer_leave())
        elif ev == "reset":
            out.append(tracker.reset())
        else:
            out.append(tracker.pointer_move(ev))
    return [e for e in out if e is not None]


class TestHoverTracker:
    def test_starts_idle(self):
        t = HoverTracker()
        assert t.state is HoverState.IDLE
        assert t.hovered_id is None

    def test_debounce_sequence(self):
        emissions = _run(HoverTracker(), [5, 5, 5, 7, "leave"])
        assert emissions == [Show(5), Show(7), Hide()]

    def test_enter_sets_hovering(self):
        t = HoverTracker()
        assert t.pointer_move(3) == Show(3)
        assert t.state is HoverState.HOVERING
        assert t.hovered_id == 3

    def test_same_id_no_emission(self):
        t = HoverTracker()
        t.pointer_move(3)
        assert t.pointer_move(3) is None
        assert t.hovered_id == 3

    def test_leave_from_idle_still_hides(self):
        t = HoverTracker()
        assert t.pointer_leave() == Hide()
        assert t.state is HoverState.IDLE

    def test_reset_is_silent(self):
        t = HoverTracker()
        t.pointer_move(2)
        assert t.reset() is None
        assert t.state is HoverState.IDLE
        assert t.hovered_id is None

    def test_same_id_after_reset_shows_again(self):
        """An id from a previous dataset never debounces one from the next."""
        emissions = _run(HoverTracker(), [4, "reset", 4])
        assert emissions == [Show(4), Show(4)]

    def test_reenter_after_leave(self):
        emissions = _run(HoverTracker(), [1, "leave", 1, 1])
        assert emissions == [Show(1), Hide(), Show(1)]

    def test_id_zero_is_a_feature(self):
        t = HoverTracker()
        assert t.pointer_move(0) == Show(0)
        assert t.pointer_move(0) is None
