"""Unit tests for the cooperative Scheduler and scripted Sequences."""

from __future__ import annotations

import pytest

from mazechase.simulation.scheduler import Scheduler, Sequence

pytestmark = pytest.mark.unit


@pytest.fixture
def sched() -> Scheduler:
    return Scheduler()


# --------------------------------------------------------------------------
# Timers
# --------------------------------------------------------------------------

class TestCallLater:
    def test_fires_once_when_due(self, sched):
        fired = []
        sched.call_later(1.0, lambda: fired.append(sched.now))
        sched.advance(0.5)
        assert fired == []
        sched.advance(0.5)
        assert fired == [1.0]
        sched.advance(5.0)
        assert fired == [1.0]

    def test_clock_moves_to_due_time_before_callback(self, sched):
        seen = []
        sched.call_later(1.0, lambda: seen.append(sched.now))
        sched.advance(2.5)
        assert seen == [1.0]
        assert sched.now == 2.5

    def test_due_order_then_registration_order(self, sched):
        order = []
        sched.call_later(2.0, lambda: order.append("late"))
        sched.call_later(1.0, lambda: order.append("a"))
        sched.call_later(1.0, lambda: order.append("b"))
        sched.advance(3.0)
        assert order == ["a", "b", "late"]

    def test_follow_up_inside_step_fires_in_same_advance(self, sched):
        order = []

        def first():
            order.append("first")
            sched.call_later(0.5, lambda: order.append("second"))

        sched.call_later(1.0, first)
        sched.advance(2.0)
        assert order == ["first", "second"]

    def test_negative_delay_rejected(self, sched):
        with pytest.raises(ValueError):
            sched.call_later(-1.0, lambda: None)

    def test_zero_dt_is_noop(self, sched):
        sched.call_later(0.0, lambda: None)
        sched.advance(0.0)
        assert sched.now == 0.0
        assert len(sched.pending()) == 1


class TestCallEvery:
    def test_first_fire_one_interval_out(self, sched):
        fired = []
        sched.call_every(1.0, lambda: fired.append(sched.now))
        sched.advance(3.5)
        assert fired == [1.0, 2.0, 3.0]

    def test_interval_must_be_positive(self, sched):
        with pytest.raises(ValueError):
            sched.call_every(0.0, lambda: None)

    def test_cancel_stops_repeats(self, sched):
        fired = []
        timer = sched.call_every(1.0, lambda: fired.append(1))
        sched.advance(2.0)
        sched.cancel(timer)
        sched.advance(5.0)
        assert len(fired) == 2
        assert timer.cancelled


class TestOwnership:
    def test_cancel_owner(self, sched):
        owner = object()
        fired = []
        sched.call_later(1.0, lambda: fired.append("owned"), owner=owner)
        sched.call_every(1.0, lambda: fired.append("owned"), owner=owner)
        sched.call_later(1.0, lambda: fired.append("free"))
        assert sched.cancel_owner(owner) == 2
        sched.advance(2.0)
        assert fired == ["free"]

    def test_pending_by_owner(self, sched):
        owner = object()
        sched.call_later(1.0, lambda: None, owner=owner)
        sched.call_later(1.0, lambda: None)
        assert len(sched.pending(owner)) == 1
        assert len(sched.pending()) == 2

    def test_cancel_none_is_noop(self, sched):
        sched.cancel(None)

    def test_cancel_all(self, sched):
        fired = []
        sched.call_later(1.0, lambda: fired.append(1))
        sched.cancel_all()
        sched.advance(2.0)
        assert fired == []


# --------------------------------------------------------------------------
# Pause / resume
# --------------------------------------------------------------------------

class TestPause:
    def test_pause_at_sixty_percent_preserves_remaining(self, sched):
        fired = []
        timer = sched.call_later(10.0, lambda: fired.append(sched.now))
        sched.advance(6.0)
        sched.pause()
        sched.advance(100.0)
        assert sched.now == 6.0
        assert sched.remaining(timer) == pytest.approx(4.0)
        sched.resume()
        sched.advance(3.5)
        assert fired == []
        sched.advance(0.5)
        assert fired == [10.0]

    def test_callback_that_pauses_stops_the_step(self, sched):
        fired = []

        def pauser():
            fired.append("pause")
            sched.pause()

        sched.call_later(1.0, pauser)
        sched.call_later(2.0, lambda: fired.append("later"))
        sched.advance(5.0)
        assert fired == ["pause"]
        assert sched.now == 1.0
        sched.resume()
        sched.advance(1.0)
        assert fired == ["pause", "later"]


# --------------------------------------------------------------------------
# Sequence
# --------------------------------------------------------------------------

class TestSequence:
    def test_steps_run_serially(self, sched):
        log = []
        seq = Sequence(
            sched,
            [
                (1.0, lambda: log.append("a")),
                (0.0, lambda: log.append("b")),
                (2.0, lambda: log.append("c")),
            ],
            on_complete=lambda: log.append("done"),
        ).start()
        sched.advance(1.0)
        assert log == ["a", "b"]
        sched.advance(1.5)
        assert log == ["a", "b"]
        sched.advance(0.5)
        assert log == ["a", "b", "c", "done"]
        assert seq.done
        assert not seq.active

    def test_zero_delays_complete_synchronously(self, sched):
        log = []
        seq = Sequence(sched, [(0.0, None), (0.0, lambda: log.append(1))],
                       on_complete=lambda: log.append("done")).start()
        assert log == [1, "done"]
        assert seq.done

    def test_cancel(self, sched):
        log = []
        seq = Sequence(sched, [(1.0, lambda: log.append(1))],
                       on_complete=lambda: log.append("done")).start()
        seq.cancel()
        sched.advance(5.0)
        assert log == []
        assert not seq.done

    def test_cancelled_with_owner(self, sched):
        owner = object()
        log = []
        Sequence(sched, [(1.0, lambda: log.append(1))], owner=owner).start()
        sched.cancel_owner(owner)
        sched.advance(5.0)
        assert log == []

    def test_paused_with_scheduler(self, sched):
        log = []
        Sequence(sched, [(1.0, lambda: log.append(1))]).start()
        sched.advance(0.5)
        sched.pause()
        sched.advance(5.0)
        assert log == []
        sched.resume()
        sched.advance(0.5)
        assert log == [1]

    def test_start_twice_is_noop(self, sched):
        log = []
        seq = Sequence(sched, [(1.0, lambda: log.append(1))])
        seq.start()
        seq.start()
        sched.advance(2.0)
        assert log == [1]
