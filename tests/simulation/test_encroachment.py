"""Unit tests for the four-front EncroachmentEngine."""

from __future__ import annotations

import numpy as np
import pytest

from mazechase.comms.events import FrontAdvanced, StructuresCommitted, WallsCleared
from mazechase.config import Settings
from mazechase.simulation.encroachment import FRONTS, EncroachmentEngine, Front, front_cells
from mazechase.simulation.geometry import AABB, cell_center
from mazechase.simulation.maze import Grid
from mazechase.simulation.scheduler import Scheduler

pytestmark = pytest.mark.unit

SIZE = 9
UNIT = 96.0


def box_at(col: int, row: int, size: float = 40.0) -> AABB:
    x, y = cell_center(col, row, UNIT)
    return AABB.from_center(x, y, size)


class Harness:
    """Engine on an open 9x9 grid with player and goal parked at the center."""

    def __init__(self, walls=None, **overrides) -> None:
        self.settings = Settings(maze_size=SIZE, **overrides)
        self.scheduler = Scheduler()
        self.grid = Grid(np.zeros((SIZE, SIZE), dtype=np.int8))
        self.walls = set(walls or ())
        self.notified: list = []
        self.breaches: list[str] = []
        self.contained: list[bool] = []
        self.player = box_at(4, 4)
        self.goal = box_at(4, 4, 72.0)
        self.engine = EncroachmentEngine(
            self.scheduler, self.settings, self.walls, notify=self.notified.append,
        )

    def start(self) -> EncroachmentEngine:
        self.engine.start(
            self.grid,
            lambda: self.player,
            lambda: self.goal,
            self.breaches.append,
            on_contained=lambda: self.contained.append(True),
        )
        return self.engine

    def advance(self, seconds: float, step: float = 0.5) -> None:
        for _ in range(int(round(seconds / step))):
            self.scheduler.advance(step)

    def committed(self) -> list:
        return [c for e in self.notified if isinstance(e, StructuresCommitted) for c in e.cells]


# --------------------------------------------------------------------------
# front_cells
# --------------------------------------------------------------------------

class TestFrontCells:
    def test_top(self):
        assert front_cells(Front.TOP, 0, 5) == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]

    def test_bottom(self):
        assert front_cells(Front.BOTTOM, 1, 5) == [(i, 3) for i in range(5)]

    def test_left(self):
        assert front_cells(Front.LEFT, 2, 5) == [(2, i) for i in range(5)]

    def test_right(self):
        assert front_cells(Front.RIGHT, 0, 5) == [(4, i) for i in range(5)]

    def test_negative_progress_fails_fast(self):
        with pytest.raises(AssertionError):
            front_cells(Front.TOP, -1, 9)

    def test_pure(self):
        assert front_cells(Front.LEFT, 3, 9) == front_cells(Front.LEFT, 3, 9)


# --------------------------------------------------------------------------
# Stepping and commits
# --------------------------------------------------------------------------

class TestStepping:
    def test_nothing_before_first_interval(self):
        h = Harness()
        engine = h.start()
        h.advance(9.5)
        assert all(p == 0 for p in engine.progress.values())
        assert h.notified == []

    def test_first_step_after_one_interval(self):
        h = Harness()
        engine = h.start()
        h.advance(10.0)
        assert all(engine.progress[f] == 1 for f in FRONTS)
        # Dissolving, not yet committed
        assert engine.occupied == frozenset()
        h.advance(1.0)
        assert (0, 0) in engine.occupied
        assert (8, 8) in engine.occupied

    def test_shared_corners_committed_once(self):
        h = Harness()
        engine = h.start()
        h.advance(11.0)
        perimeter = {(i, 0) for i in range(SIZE)} | {(i, SIZE - 1) for i in range(SIZE)} \
            | {(0, i) for i in range(SIZE)} | {(SIZE - 1, i) for i in range(SIZE)}
        committed = h.committed()
        assert len(committed) == len(set(committed)) == 32
        assert set(committed) == perimeter
        assert engine.occupied == perimeter

    def test_front_advanced_events(self):
        h = Harness()
        h.start()
        h.advance(10.0)
        advanced = [e for e in h.notified if isinstance(e, FrontAdvanced)]
        assert [e.direction for e in advanced] == ["top", "right", "bottom", "left"]
        assert all(e.progress == 1 for e in advanced)

    def test_walls_cleared_in_front_path(self):
        h = Harness(walls={(0, 0), (4, 4)})
        h.start()
        h.advance(10.0)
        assert h.walls == {(4, 4)}
        cleared = [e for e in h.notified if isinstance(e, WallsCleared)]
        assert cleared and (0, 0) in cleared[0].cells

    def test_zero_dissolve_commits_at_step(self):
        h = Harness(dissolve_duration=0.0)
        engine = h.start()
        h.advance(10.0)
        assert len(engine.occupied) == 32

    def test_start_twice_arms_once(self):
        h = Harness()
        engine = h.start()
        h.start()
        assert len(h.scheduler.pending(engine)) == 4


class TestProgressBound:
    def test_progress_never_exceeds_half(self):
        h = Harness()
        engine = h.start()
        h.advance(100.0)
        assert all(engine.progress[f] == SIZE // 2 for f in FRONTS)
        assert all(engine.front_finished(f) for f in FRONTS)

    def test_center_never_covered(self):
        h = Harness()
        engine = h.start()
        h.advance(100.0)
        assert len(engine.occupied) == SIZE * SIZE - 1
        assert (4, 4) not in engine.occupied

    def test_containment_reported_once(self):
        h = Harness()
        engine = h.start()
        h.advance(100.0)
        assert h.contained == [True]
        assert h.breaches == []
        assert engine.contained
        assert not engine.active
        assert h.scheduler.pending(engine) == []


# --------------------------------------------------------------------------
# Breach
# --------------------------------------------------------------------------

class TestBreach:
    def test_player_breach(self):
        h = Harness()
        h.player = box_at(4, 1)
        engine = h.start()
        h.advance(20.5)
        assert h.breaches == []
        h.advance(0.5)
        assert h.breaches == ["player"]
        assert engine.breached
        assert not engine.active

    def test_breach_fires_once_and_stops_fronts(self):
        h = Harness()
        h.player = box_at(4, 1)
        engine = h.start()
        h.advance(100.0)
        assert h.breaches == ["player"]
        assert engine.progress[Front.TOP] == 2
        assert h.scheduler.pending(engine) == []

    def test_goal_breach(self):
        h = Harness()
        h.goal = box_at(4, 1, 72.0)
        h.start()
        h.advance(30.0)
        assert h.breaches == ["goal"]

    def test_player_wins_over_goal_on_same_cell(self):
        h = Harness()
        h.player = box_at(4, 1)
        h.goal = box_at(4, 1, 72.0)
        h.start()
        h.advance(30.0)
        assert h.breaches == ["player"]

    def test_no_start_after_breach(self):
        h = Harness()
        h.player = box_at(4, 1)
        engine = h.start()
        h.advance(30.0)
        h.start()
        assert h.scheduler.pending(engine) == []


# --------------------------------------------------------------------------
# Stop / pause
# --------------------------------------------------------------------------

class TestStop:
    def test_stop_cancels_pending_commits(self):
        h = Harness()
        engine = h.start()
        h.advance(10.0)
        engine.stop()
        assert h.scheduler.pending(engine) == []
        h.advance(50.0)
        assert engine.occupied == frozenset()

    def test_stale_commit_is_noop(self):
        h = Harness()
        engine = h.start()
        engine.stop()
        engine._commit(Front.TOP, [(0, 0)])
        assert engine.occupied == frozenset()

    def test_stop_is_idempotent(self):
        h = Harness()
        engine = h.start()
        engine.stop()
        engine.stop()
        assert not engine.active

    def test_pause_leaves_state_untouched(self):
        h = Harness()
        engine = h.start()
        h.advance(10.0)
        h.scheduler.pause()
        h.advance(100.0)
        assert all(engine.progress[f] == 1 for f in FRONTS)
        assert engine.occupied == frozenset()
        h.scheduler.resume()
        h.advance(1.0)
        assert len(engine.occupied) == 32

    def test_telemetry(self):
        h = Harness()
        engine = h.start()
        h.advance(11.0)
        t = engine.to_telemetry()
        assert t["progress"] == {"top": 1, "right": 1, "bottom": 1, "left": 1}
        assert t["occupied"] == 32
        assert t["active"] is True
