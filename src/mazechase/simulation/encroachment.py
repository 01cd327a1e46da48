"""EncroachmentEngine — four fronts that close the maze in from its edges.

Data flow:
  SessionController._begin_encroachment -> EncroachmentEngine.start()
  Scheduler (one repeating timer per front) -> _step(direction)
  _step -> clear wall bodies, start dissolve, schedule one commit per step
  _commit -> re-check occupancy, claim cells, overlap-test player and goal
  overlap -> on_breach(reason) once -> SessionController game over

Each front carries a ``progress`` counter: the depth in rows (or columns)
it has advanced from its edge.  A step consumes the row at the current
depth and increments progress.  A front stops once progress reaches
``size // 2`` so no front ever crosses the center row; when all four
have stopped and their last commits have landed, the maze is contained.
Containment is a valid, non-losing end state.

The commit is deferred by ``dissolve_duration``.  Inside that window
another front can target the same cell (the corners are shared by two
fronts), so the commit re-tests membership and discards claimed cells.
No key is ever committed twice.

The player's cell is not skipped: a front that covers it commits there
like anywhere else, and the overlap test reports a breach.

Events are handed to the session through ``notify``; the session is the
only thing that talks to the EventBus.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable

from loguru import logger

from mazechase.comms.events import (
    FrontAdvanced,
    SessionEvent,
    SoundCue,
    StructuresCommitted,
    WallsCleared,
)

from .geometry import AABB, PositionKey, cell_box

if TYPE_CHECKING:
    from mazechase.config import Settings

    from .maze import Grid
    from .scheduler import Scheduler, Timer


class Front(str, Enum):
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


FRONTS: tuple[Front, ...] = (Front.TOP, Front.RIGHT, Front.BOTTOM, Front.LEFT)


def front_cells(direction: Front, progress: int, size: int) -> list[PositionKey]:
    """Cells of the row/column ``progress`` deep from ``direction``'s edge.

    Pure function of its arguments.  Returns ``size`` cells ordered by
    increasing column (top/bottom) or row (left/right).
    """
    assert progress >= 0, f"negative progress {progress} for {direction}"
    assert progress < size, f"progress {progress} outside a {size}-cell maze"
    far = size - 1 - progress
    if direction == Front.TOP:
        return [(i, progress) for i in range(size)]
    if direction == Front.BOTTOM:
        return [(i, far) for i in range(size)]
    if direction == Front.LEFT:
        return [(progress, i) for i in range(size)]
    if direction == Front.RIGHT:
        return [(far, i) for i in range(size)]
    raise ValueError(f"unknown front {direction!r}")


class EncroachmentEngine:
    """Drives the four fronts and owns the occupied set."""

    def __init__(
        self,
        scheduler: Scheduler,
        settings: Settings,
        walls: set[PositionKey],
        notify: Callable[[SessionEvent], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._settings = settings
        self._walls = walls
        self._notify = notify or (lambda _ev: None)

        self.progress: dict[Front, int] = {f: 0 for f in FRONTS}
        self._occupied: set[PositionKey] = set()
        self._occupied_view: frozenset[PositionKey] = frozenset()
        self._timers: dict[Front, Timer] = {}
        self._finished: set[Front] = set()
        self._pending_commits = 0

        self._grid: Grid | None = None
        self._limit = 0
        self._player_bounds: Callable[[], AABB] | None = None
        self._goal_bounds: Callable[[], AABB] | None = None
        self._on_breach: Callable[[str], None] | None = None
        self._on_contained: Callable[[], None] | None = None

        self._active = False
        self._breached = False
        self._contained = False

    # -- Lifecycle ------------------------------------------------------------

    def start(
        self,
        grid: Grid,
        player_bounds: Callable[[], AABB],
        goal_bounds: Callable[[], AABB],
        on_breach: Callable[[str], None],
        on_contained: Callable[[], None] | None = None,
    ) -> None:
        """Arm one repeating timer per front.  The first steps fire one
        spawn interval after this call."""
        if self._active or self._breached:
            return
        self._grid = grid
        self._limit = grid.size // 2
        self._player_bounds = player_bounds
        self._goal_bounds = goal_bounds
        self._on_breach = on_breach
        self._on_contained = on_contained
        self._active = True

        interval = self._settings.front_spawn_interval
        for direction in FRONTS:
            self._timers[direction] = self._scheduler.call_every(
                interval,
                lambda d=direction: self._step(d),
                owner=self,
                name=f"front-{direction.value}",
            )
        logger.info(
            f"Encroachment started: 4 fronts every {interval}s, "
            f"limit {self._limit} rows"
        )

    def stop(self) -> None:
        """Cancel every timer and pending commit.  Idempotent."""
        was_active = self._active
        self._active = False
        self._scheduler.cancel_owner(self)
        self._timers.clear()
        self._pending_commits = 0
        if was_active:
            logger.info(f"Encroachment stopped at progress {self._progress_str()}")

    # -- State ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._active

    @property
    def breached(self) -> bool:
        return self._breached

    @property
    def contained(self) -> bool:
        return self._contained

    @property
    def occupied(self) -> frozenset[PositionKey]:
        """Snapshot of committed cells.  Only the engine mutates the set."""
        return self._occupied_view

    def is_occupied(self, key: PositionKey) -> bool:
        return key in self._occupied

    def front_finished(self, direction: Front) -> bool:
        return direction in self._finished

    # -- Stepping ---------------------------------------------------------------

    def _step(self, direction: Front) -> None:
        if not self._active or self._grid is None:
            return
        depth = self.progress[direction]
        if depth >= self._limit:
            self._finish_front(direction)
            return

        cells = front_cells(direction, depth, self._grid.size)
        fresh = [c for c in cells if c not in self._occupied]
        cleared = [c for c in fresh if c in self._walls]
        for c in cleared:
            self._walls.discard(c)

        self.progress[direction] = depth + 1
        self._notify(FrontAdvanced(direction.value, depth + 1, tuple(fresh)))
        if cleared:
            self._notify(WallsCleared(tuple(cleared)))

        if fresh:
            self._notify(SoundCue("construct"))
            self._pending_commits += 1
            delay = self._settings.dissolve_duration
            if delay > 0:
                self._scheduler.call_later(
                    delay,
                    lambda: self._commit(direction, fresh),
                    owner=self,
                    name=f"commit-{direction.value}-{depth}",
                )
            else:
                self._commit(direction, fresh)

        if self.progress[direction] >= self._limit:
            self._finish_front(direction)

    def _commit(self, direction: Front, cells: list[PositionKey]) -> None:
        if not self._active:
            # Stale commit after stop(): the front is gone.
            return
        self._pending_commits = max(0, self._pending_commits - 1)

        committed: list[PositionKey] = []
        for c in cells:
            if c in self._occupied:
                logger.debug(f"Front {direction.value}: {c} already claimed, discarding")
                continue
            self._occupied.add(c)
            committed.append(c)
        self._occupied_view = frozenset(self._occupied)

        if committed:
            self._notify(StructuresCommitted(direction.value, tuple(committed)))
            if self._check_breach(committed):
                return
        self._check_contained()

    def _check_breach(self, cells: list[PositionKey]) -> bool:
        unit = self._settings.tile_unit
        scale = self._settings.structure_scale
        player = self._player_bounds() if self._player_bounds else None
        goal = self._goal_bounds() if self._goal_bounds else None
        for c in cells:
            box = cell_box(c, unit, scale)
            if player is not None and box.overlaps(player):
                self._breach("player", c)
                return True
            if goal is not None and box.overlaps(goal):
                self._breach("goal", c)
                return True
        return False

    def _breach(self, reason: str, cell: PositionKey) -> None:
        if self._breached:
            return
        self._breached = True
        logger.info(f"Encroachment breach: structure at {cell} hit the {reason}")
        self.stop()
        if self._on_breach is not None:
            self._on_breach(reason)

    def _finish_front(self, direction: Front) -> None:
        if direction in self._finished:
            return
        self._finished.add(direction)
        self._scheduler.cancel(self._timers.pop(direction, None))
        logger.debug(f"Front {direction.value} reached the center limit")
        self._check_contained()

    def _check_contained(self) -> None:
        if self._contained or not self._active:
            return
        if len(self._finished) == len(FRONTS) and self._pending_commits == 0:
            self._contained = True
            logger.info("Encroachment complete: maze contained without breach")
            self.stop()
            if self._on_contained is not None:
                self._on_contained()

    # -- Telemetry --------------------------------------------------------------

    def _progress_str(self) -> str:
        return ", ".join(f"{f.value}={p}" for f, p in self.progress.items())

    def to_telemetry(self) -> dict:
        return {
            "active": self._active,
            "progress": {f.value: p for f, p in self.progress.items()},
            "occupied": len(self._occupied),
            "breached": self._breached,
            "contained": self._contained,
        }
