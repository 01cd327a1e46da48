"""Headless session runner.

Usage:
    python -m mazechase [--seed N] [--seconds S] [--dt DT] [--idle]

Runs one session at a fixed step with a simple autopilot that walks the
shortest corridor path to the goal, and prints every boundary event as a
JSON line on stdout.  Health is tracked here, the way a host would, from
HealthDelta events.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections import deque

from loguru import logger

from mazechase.comms.events import HealthDelta, SessionEnded
from mazechase.config import Settings
from mazechase.runtime import SessionRunner
from mazechase.simulation.geometry import PositionKey, cell_center, position_key
from mazechase.simulation.maze import Grid
from mazechase.simulation.session import SessionPhase

START_HEALTH = 100


def shortest_path(grid: Grid, start: PositionKey, goal: PositionKey) -> list[PositionKey]:
    """BFS over OPEN cells.  Returns the cells after ``start`` up to ``goal``."""
    parents: dict[PositionKey, PositionKey | None] = {start: None}
    queue = deque([start])
    while queue:
        cell = queue.popleft()
        if cell == goal:
            break
        for nxt in grid.neighbours(*cell):
            if nxt not in parents:
                parents[nxt] = cell
                queue.append(nxt)
    if goal not in parents:
        return []
    path = []
    cell: PositionKey | None = goal
    while cell is not None and cell != start:
        path.append(cell)
        cell = parents[cell]
    path.reverse()
    return path


class Autopilot:
    """Steers the player along a precomputed path of cell centers."""

    def __init__(self, runner: SessionRunner, dt: float) -> None:
        self._runner = runner
        self._waypoints: deque[tuple[float, float]] = deque()
        # Half a step or more, so a waypoint between two steps is still reached
        self._arrive = max(2.0, runner.settings.player_speed * dt / 2.0 + 0.5)

    def plan(self) -> None:
        session = self._runner.session
        grid = session.grid
        unit = self._runner.settings.tile_unit
        here = position_key(*session.player.position, unit)
        self._waypoints = deque(
            cell_center(c, r, unit) for c, r in shortest_path(grid, here, grid.center)
        )
        logger.debug(f"Autopilot planned {len(self._waypoints)} waypoints")

    def steer(self) -> None:
        player = self._runner.session.player
        while self._waypoints:
            wx, wy = self._waypoints[0]
            dx, dy = wx - player.x, wy - player.y
            if abs(dx) < self._arrive and abs(dy) < self._arrive:
                self._waypoints.popleft()
                continue
            self._runner.set_player_input(dx, dy)
            return
        self._runner.set_player_input(0.0, 0.0)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="mazechase", description=__doc__.splitlines()[0])
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument("--seconds", type=float, default=120.0,
                        help="simulated seconds before giving up")
    parser.add_argument("--dt", type=float, default=1 / 60, help="tick length in seconds")
    parser.add_argument("--idle", action="store_true",
                        help="do not steer the player")
    parser.add_argument("--quiet", action="store_true",
                        help="silence core logging on stderr")
    args = parser.parse_args(argv)

    if args.quiet:
        logger.disable("mazechase")

    overrides = {} if args.seed is None else {"seed": args.seed}
    settings = Settings(**overrides)
    runner = SessionRunner(settings)

    health = START_HEALTH
    ended: list[SessionEnded] = []

    def on_event(event) -> None:
        nonlocal health
        print(json.dumps(event.to_dict()), flush=True)
        if isinstance(event, HealthDelta):
            health = min(START_HEALTH, health + event.amount)
            if health <= 0:
                runner.report_health_exhausted()
        elif isinstance(event, SessionEnded):
            ended.append(event)

    runner.bus.add_listener(on_event)
    runner.start()
    runner.complete_intro()

    pilot = Autopilot(runner, args.dt)
    if not args.idle:
        pilot.plan()

    elapsed = 0.0
    while not ended and elapsed < args.seconds:
        session = runner.session
        if not args.idle and session.phase == SessionPhase.PLAYING:
            pilot.steer()
        runner.tick(args.dt)
        elapsed += args.dt

    if not ended:
        logger.warning(f"No outcome after {args.seconds}s of simulated time")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
