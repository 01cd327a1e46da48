"""Kinematics — jump arcs and player movement.

Actors are plain records; the functions here move them.  A jump is a
``JumpArc`` tween advanced by the tick: horizontal motion is linear in time
and the vertical position is the straight-line interpolation minus a
``sin(progress * pi) * height`` lift, so the actor lands back on its
baseline when the arc completes.

Player movement is input-driven and axis-separated.  A move along one axis
is refused when the new box would start overlapping a blocker that the old
box did not already overlap; this lets an actor that landed inside a wall
from a jump walk back out instead of sticking.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

from .geometry import AABB, clamp

# Returns the set of blocker keys a box overlaps
BlockerQuery = Callable[[AABB], set]


@dataclass
class JumpArc:
    """Parabolic hop from ``start`` to ``end`` over ``duration`` seconds."""

    start: tuple[float, float]
    end: tuple[float, float]
    height: float
    duration: float
    elapsed: float = 0.0

    @property
    def progress(self) -> float:
        if self.duration <= 0:
            return 1.0
        return min(1.0, self.elapsed / self.duration)

    @property
    def done(self) -> bool:
        return self.progress >= 1.0

    def height_offset(self) -> float:
        if self.done:
            return 0.0
        return math.sin(self.progress * math.pi) * self.height

    def position(self) -> tuple[float, float]:
        if self.done:
            # Land exactly on the baseline, no floating-point residue
            return self.end
        p = self.progress
        x = self.start[0] + (self.end[0] - self.start[0]) * p
        base_y = self.start[1] + (self.end[1] - self.start[1]) * p
        return (x, base_y - self.height_offset())

    def advance(self, dt: float) -> tuple[float, float]:
        self.elapsed += dt
        return self.position()


@dataclass
class Player:
    """The player avatar.  Input comes from the host."""

    x: float
    y: float
    size: float
    input_x: float = 0.0
    input_y: float = 0.0
    last_direction: str = "right"  # "left" or "right", drives jump direction
    jump_count: int = 0
    jump: JumpArc | None = None

    @property
    def is_jumping(self) -> bool:
        return self.jump is not None

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    def bounds(self) -> AABB:
        return AABB.from_center(self.x, self.y, self.size)

    def to_dict(self) -> dict:
        return {
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "is_jumping": self.is_jumping,
            "facing": self.last_direction,
            "jump_count": self.jump_count,
        }


def step_player(
    player: Player,
    dt: float,
    speed: float,
    blockers: BlockerQuery,
    world_size: float,
) -> None:
    """Advance the player by one tick.

    While jumping the arc owns the position and input is ignored.
    """
    if player.jump is not None:
        player.x, player.y = player.jump.advance(dt)
        if player.jump.done:
            player.jump = None
        return

    dx, dy = player.input_x, player.input_y
    length = math.hypot(dx, dy)
    if length == 0.0:
        return
    vx = dx / length * speed
    vy = dy / length * speed
    if vx < 0:
        player.last_direction = "left"
    elif vx > 0:
        player.last_direction = "right"

    half = player.size / 2.0
    lo, hi = half, world_size - half

    # X axis
    nx = clamp(player.x + vx * dt, lo, hi)
    if nx != player.x and _move_allowed(player, nx, player.y, blockers):
        player.x = nx
    # Y axis
    ny = clamp(player.y + vy * dt, lo, hi)
    if ny != player.y and _move_allowed(player, player.x, ny, blockers):
        player.y = ny


def _move_allowed(player: Player, nx: float, ny: float, blockers: BlockerQuery) -> bool:
    before = blockers(player.bounds())
    after = blockers(AABB.from_center(nx, ny, player.size))
    return not (after - before)


def start_player_jump(
    player: Player,
    distance: float,
    height: float,
    duration: float,
    world_size: float,
) -> bool:
    """Spend one jump resource and start a horizontal arc.

    Returns False (and spends nothing) when already jumping or out of jumps.
    """
    if player.is_jumping or player.jump_count <= 0:
        return False
    player.jump_count -= 1
    angle = math.pi if player.last_direction == "left" else 0.0
    half = player.size / 2.0
    end_x = clamp(player.x + math.cos(angle) * distance, half, world_size - half)
    end_y = player.y
    player.jump = JumpArc(
        start=(player.x, player.y),
        end=(end_x, end_y),
        height=height,
        duration=duration,
    )
    return True
