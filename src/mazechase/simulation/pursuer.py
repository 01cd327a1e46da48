"""PursuerAI — bearing-based chase with jump-over obstacle avoidance.

There is no pathfinding.  Each tick the pursuer points straight at the
player and either walks or hops:

  1. bearing = atan2(player.y - y, player.x - x)
  2. look-ahead point = position + look_ahead * (cos, sin)(bearing)
  3. look-ahead cell is WALL in the grid  -> start a jump along the bearing
     otherwise                           -> move at speed along the bearing
  4. after a move, overlap with a standing wall body undoes the move and
     forces a jump

While a jump is in flight the arc owns the position, velocity is zero and
walls are ignored; the session still tests player contact every tick.

Known limitation: near concave wall corners the look-ahead can alternate
between a WALL and an OPEN cell, which makes the pursuer oscillate for a
few ticks before a forced jump carries it through.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from .geometry import (
    AABB,
    PositionKey,
    bearing,
    cell_center,
    clamp,
    distance,
    first_overlap,
    position_key,
)
from .kinematics import JumpArc

if TYPE_CHECKING:
    from mazechase.config import Settings

    from .maze import Grid


@dataclass
class Pursuer:
    x: float
    y: float
    size: float
    vx: float = 0.0
    vy: float = 0.0
    facing_left: bool = False
    jump: JumpArc | None = None
    fallback: bool = False

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
            "facing_left": self.facing_left,
            "fallback": self.fallback,
        }


class PursuerAI:
    """Spawns and steers the single pursuer of a session."""

    def __init__(
        self,
        grid: Grid,
        walls: set[PositionKey],
        settings: Settings,
        rng: random.Random | None = None,
    ) -> None:
        self._grid = grid
        self._walls = walls
        self._settings = settings
        self._rng = rng or random.Random()
        self._unit = settings.tile_unit
        self._world_size = settings.world_size
        self.pursuer: Pursuer | None = None
        self._target: tuple[float, float] | None = None
        self.frozen = False

    # -- Spawn ------------------------------------------------------------------

    def spawn(self, player_xy: tuple[float, float]) -> Pursuer:
        """Place the pursuer on an OPEN cell far enough from the player.

        Falls back to the OPEN cell nearest the world corner farthest from
        the player when the attempt budget runs out.  The fallback may break
        the distance bound but never lands in a wall.
        """
        s = self._settings
        for _ in range(s.pursuer_spawn_attempts):
            col = self._rng.randrange(self._grid.size)
            row = self._rng.randrange(self._grid.size)
            if self._grid.is_wall(col, row):
                continue
            x, y = cell_center(col, row, self._unit)
            if distance((x, y), player_xy) < s.pursuer_min_spawn_distance:
                continue
            self.pursuer = Pursuer(x, y, s.pursuer_size)
            logger.info(f"Pursuer spawned at cell ({col}, {row})")
            return self.pursuer

        corner = self._fallback_corner(player_xy)
        x, y = self._nearest_open(corner)
        logger.warning(
            f"Pursuer spawn: no valid cell in {s.pursuer_spawn_attempts} attempts, "
            f"falling back near corner ({corner[0]:.0f}, {corner[1]:.0f}) "
            f"at ({x:.0f}, {y:.0f})"
        )
        self.pursuer = Pursuer(x, y, s.pursuer_size, fallback=True)
        return self.pursuer

    def _fallback_corner(self, player_xy: tuple[float, float]) -> tuple[float, float]:
        inset = self._settings.pursuer_fallback_inset
        far = self._world_size - inset
        corners = [(inset, inset), (far, inset), (inset, far), (far, far)]
        # Ties keep the first corner in scan order
        return max(corners, key=lambda c: distance(c, player_xy))

    def _nearest_open(self, point: tuple[float, float]) -> tuple[float, float]:
        """Center of the OPEN cell closest to ``point`` (row-major on ties)."""
        centers = [cell_center(c, r, self._unit) for c, r in self._grid.open_cells()]
        if not centers:
            # A grid without corridors has nowhere legal to stand
            return point
        return min(centers, key=lambda c: distance(c, point))

    # -- Per-tick update -------------------------------------------------------

    def set_target(self, xy: tuple[float, float]) -> None:
        self._target = xy

    def update(self, dt: float) -> None:
        p = self.pursuer
        if p is None or self.frozen or dt <= 0:
            return

        if p.jump is not None:
            p.vx = p.vy = 0.0
            p.x, p.y = p.jump.advance(dt)
            if p.jump.done:
                p.jump = None
            return

        if self._target is None:
            return
        angle = bearing(p.position, self._target)

        look = self._settings.pursuer_look_ahead
        lx = p.x + math.cos(angle) * look
        ly = p.y + math.sin(angle) * look
        if self._grid.is_wall(*position_key(lx, ly, self._unit)):
            self._start_jump(angle)
            return

        speed = self._settings.pursuer_speed
        p.vx = math.cos(angle) * speed
        p.vy = math.sin(angle) * speed
        if p.vx < 0:
            p.facing_left = True
        elif p.vx > 0:
            p.facing_left = False

        old = (p.x, p.y)
        p.x += p.vx * dt
        p.y += p.vy * dt
        if first_overlap(p.bounds(), self._walls, self._unit,
                         self._settings.wall_body_scale) is not None:
            p.x, p.y = old
            self._start_jump(angle)

    def _start_jump(self, angle: float) -> None:
        p = self.pursuer
        if p is None or p.jump is not None:
            return
        s = self._settings
        half = p.size / 2.0
        end_x = clamp(p.x + math.cos(angle) * s.pursuer_jump_distance,
                      half, self._world_size - half)
        end_y = clamp(p.y + math.sin(angle) * s.pursuer_jump_distance,
                      half, self._world_size - half)
        p.vx = p.vy = 0.0
        p.jump = JumpArc(
            start=(p.x, p.y),
            end=(end_x, end_y),
            height=s.pursuer_jump_height,
            duration=s.pursuer_jump_duration,
        )

    # -- Contact ----------------------------------------------------------------

    def touches(self, box: AABB) -> bool:
        """Player contact test; also valid mid-jump."""
        return self.pursuer is not None and self.pursuer.bounds().overlaps(box)

    def freeze(self) -> None:
        """Stop all motion.  Used on terminal transitions."""
        self.frozen = True
        if self.pursuer is not None:
            self.pursuer.vx = self.pursuer.vy = 0.0
