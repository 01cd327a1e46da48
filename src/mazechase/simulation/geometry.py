"""Geometry helpers — AABBs, position keys, and the key-bucket broad phase.

Coordinate convention:
    +X = right (columns), +Y = down (rows), matching the screen space of
    the host renderer.  Cell ``(col, row)`` has its center at
    ``(col * unit, row * unit)`` where ``unit = tile_size * spacing``.

Position keys round world coordinates to the nearest cell center, so two
positions share a key iff they fall in the same tile.  Keys are plain
``(col, row)`` tuples and are used for O(1) set membership everywhere:
occupied cells, standing wall bodies, pickup buckets.

There is no physics engine here.  Every collision in the game is an
axis-aligned box overlap test, pre-filtered by looking only at the 3x3
block of keys around a body (bodies never exceed about one tile).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

PositionKey = tuple[int, int]

# 3x3 neighbourhood offsets for the broad phase
_NEIGHBOUR_OFFSETS = tuple((dc, dr) for dr in (-1, 0, 1) for dc in (-1, 0, 1))


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box in world coordinates."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_center(cls, x: float, y: float, width: float, height: float | None = None) -> AABB:
        if height is None:
            height = width
        hw = width / 2.0
        hh = height / 2.0
        return cls(x - hw, y - hh, x + hw, y + hh)

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def overlaps(self, other: AABB) -> bool:
        """Strict overlap test.  Boxes that only touch edges do not overlap."""
        return (
            self.min_x < other.max_x
            and self.max_x > other.min_x
            and self.min_y < other.max_y
            and self.max_y > other.min_y
        )


def position_key(x: float, y: float, unit: float) -> PositionKey:
    """Convert a world position to its grid-aligned key (round half up)."""
    return (int(math.floor(x / unit + 0.5)), int(math.floor(y / unit + 0.5)))


def cell_center(col: int, row: int, unit: float) -> tuple[float, float]:
    """World coordinates of a cell's center."""
    return (col * unit, row * unit)


def bearing(from_xy: tuple[float, float], to_xy: tuple[float, float]) -> float:
    """Angle in radians from one point to another (atan2(dy, dx))."""
    return math.atan2(to_xy[1] - from_xy[1], to_xy[0] - from_xy[0])


def distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def neighbour_keys(key: PositionKey) -> Iterator[PositionKey]:
    """Yield the 3x3 block of keys centered on ``key``."""
    col, row = key
    for dc, dr in _NEIGHBOUR_OFFSETS:
        yield (col + dc, row + dr)


def cell_box(key: PositionKey, unit: float, scale: float) -> AABB:
    """Box of a body that sits on a cell and spans ``scale`` tile units."""
    x, y = cell_center(key[0], key[1], unit)
    return AABB.from_center(x, y, unit * scale)


def first_overlap(
    box: AABB,
    keys: set[PositionKey] | frozenset[PositionKey],
    unit: float,
    scale: float,
) -> PositionKey | None:
    """Broad phase + narrow phase against cell-sized bodies stored by key.

    Returns the first key whose body overlaps ``box``, or None.
    """
    cx, cy = box.center
    for key in neighbour_keys(position_key(cx, cy, unit)):
        if key in keys and cell_box(key, unit, scale).overlaps(box):
            return key
    return None
