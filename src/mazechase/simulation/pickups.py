"""Pickups — milk (jump resource) and fish (heal) scattered over OPEN cells.

Placement rolls two independent chances per OPEN cell, so one cell can hold
both a fish and a milk.  The start cell never holds anything.  Pickups are
bucketed by position key, which lets collection use the same 3x3 broad
phase as wall blocking.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .geometry import AABB, PositionKey, cell_center, neighbour_keys, position_key

if TYPE_CHECKING:
    from mazechase.config import Settings

    from .maze import Grid


class PickupKind(str, Enum):
    MILK = "milk"
    FISH = "fish"


@dataclass(frozen=True)
class Pickup:
    kind: PickupKind
    cell: PositionKey
    x: float
    y: float
    size: float

    def bounds(self) -> AABB:
        return AABB.from_center(self.x, self.y, self.size)


class PickupField:
    """All uncollected pickups of one session."""

    def __init__(self, unit: float) -> None:
        self._unit = unit
        self._by_key: dict[PositionKey, list[Pickup]] = {}

    @classmethod
    def scatter(cls, grid: Grid, settings: Settings, rng: random.Random) -> PickupField:
        field = cls(settings.tile_unit)
        for cell in grid.open_cells():
            if cell == grid.start:
                continue
            # Fish roll first, then milk; both consume the rng every cell
            fish = rng.random() < settings.fish_probability
            milk = rng.random() < settings.milk_probability
            if fish:
                field.add(PickupKind.FISH, cell, settings.pickup_size)
            if milk:
                field.add(PickupKind.MILK, cell, settings.pickup_size)
        return field

    def add(self, kind: PickupKind, cell: PositionKey, size: float) -> Pickup:
        x, y = cell_center(cell[0], cell[1], self._unit)
        pickup = Pickup(kind, cell, x, y, size)
        self._by_key.setdefault(cell, []).append(pickup)
        return pickup

    def collect(self, box: AABB) -> list[Pickup]:
        """Remove and return every pickup overlapping ``box``."""
        cx, cy = box.center
        taken: list[Pickup] = []
        for key in neighbour_keys(position_key(cx, cy, self._unit)):
            bucket = self._by_key.get(key)
            if not bucket:
                continue
            keep = []
            for p in bucket:
                (taken if p.bounds().overlaps(box) else keep).append(p)
            if keep:
                self._by_key[key] = keep
            else:
                del self._by_key[key]
        return taken

    def count(self, kind: PickupKind | None = None) -> int:
        return sum(
            1
            for bucket in self._by_key.values()
            for p in bucket
            if kind is None or p.kind == kind
        )

    def at(self, cell: PositionKey) -> list[Pickup]:
        return list(self._by_key.get(cell, ()))

    def clear(self) -> None:
        self._by_key.clear()

    def __len__(self) -> int:
        return self.count()
