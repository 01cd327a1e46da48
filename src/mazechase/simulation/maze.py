"""MazeGenerator — randomized recursive-backtracking maze on an odd grid.

The grid is an N x N ``numpy.int8`` array of OPEN (0) / WALL (1) cells.
Corridors are one cell thick and run on odd grid lines; the outer border is
always wall.  Carving starts at the start cell ``(1, 1)`` and produces a
perfect maze (a spanning tree over the odd cells), so every OPEN cell is
reachable from the start cell by construction.  Nothing ever repairs
connectivity after the fact.

Before carving, two small neighbourhoods are forced open:

  - the center cell and its four axis neighbours (the goal sits there)
  - the start cell plus the cells to its right and below

Each forced cell touches an odd-odd cell that carving always opens, so the
forced cells stay connected.

The grid is frozen (``writeable = False``) once generated.  Encroachment
never writes to it; structures and cleared walls are tracked by the
session.
"""

from __future__ import annotations

import random
from collections import deque
from typing import Iterator

import numpy as np
from loguru import logger

from mazechase.errors import ConfigurationError

from .geometry import PositionKey

OPEN = 0
WALL = 1

MIN_SIZE = 7

# Axis directions (dx, dy): up, right, down, left
_DIRECTIONS = ((0, -1), (1, 0), (0, 1), (-1, 0))


class Grid:
    """Read-only maze grid.  Index with (col, row)."""

    def __init__(self, cells: np.ndarray, start: PositionKey = (1, 1)) -> None:
        if cells.ndim != 2 or cells.shape[0] != cells.shape[1]:
            raise ConfigurationError(f"grid must be square, got shape {cells.shape}")
        self._cells = np.array(cells, dtype=np.int8, copy=True)
        self._cells.flags.writeable = False
        self.size: int = int(self._cells.shape[0])
        self.start: PositionKey = start
        c = self.size // 2
        self.center: PositionKey = (c, c)

    @property
    def cells(self) -> np.ndarray:
        """Row-major array, ``cells[row, col]``.  Read-only view."""
        return self._cells

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.size and 0 <= row < self.size

    def is_wall(self, col: int, row: int) -> bool:
        """True for a WALL cell.  Out-of-bounds cells are not walls."""
        if not self.in_bounds(col, row):
            return False
        return bool(self._cells[row, col] == WALL)

    def is_open(self, col: int, row: int) -> bool:
        """True for an in-bounds OPEN cell."""
        if not self.in_bounds(col, row):
            return False
        return bool(self._cells[row, col] == OPEN)

    def open_cells(self) -> list[PositionKey]:
        rows, cols = np.nonzero(self._cells == OPEN)
        return [(int(c), int(r)) for r, c in zip(rows, cols)]

    def wall_cells(self) -> list[PositionKey]:
        rows, cols = np.nonzero(self._cells == WALL)
        return [(int(c), int(r)) for r, c in zip(rows, cols)]

    def open_count(self) -> int:
        return int(np.count_nonzero(self._cells == OPEN))

    def neighbours(self, col: int, row: int) -> Iterator[PositionKey]:
        for dx, dy in _DIRECTIONS:
            nc, nr = col + dx, row + dy
            if self.is_open(nc, nr):
                yield (nc, nr)

    def reachable_from(self, cell: PositionKey) -> set[PositionKey]:
        """BFS over OPEN cells with 4-connectivity."""
        if not self.is_open(*cell):
            return set()
        seen = {cell}
        queue = deque([cell])
        while queue:
            col, row = queue.popleft()
            for nxt in self.neighbours(col, row):
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return seen

    def __repr__(self) -> str:
        return f"Grid(size={self.size}, open={self.open_count()})"


class MazeGenerator:
    """Builds Grids.  Deterministic for a seeded ``random.Random``."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate(self, size: int) -> Grid:
        """Generate a ``size`` x ``size`` maze.

        Raises:
            ConfigurationError: size is even or smaller than 7.
        """
        if not isinstance(size, int) or size < MIN_SIZE or size % 2 == 0:
            raise ConfigurationError(
                f"maze size must be an odd integer >= {MIN_SIZE}, got {size!r}"
            )

        cells = np.full((size, size), WALL, dtype=np.int8)

        c = size // 2
        for col, row in ((c, c), (c, c - 1), (c, c + 1), (c - 1, c), (c + 1, c)):
            cells[row, col] = OPEN
        for col, row in ((1, 1), (2, 1), (1, 2)):
            cells[row, col] = OPEN

        self._carve(cells, (1, 1))

        grid = Grid(cells, start=(1, 1))
        logger.debug(f"Generated maze {size}x{size} with {grid.open_count()} open cells")
        return grid

    def _carve(self, cells: np.ndarray, start: PositionKey) -> None:
        """Recursive backtracking with an explicit stack.

        Each stack frame holds a cell and the iterator over its shuffled
        directions, so cells are visited in exactly the order the recursive
        formulation would visit them.
        """
        size = cells.shape[0]
        stack = [(start, iter(self._shuffled()))]
        while stack:
            (x, y), directions = stack[-1]
            for dx, dy in directions:
                nx, ny = x + dx * 2, y + dy * 2
                if 0 <= nx < size and 0 <= ny < size and cells[ny, nx] == WALL:
                    cells[y + dy, x + dx] = OPEN
                    cells[ny, nx] = OPEN
                    stack.append(((nx, ny), iter(self._shuffled())))
                    break
            else:
                stack.pop()

    def _shuffled(self) -> list[tuple[int, int]]:
        dirs = list(_DIRECTIONS)
        self._rng.shuffle(dirs)
        return dirs
