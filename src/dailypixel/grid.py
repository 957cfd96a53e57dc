from __future__ import annotations

from typing import Iterator, List, Optional, Tuple


Color = Optional[str]  # '#rrggbb' or EMPTY
Snapshot = Tuple[Tuple[Color, ...], ...]  # immutable rows of cells

EMPTY: Color = None
GRID_SIZES = (16, 32, 64)


class PixelGrid:
    """
    Square raster of color-or-empty cells, addressed as (x, y) with the
    origin at the top-left. The size is fixed for the lifetime of the grid.
    """

    def __init__(self, size: int) -> None:
        if size not in GRID_SIZES:
            raise ValueError(f"grid size must be one of {GRID_SIZES}, got {size!r}")
        self.size = size
        self._cells: List[List[Color]] = [[EMPTY] * size for _ in range(size)]

    @classmethod
    def create(cls, size: int) -> "PixelGrid":
        return cls(size)

    @classmethod
    def from_snapshot(cls, snap: Snapshot) -> "PixelGrid":
        grid = cls(len(snap))
        grid.restore(snap)
        return grid

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> Color:
        """Cell color, or EMPTY when (x, y) is off the grid."""
        if not self.in_bounds(x, y):
            return EMPTY
        return self._cells[y][x]

    def set(self, x: int, y: int, color: Color) -> bool:
        """
        Write one cell. Returns True only if the stored value changed;
        off-grid writes are ignored and return False.
        """
        if not self.in_bounds(x, y):
            return False
        row = self._cells[y]
        if row[x] == color:
            return False
        row[x] = color
        return True

    def clear(self) -> bool:
        changed = False
        for row in self._cells:
            for x in range(self.size):
                if row[x] is not EMPTY:
                    row[x] = EMPTY
                    changed = True
        return changed

    def clone(self) -> "PixelGrid":
        out = PixelGrid(self.size)
        out._cells = [row[:] for row in self._cells]
        return out

    def snapshot(self) -> Snapshot:
        return tuple(tuple(row) for row in self._cells)

    def restore(self, snap: Snapshot) -> None:
        if len(snap) != self.size or any(len(row) != self.size for row in snap):
            raise ValueError(f"snapshot does not match grid size {self.size}")
        self._cells = [list(row) for row in snap]

    def rows(self) -> Iterator[Tuple[Color, ...]]:
        for row in self._cells:
            yield tuple(row)

    def painted(self) -> Iterator[Tuple[int, int, str]]:
        """(x, y, color) for every non-empty cell, row-major."""
        for y, row in enumerate(self._cells):
            for x, c in enumerate(row):
                if c is not EMPTY:
                    yield x, y, c

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"PixelGrid({self.size}x{self.size}, painted={sum(1 for _ in self.painted())})"
