from __future__ import annotations

from typing import List, Tuple

from .grid import Color, PixelGrid


Cell = Tuple[int, int]

_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def brush_cells(cx: int, cy: int, size: int) -> List[Cell]:
    """
    The size x size square of cells centered on (cx, cy).
    Even sizes lean up/left: offset = (size - 1) // 2.
    Cells are not clipped to any grid.
    """
    if size < 1:
        raise ValueError("brush size must be >= 1")
    off = (size - 1) // 2
    return [
        (cx - off + dx, cy - off + dy)
        for dy in range(size)
        for dx in range(size)
    ]


def paint_cells(grid: PixelGrid, cells: List[Cell], color: Color) -> List[Cell]:
    """Set each cell to color; returns only the cells whose value changed."""
    return [(x, y) for (x, y) in cells if grid.set(x, y, color)]


def flood_fill(
    grid: PixelGrid,
    x0: int,
    y0: int,
    target: Color,
    fill: Color,
) -> List[Cell]:
    """
    4-connected bucket fill starting at (x0, y0).

    Every cell reachable through horizontal/vertical steps whose color
    equals `target` becomes `fill`. EMPTY matches like any other color.
    An off-grid start, or target == fill, changes nothing.
    Returns the changed cells in visit order.
    """
    if not grid.in_bounds(x0, y0) or target == fill:
        return []

    n = grid.size
    visited = [[False] * n for _ in range(n)]
    changed: List[Cell] = []
    work: List[Cell] = [(x0, y0)]

    while work:
        x, y = work.pop()
        if not (0 <= x < n and 0 <= y < n):
            continue
        if visited[y][x] or grid.get(x, y) != target:
            continue
        visited[y][x] = True
        grid.set(x, y, fill)
        changed.append((x, y))
        for dx, dy in _NEIGHBOURS:
            work.append((x + dx, y + dy))

    return changed
