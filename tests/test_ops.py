import unittest

from dailypixel.grid import EMPTY, PixelGrid
from dailypixel.ops import brush_cells, flood_fill, paint_cells


RED = "#ff0000"
BLUE = "#0000ff"


class TestBrush(unittest.TestCase):
    def test_size_one(self):
        self.assertEqual(brush_cells(5, 5, 1), [(5, 5)])

    def test_size_three_centered(self):
        cells = brush_cells(5, 5, 3)
        self.assertEqual(len(cells), 9)
        self.assertEqual(min(cells), (4, 4))
        self.assertEqual(max(cells), (6, 6))

    def test_even_size_leans_up_left(self):
        cells = set(brush_cells(5, 5, 2))
        self.assertEqual(cells, {(5, 5), (6, 5), (5, 6), (6, 6)})
        cells = set(brush_cells(5, 5, 4))
        self.assertIn((4, 4), cells)
        self.assertIn((7, 7), cells)

    def test_paint_cells_skips_off_grid(self):
        g = PixelGrid(16)
        changed = paint_cells(g, brush_cells(0, 0, 3), RED)
        self.assertEqual(sorted(changed), [(0, 0), (0, 1), (1, 0), (1, 1)])


class TestFloodFill(unittest.TestCase):
    def test_fills_empty_grid(self):
        g = PixelGrid(16)
        changed = flood_fill(g, 0, 0, EMPTY, RED)
        self.assertEqual(len(changed), 256)
        self.assertTrue(all(c == RED for row in g.rows() for c in row))

    def test_idempotent(self):
        g = PixelGrid(16)
        for y in range(16):
            g.set(8, y, BLUE)
        flood_fill(g, 0, 0, EMPTY, RED)
        before = g.snapshot()
        self.assertEqual(flood_fill(g, 0, 0, g.get(0, 0), RED), [])
        self.assertEqual(g.snapshot(), before)

    def test_wall_stops_fill(self):
        g = PixelGrid(16)
        for y in range(16):
            g.set(8, y, BLUE)
        changed = flood_fill(g, 0, 0, EMPTY, RED)
        self.assertEqual(len(changed), 8 * 16)
        self.assertIs(g.get(9, 0), EMPTY)
        self.assertEqual(g.get(8, 0), BLUE)

    def test_checkerboard_is_four_connected(self):
        g = PixelGrid(16)
        for y in range(16):
            for x in range(16):
                if (x + y) % 2 == 0:
                    g.set(x, y, BLUE)
        before = g.snapshot()
        changed = flood_fill(g, 3, 3, BLUE, RED)
        self.assertEqual(changed, [(3, 3)])
        after = g.snapshot()
        diffs = [(x, y) for y in range(16) for x in range(16) if before[y][x] != after[y][x]]
        self.assertEqual(diffs, [(3, 3)])

    def test_fill_with_empty(self):
        g = PixelGrid(16)
        flood_fill(g, 0, 0, EMPTY, RED)
        flood_fill(g, 4, 4, RED, EMPTY)
        self.assertEqual(list(g.painted()), [])

    def test_same_colors_noop(self):
        g = PixelGrid(16)
        self.assertEqual(flood_fill(g, 0, 0, EMPTY, EMPTY), [])

    def test_out_of_bounds_start_rejected(self):
        g = PixelGrid(16)
        self.assertEqual(flood_fill(g, -1, 0, EMPTY, RED), [])
        self.assertEqual(flood_fill(g, 0, 16, EMPTY, RED), [])
        self.assertEqual(list(g.painted()), [])

    def test_large_grid_terminates(self):
        g = PixelGrid(64)
        self.assertEqual(len(flood_fill(g, 63, 63, EMPTY, RED)), 64 * 64)
