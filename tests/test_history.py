import unittest

from dailypixel.grid import PixelGrid
from dailypixel.history import MAX_HISTORY, HistoryStack


class TestHistoryStack(unittest.TestCase):
    def test_empty_undo_fails(self):
        h = HistoryStack()
        g = PixelGrid(16)
        g.set(0, 0, "#ff0000")
        self.assertFalse(h.undo(g))
        self.assertEqual(g.get(0, 0), "#ff0000")
        self.assertEqual(h.step, -1)

    def test_undo_round_trip(self):
        h = HistoryStack()
        g = PixelGrid(16)
        g.set(2, 2, "#00ff00")
        before = g.snapshot()
        h.push(g)
        g.set(2, 2, "#0000ff")
        g.set(3, 3, "#0000ff")
        self.assertTrue(h.undo(g))
        self.assertEqual(g.snapshot(), before)
        self.assertFalse(h.can_undo)

    def test_snapshot_is_not_aliased(self):
        h = HistoryStack()
        g = PixelGrid(16)
        h.push(g)
        g.set(0, 0, "#ff0000")
        h.undo(g)
        g.set(1, 1, "#ff0000")
        self.assertTrue(all(c is None for row in h.entries()[0] for c in row))

    def test_bounded(self):
        h = HistoryStack()
        g = PixelGrid(16)
        k = 5
        for i in range(MAX_HISTORY + k):
            g.set(0, 0, f"#0000{i:02x}")
            h.push(g)
        self.assertEqual(len(h), MAX_HISTORY)
        self.assertEqual(h.step, MAX_HISTORY - 1)
        undone = 0
        while h.undo(g):
            undone += 1
        self.assertEqual(undone, MAX_HISTORY)
        # oldest surviving snapshot is push number k (0-based)
        self.assertEqual(g.get(0, 0), f"#0000{k:02x}")

    def test_push_after_undo_truncates(self):
        h = HistoryStack()
        g = PixelGrid(16)
        for i in range(3):
            g.set(0, 0, f"#00000{i}")
            h.push(g)
        h.undo(g)
        h.undo(g)
        self.assertEqual(h.step, 0)
        h.push(g)
        self.assertEqual(len(h), 2)
        self.assertEqual(h.step, 1)

    def test_clear(self):
        h = HistoryStack()
        h.push(PixelGrid(16))
        h.clear()
        self.assertEqual(len(h), 0)
        self.assertEqual(h.step, -1)
