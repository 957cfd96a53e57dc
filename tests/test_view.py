import unittest

from dailypixel.view import MAX_SCALE, MIN_SCALE, ViewState, ViewTransform


class TestViewTransform(unittest.TestCase):
    def test_screen_to_grid(self):
        v = ViewTransform(ViewState(scale=10, pan_x=20, pan_y=30))
        self.assertEqual(v.screen_to_grid(20, 30), (0, 0))
        self.assertEqual(v.screen_to_grid(29.9, 39.9), (0, 0))
        self.assertEqual(v.screen_to_grid(35, 55), (1, 2))
        self.assertEqual(v.screen_to_grid(19, 29), (-1, -1))  # floor, not truncation

    def test_grid_to_screen_inverse(self):
        v = ViewTransform(ViewState(scale=7, pan_x=-3, pan_y=11))
        sx, sy = v.grid_to_screen(4, 5)
        self.assertEqual(v.screen_to_grid(sx + 0.5, sy + 0.5), (4, 5))

    def test_zoom_keeps_pointer_cell(self):
        v = ViewTransform(ViewState(scale=12, pan_x=40, pan_y=25))
        for px, py in [(100, 100), (47.3, 300.9), (0, 0)]:
            for direction in (1, 1, -1, 1, -1, -1, -1):
                before = ((px - v.state.pan_x) / v.scale, (py - v.state.pan_y) / v.scale)
                v.zoom_at(px, py, direction)
                after = ((px - v.state.pan_x) / v.scale, (py - v.state.pan_y) / v.scale)
                self.assertAlmostEqual(before[0], after[0], places=9)
                self.assertAlmostEqual(before[1], after[1], places=9)

    def test_zoom_step_and_clamp(self):
        v = ViewTransform(ViewState(scale=10))
        self.assertAlmostEqual(v.zoom_at(0, 0, 1), 11.0)
        self.assertAlmostEqual(v.zoom_at(0, 0, -1), 9.9)
        self.assertEqual(v.zoom_at(0, 0, 0), v.scale)
        v.state.scale = MAX_SCALE
        self.assertEqual(v.zoom_at(5, 5, 1), MAX_SCALE)
        v.state.scale = MIN_SCALE
        self.assertEqual(v.zoom_at(5, 5, -1), MIN_SCALE)

    def test_fit_to_container(self):
        v = ViewTransform()
        v.fit_to_container(600, 400, 16)
        self.assertEqual(v.scale, 22)  # floor(min(560, 360) / 16)
        self.assertEqual(v.state.pan_x, (600 - 16 * 22) / 2)
        self.assertEqual(v.state.pan_y, (400 - 16 * 22) / 2)

    def test_fit_minimum_scale(self):
        v = ViewTransform()
        v.fit_to_container(30, 30, 64)
        self.assertEqual(v.scale, 1)
        self.assertEqual(v.state.pan_x, (30 - 64) / 2)

    def test_fit_caps_at_max_scale(self):
        v = ViewTransform()
        v.fit_to_container(1920, 1080, 16)
        self.assertEqual(v.scale, MAX_SCALE)
        self.assertEqual(v.state.pan_x, (1920 - 16 * 50) / 2)
        before = v.scale
        self.assertGreaterEqual(v.zoom_at(500, 500, 1), before)

    def test_pan_unbounded(self):
        v = ViewTransform()
        v.pan(-10000, 5)
        v.pan(3, 5)
        self.assertEqual((v.state.pan_x, v.state.pan_y), (-9997, 10))

    def test_pan_gesture(self):
        v = ViewTransform()
        self.assertFalse(v.drag_pan(10, 10))
        v.begin_pan(100, 100)
        self.assertTrue(v.drag_pan(110, 95))
        self.assertTrue(v.drag_pan(120, 95))
        v.end_pan()
        self.assertFalse(v.state.is_panning)
        self.assertEqual((v.state.pan_x, v.state.pan_y), (20, -5))
