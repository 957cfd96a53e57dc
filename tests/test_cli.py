import argparse
import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from dailypixel.cli import _parse_step, apply_steps, build_parser, main
from dailypixel.core import Store
from dailypixel.engine import Engine


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    code = 0
    with redirect_stdout(out), redirect_stderr(err):
        try:
            main(argv)
        except SystemExit as e:
            code = e.code
    return code, out.getvalue(), err.getvalue()


class TestParse(unittest.TestCase):
    def test_parse_step(self):
        self.assertEqual(_parse_step("draw")("1, 2, #F00"), ("draw", 1, 2, "#ff0000"))
        self.assertEqual(_parse_step("fill")("3,4,clear"), ("fill", 3, 4, None))
        for bad in ("1,2", "a,b,#000", "1,2,notacolor"):
            with self.assertRaises(argparse.ArgumentTypeError):
                _parse_step("draw")(bad)

    def test_steps_keep_order(self):
        ns = build_parser().parse_args(
            ["paint", "--fill", "0,0,#ff0000", "--draw", "1,1,#00ff00", "--fill", "0,0,#0000ff"]
        )
        self.assertEqual([s[0] for s in ns.steps], ["fill", "draw", "fill"])


class TestApplySteps(unittest.TestCase):
    def test_fill_then_draw_then_erase(self):
        e = Engine(16)
        apply_steps(e, [
            ("fill", 0, 0, "#ff0000"),
            ("draw", 5, 5, "#00ff00"),
            ("draw", 6, 6, None),
        ])
        self.assertEqual(e.grid.get(0, 0), "#ff0000")
        self.assertEqual(e.grid.get(5, 5), "#00ff00")
        self.assertIsNone(e.grid.get(6, 6))
        self.assertEqual(len(e.history), 3)


class TestMain(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.data = Path(self._td.name) / "data"

    def tearDown(self):
        self._td.cleanup()

    def test_paint_save_and_list(self):
        code, out, _ = _run([
            "paint", "--size", "32", "--fill", "0,0,#336699", "--save", "--today",
            "--data-dir", str(self.data),
        ])
        self.assertEqual(code, 0)
        entry_id = out.strip()
        store = Store(self.data)
        self.assertEqual([e.id for e in store.gallery()], [entry_id])
        self.assertEqual(list(store.calendar.values()), [entry_id])

        code, out, _ = _run(["gallery", "list", "--data-dir", str(self.data)])
        self.assertEqual(code, 0)
        self.assertIn(entry_id, out)
        self.assertIn("32x32", out)
        self.assertTrue(out.startswith("*"))

    def test_paint_today_implies_save(self):
        code, out, _ = _run(["paint", "--draw", "0,0,#000", "--today", "--data-dir", str(self.data)])
        self.assertEqual(code, 0)
        entry_id = out.strip()
        store = Store(self.data)
        self.assertEqual([e.id for e in store.gallery()], [entry_id])
        self.assertEqual(list(store.calendar.values()), [entry_id])

    def test_paint_export(self):
        out_dir = Path(self._td.name) / "png"
        code, _, _ = _run([
            "paint", "--draw", "0,0,#000", "--out-dir", str(out_dir), "--export-size", "original",
        ])
        self.assertEqual(code, 0)
        files = list(out_dir.glob("pixel-art-*.png"))
        self.assertEqual(len(files), 1)

    def test_calendar_show_and_unknown_id(self):
        code, out, _ = _run(["calendar", "show", "--month", "2024-10", "--data-dir", str(self.data)])
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("2024-10"))
        self.assertIn("31", out)

        code, _, err = _run(["calendar", "set", "nope", "--data-dir", str(self.data)])
        self.assertEqual(code, 2)
        self.assertIn("nope", err)

    def test_settings_set(self):
        code, out, _ = _run(["settings", "set", "--theme", "light", "--data-dir", str(self.data)])
        self.assertEqual(code, 0)
        self.assertIn("light", out)
        self.assertEqual(Store(self.data).settings.theme, "light")

    def test_bad_brush_reports_error(self):
        code, _, err = _run(["paint", "--brush", "0"])
        self.assertEqual(code, 2)
        self.assertIn("brush", err)

    def test_no_command_prints_help(self):
        code, out, _ = _run([])
        self.assertEqual(code, 1)
        self.assertIn("dailypixel", out)
