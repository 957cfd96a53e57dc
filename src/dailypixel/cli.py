from __future__ import annotations

import argparse
import sys
import unittest
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .core import (
    EXPORT_SIZES,
    GALLERY_SORTS,
    THEMES,
    DailyPixelError,
    Store,
    export_image,
    image_from_data_url,
    rasterize,
    shift_month,
    to_data_url,
)
from .engine import LEFT, RIGHT, Engine
from .formatting import date_key, normalize_color, parse_date_key
from .grid import GRID_SIZES
from .tools import ToolKind


Step = Tuple[str, int, int, Optional[str]]  # (tool, x, y, color or None=erase)


def _parse_step(kind: str):
    def parse(v: str) -> Step:
        try:
            xs, ys, action = [p.strip() for p in v.split(",", 2)]
            x = int(xs)
            y = int(ys)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid --{kind}: {v!r}") from exc
        if action.lower() == "clear":
            return (kind, x, y, None)
        try:
            return (kind, x, y, normalize_color(action))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid --{kind} color: {action!r}") from exc

    return parse


def _parse_day(v: str) -> date:
    try:
        return parse_date_key(v)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _parse_month(v: str) -> Tuple[int, int]:
    try:
        ys, ms = v.strip().split("-", 1)
        y, m = int(ys), int(ms)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid month: {v!r} (expected YYYY-MM)") from exc
    if not 1 <= m <= 12:
        raise argparse.ArgumentTypeError(f"invalid month: {v!r}")
    return y, m


def apply_steps(engine: Engine, steps: List[Step]) -> int:
    """
    Replay --draw/--fill steps through the engine's pointer interface with an
    identity view (one screen pixel per cell). Returns the number of cell writes.
    """
    engine.view.state.scale = 1
    engine.view.state.pan_x = engine.view.state.pan_y = 0
    changed = 0
    for kind, x, y, color in steps:
        engine.select_tool(ToolKind.PEN if kind == "draw" else ToolKind.FILL)
        button = LEFT
        if color is None:
            button = RIGHT
        else:
            engine.set_active_color(color)
        changed += len(engine.on_pointer_down(x + 0.5, y + 0.5, button))
        engine.on_pointer_up(x + 0.5, y + 0.5, button)
    return changed


def render_month(store: Store, year: int, month: int) -> str:
    """Text month view; days showing art are marked with '*'."""
    lines = [f"{year:04d}-{month:02d}", " Su  Mo  Tu  We  Th  Fr  Sa"]
    for week in store.month_grid(year, month):
        cells = []
        for slot in week:
            if slot is None:
                cells.append("    ")
            else:
                day, entry = slot
                cells.append(f"{day.day:3d}{'*' if entry else ' '}")
        lines.append("".join(cells).rstrip())
    return "\n".join(lines)


def _add_common_store_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--data-dir",
        type=Path,
        help="gallery/calendar folder (default: $DAILYPIXEL_HOME or ~/.dailypixel)",
    )
    p.add_argument("--verbose", action="store_true", help="verbose logging")


def run_selftest() -> int:
    loader = unittest.TestLoader()
    suite = loader.discover(start_dir=str(Path(__file__).parent.parent.parent / "tests"))
    runner = unittest.TextTestRunner(verbosity=2)
    res = runner.run(suite)
    return 0 if res.wasSuccessful() else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="dailypixel",
        description="Daily pixel art: paint small grids, keep a gallery and a calendar.",
    )
    ap.add_argument("--selftest", action="store_true", help="run the internal test suite and exit")
    ap.add_argument("--version", action="version", version=f"dailypixel {__version__}")

    sub = ap.add_subparsers(dest="cmd", required=False)

    p_gui = sub.add_parser("gui", help="launch the graphical user interface")
    _add_common_store_flags(p_gui)

    # paint
    p_paint = sub.add_parser("paint", help="paint a grid from the command line")
    p_paint.add_argument("--size", type=int, choices=GRID_SIZES, default=16, help="grid size")
    p_paint.add_argument("--brush", type=int, default=1, metavar="N", help="pen brush size")
    p_paint.add_argument(
        "--draw",
        dest="steps",
        metavar='"x,y,COLOR|clear"',
        action="append",
        type=_parse_step("draw"),
        help="pen dab at a cell (may be repeated)",
    )
    p_paint.add_argument(
        "--fill",
        dest="steps",
        metavar='"x,y,COLOR|clear"',
        action="append",
        type=_parse_step("fill"),
        help="bucket fill from a cell (may be repeated)",
    )
    p_paint.add_argument("--save", action="store_true", help="add the result to the gallery")
    p_paint.add_argument("--today", action="store_true", help="save to the gallery and show it on today's calendar day")
    p_paint.add_argument("--out-dir", type=Path, help="also export a PNG into this folder")
    p_paint.add_argument("--export-size", choices=EXPORT_SIZES, help="PNG export size")
    _add_common_store_flags(p_paint)

    # gallery
    p_gal = sub.add_parser("gallery", help="list, delete or export saved artworks")
    gsub = p_gal.add_subparsers(dest="gallery_cmd", required=True)
    g_list = gsub.add_parser("list", help="list artworks")
    g_list.add_argument("--sort", choices=GALLERY_SORTS, help="ordering (default from settings)")
    _add_common_store_flags(g_list)
    g_del = gsub.add_parser("delete", help="delete an artwork")
    g_del.add_argument("id")
    _add_common_store_flags(g_del)
    g_exp = gsub.add_parser("export", help="export an artwork as PNG")
    g_exp.add_argument("id")
    g_exp.add_argument("--out-dir", type=Path, help="output folder (default from settings)")
    g_exp.add_argument("--export-size", choices=EXPORT_SIZES)
    _add_common_store_flags(g_exp)

    # calendar
    p_cal = sub.add_parser("calendar", help="bind artworks to calendar days")
    csub = p_cal.add_subparsers(dest="calendar_cmd", required=True)
    c_set = csub.add_parser("set", help="show an artwork on a day")
    c_set.add_argument("id")
    c_set.add_argument("--date", type=_parse_day, metavar="YYYY-MM-DD", help="default: today")
    _add_common_store_flags(c_set)
    c_unset = csub.add_parser("unset", help="clear a day")
    c_unset.add_argument("--date", type=_parse_day, metavar="YYYY-MM-DD", help="default: today")
    _add_common_store_flags(c_unset)
    c_show = csub.add_parser("show", help="print a month")
    c_show.add_argument("--month", type=_parse_month, metavar="YYYY-MM", help="default: this month")
    c_show.add_argument("--offset", type=int, default=0, metavar="N", help="months to move from --month")
    _add_common_store_flags(c_show)

    # settings
    p_set = sub.add_parser("settings", help="show or change settings")
    ssub = p_set.add_subparsers(dest="settings_cmd", required=True)
    s_show = ssub.add_parser("show", help="print settings")
    _add_common_store_flags(s_show)
    s_set = ssub.add_parser("set", help="change settings")
    s_set.add_argument("--theme", choices=THEMES)
    s_set.add_argument("--export-size", choices=EXPORT_SIZES)
    s_set.add_argument("--gallery-sort", choices=GALLERY_SORTS)
    s_set.add_argument("--export-dir", type=Path)
    _add_common_store_flags(s_set)

    return ap


def _cmd_paint(ns: argparse.Namespace) -> None:
    engine = Engine(ns.size)
    engine.set_brush_size(ns.brush)
    changed = apply_steps(engine, ns.steps or [])
    snap = engine.export_snapshot()
    if ns.verbose:
        print(f"Painted {ns.size}x{ns.size} grid ({changed} cell writes)")

    store = None
    if ns.save or ns.today:
        store = Store(ns.data_dir, verbose=ns.verbose)
        entry = store.save_artwork(snap)
        print(entry.id)
        if ns.today:
            store.set_day(entry.id, date.today())
    if ns.out_dir is not None:
        size = ns.export_size or (store.settings.export_size if store else "upscaled")
        export_image(to_data_url(rasterize(snap)), ns.out_dir, export_size=size, verbose=ns.verbose)


def _cmd_gallery(ns: argparse.Namespace) -> None:
    store = Store(ns.data_dir, verbose=ns.verbose)
    if ns.gallery_cmd == "list":
        today = date.today()
        for e in store.gallery(ns.sort):
            img = image_from_data_url(e.data_url)
            star = "*" if store.is_set_for_day(e.id, today) else " "
            print(f"{star} {e.id}  {e.created_at}  {img.width}x{img.height}")
    elif ns.gallery_cmd == "delete":
        store.delete_entry(ns.id)
    elif ns.gallery_cmd == "export":
        path = store.export_entry(ns.id, out_dir=ns.out_dir, export_size=ns.export_size)
        print(path)


def _cmd_calendar(ns: argparse.Namespace) -> None:
    store = Store(ns.data_dir, verbose=ns.verbose)
    if ns.calendar_cmd == "set":
        print(store.set_day(ns.id, ns.date or date.today()))
    elif ns.calendar_cmd == "unset":
        day = ns.date or date.today()
        if not store.unset_day(day):
            print(f"{date_key(day)}: nothing set")
    elif ns.calendar_cmd == "show":
        today = date.today()
        y, m = ns.month or (today.year, today.month)
        y, m = shift_month(y, m, ns.offset)
        print(render_month(store, y, m))


def _cmd_settings(ns: argparse.Namespace) -> None:
    store = Store(ns.data_dir, verbose=ns.verbose)
    if ns.settings_cmd == "set":
        changes = {}
        if ns.theme:
            changes["theme"] = ns.theme
        if ns.export_size:
            changes["export_size"] = ns.export_size
        if ns.gallery_sort:
            changes["gallery_sort"] = ns.gallery_sort
        if ns.export_dir is not None:
            changes["export_dir"] = str(ns.export_dir)
        store.update_settings(**changes)
    s = store.settings
    print(f"theme:        {s.theme}")
    print(f"export_size:  {s.export_size}")
    print(f"gallery_sort: {s.gallery_sort}")
    print(f"export_dir:   {s.export_dir or '-'}")


def main(argv: List[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    ap = build_parser()
    ns = ap.parse_args(argv)

    if ns.cmd == "gui":
        # lazy import to keep CLI startup fast
        from .gui import main as gui_main
        gui_main(data_dir=ns.data_dir, verbose=ns.verbose)
        return

    if ns.selftest and ns.cmd is None:
        sys.exit(run_selftest())

    handlers = {
        "paint": _cmd_paint,
        "gallery": _cmd_gallery,
        "calendar": _cmd_calendar,
        "settings": _cmd_settings,
    }
    handler = handlers.get(ns.cmd)
    if handler is None:
        ap.print_help()
        sys.exit(1)
    try:
        handler(ns)
    except (DailyPixelError, ValueError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
