from __future__ import annotations

import io
import threading
import tkinter as tk
from contextlib import redirect_stderr, redirect_stdout
from datetime import date
from pathlib import Path
from tkinter import colorchooser, filedialog, messagebox, ttk
from typing import Callable, List, Optional

from PIL import Image, ImageTk

from . import __version__
from .core import DailyPixelError, Store, image_from_data_url, rasterize, shift_month
from .engine import LEFT, MIDDLE, RIGHT, Engine
from .formatting import date_key
from .grid import GRID_SIZES
from .tools import BRUSH_SIZES, PALETTE_COLORS, ToolKind


# Tk button numbers -> engine buttons
_TK_BUTTONS = {1: LEFT, 2: MIDDLE, 3: RIGHT}

_THEME_BG = {"dark": "#2b2b2b", "light": "#e8e8e8"}
_THUMB = 96
_DAY_THUMB = 40


class App(ttk.Frame):
    def __init__(self, master: tk.Tk, store: Store) -> None:
        super().__init__(master, padding=8)
        self.master.title(f"Daily Pixel Art — v{__version__}")
        self.master.geometry("1000x760")
        self.master.minsize(820, 600)

        self.store = store
        self.engine = Engine()
        self._fitted = False
        self._space_down = False
        self._button_down: Optional[int] = None

        # Painter vars
        self.grid_size = tk.StringVar(value=str(self.engine.size))
        self.brush_size = tk.StringVar(value=str(self.engine.tool_state.brush_size))
        self.tool = tk.StringVar(value=self.engine.tool_state.kind.value)
        self.tool.trace_add("write", lambda *_: self.engine.select_tool(self.tool.get()))

        # Gallery / calendar / settings vars
        s = self.store.settings
        self.gallery_sort = tk.StringVar(value=s.gallery_sort)
        self.gallery_sort.trace_add("write", lambda *_: self._gallery_sort_changed())
        self.theme = tk.StringVar(value=s.theme)
        self.export_size = tk.StringVar(value=s.export_size)
        self.export_dir = tk.StringVar(value=s.export_dir or "")
        today = date.today()
        self._cal_year, self._cal_month = today.year, today.month

        # image refs (prevent GC)
        self._photo: Optional[ImageTk.PhotoImage] = None
        self._thumbs: List[ImageTk.PhotoImage] = []

        self._build_menu()
        self._build_ui()
        self._apply_theme()

    # ---------- Menubar / About ----------
    def _build_menu(self) -> None:
        menubar = tk.Menu(self.master)

        file_menu = tk.Menu(menubar, tearoff=False)
        file_menu.add_command(label="Save to Gallery", command=self._save_clicked)
        file_menu.add_command(label="Undo", command=self._undo_clicked)
        file_menu.add_separator()
        file_menu.add_command(label="Quit", command=self.master.destroy)
        menubar.add_cascade(label="File", menu=file_menu)

        about_menu = tk.Menu(menubar, tearoff=False)
        about_menu.add_command(label="About Daily Pixel Art…", command=self._show_about)
        menubar.add_cascade(label="About", menu=about_menu)

        self.master.config(menu=menubar)
        self.master.bind("<Control-z>", lambda e: self._undo_clicked())

    def _show_about(self) -> None:
        messagebox.showinfo(
            "About",
            f"Daily Pixel Art v{__version__}\n\n"
            "• Left-drag paints, right-drag erases\n"
            "• Middle-drag or Space+drag pans, wheel zooms\n"
            "• Save to the gallery, then pin a work to today's calendar\n\n"
            "CLI: dailypixel paint|gallery|calendar|settings    GUI: dailypixel-gui",
        )

    # ---------------- UI ----------------
    def _build_ui(self) -> None:
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)

        self.tabs = ttk.Notebook(self)
        self.tabs.grid(row=0, column=0, sticky="nsew")
        self.tabs.bind("<<NotebookTabChanged>>", self._tab_changed)

        self._build_painter()
        self._build_gallery()
        self._build_calendar()
        self._build_settings()

        logbox = ttk.LabelFrame(self, text="Log")
        logbox.grid(row=1, column=0, sticky="nsew", pady=(8, 0))
        logbox.columnconfigure(0, weight=1)
        self.log = tk.Text(logbox, height=5, wrap="word")
        self.log.grid(row=0, column=0, sticky="nsew")
        yscroll = ttk.Scrollbar(logbox, orient="vertical", command=self.log.yview)
        yscroll.grid(row=0, column=1, sticky="ns")
        self.log.configure(yscrollcommand=yscroll.set)

        self.pack(fill="both", expand=True)

    def _build_painter(self) -> None:
        tab = ttk.Frame(self.tabs, padding=6)
        self.tabs.add(tab, text="Painter")
        tab.columnconfigure(0, weight=1)
        tab.rowconfigure(2, weight=1)

        bar = ttk.Frame(tab)
        bar.grid(row=0, column=0, sticky="w", pady=(0, 4))
        ttk.Label(bar, text="Grid").grid(row=0, column=0)
        cb_grid = ttk.Combobox(bar, textvariable=self.grid_size, width=4, state="readonly",
                               values=[str(n) for n in GRID_SIZES])
        cb_grid.grid(row=0, column=1, padx=(4, 12))
        cb_grid.bind("<<ComboboxSelected>>", lambda e: self._grid_size_changed())
        ttk.Label(bar, text="Brush").grid(row=0, column=2)
        cb_brush = ttk.Combobox(bar, textvariable=self.brush_size, width=3, state="readonly",
                                values=[str(n) for n in BRUSH_SIZES])
        cb_brush.grid(row=0, column=3, padx=(4, 12))
        cb_brush.bind("<<ComboboxSelected>>",
                      lambda e: self.engine.set_brush_size(int(self.brush_size.get())))
        for i, kind in enumerate(ToolKind):
            ttk.Radiobutton(bar, text=kind.value.capitalize(), value=kind.value,
                            variable=self.tool).grid(row=0, column=4 + i)
        ttk.Button(bar, text="Undo", command=self._undo_clicked).grid(row=0, column=9, padx=(14, 4))
        ttk.Button(bar, text="Clear", command=self._clear_clicked).grid(row=0, column=10, padx=4)
        ttk.Button(bar, text="Save", command=self._save_clicked).grid(row=0, column=11, padx=4)

        pal = ttk.Frame(tab)
        pal.grid(row=1, column=0, sticky="w", pady=(0, 4))
        self.color_swatch = tk.Label(pal, width=4, relief="sunken", bg=self.engine.tool_state.color)
        self.color_swatch.grid(row=0, column=0, padx=(0, 4))
        ttk.Button(pal, text="Color…", command=self._choose_color).grid(row=0, column=1, padx=(0, 10))
        for i, color in enumerate(PALETTE_COLORS):
            sw = tk.Label(pal, width=2, bg=color, relief="raised", cursor="hand2")
            sw.grid(row=0, column=2 + i, padx=1)
            sw.bind("<Button-1>", lambda e, c=color: self._set_color(c))

        self.canvas = tk.Canvas(tab, highlightthickness=0)
        self.canvas.grid(row=2, column=0, sticky="nsew")
        for num in _TK_BUTTONS:
            self.canvas.bind(f"<ButtonPress-{num}>", self._canvas_press)
            self.canvas.bind(f"<ButtonRelease-{num}>", self._canvas_release)
        self.canvas.bind("<Motion>", self._canvas_motion)
        self.canvas.bind("<MouseWheel>", self._canvas_wheel)
        self.canvas.bind("<Button-4>", lambda e: self._zoom(e, 1))
        self.canvas.bind("<Button-5>", lambda e: self._zoom(e, -1))
        self.canvas.bind("<Configure>", self._canvas_configure)
        self.master.bind("<KeyPress-space>", lambda e: self._set_space(True))
        self.master.bind("<KeyRelease-space>", lambda e: self._set_space(False))

    def _build_gallery(self) -> None:
        tab = ttk.Frame(self.tabs, padding=6)
        self.tabs.add(tab, text="Gallery")
        tab.columnconfigure(0, weight=1)
        tab.rowconfigure(1, weight=1)

        bar = ttk.Frame(tab)
        bar.grid(row=0, column=0, sticky="w", pady=(0, 6))
        ttk.Label(bar, text="Sort").grid(row=0, column=0)
        ttk.Combobox(bar, textvariable=self.gallery_sort, values=("newest", "oldest"),
                     width=8, state="readonly").grid(row=0, column=1, padx=4)

        self.gallery_frame = ttk.Frame(tab)
        self.gallery_frame.grid(row=1, column=0, sticky="nsew")

    def _build_calendar(self) -> None:
        tab = ttk.Frame(self.tabs, padding=6)
        self.tabs.add(tab, text="Calendar")
        for c in range(7):
            tab.columnconfigure(c, weight=1)

        ttk.Button(tab, text="◀", width=3, command=lambda: self._change_month(-1)).grid(row=0, column=0, sticky="w")
        self.month_label = ttk.Label(tab, anchor="center")
        self.month_label.grid(row=0, column=1, columnspan=5, sticky="ew")
        ttk.Button(tab, text="▶", width=3, command=lambda: self._change_month(1)).grid(row=0, column=6, sticky="e")
        for c, name in enumerate(("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")):
            ttk.Label(tab, text=name, anchor="center").grid(row=1, column=c, sticky="ew")

        self.calendar_frame = ttk.Frame(tab)
        self.calendar_frame.grid(row=2, column=0, columnspan=7, sticky="nsew")
        for c in range(7):
            self.calendar_frame.columnconfigure(c, weight=1, uniform="day")

    def _build_settings(self) -> None:
        tab = ttk.Frame(self.tabs, padding=12)
        self.tabs.add(tab, text="Settings")

        ttk.Label(tab, text="Theme").grid(row=0, column=0, sticky="w", pady=4)
        for i, t in enumerate(("dark", "light")):
            ttk.Radiobutton(tab, text=t.capitalize(), value=t, variable=self.theme,
                            command=self._theme_changed).grid(row=0, column=1 + i, sticky="w")

        ttk.Label(tab, text="Export size").grid(row=1, column=0, sticky="w", pady=4)
        for i, (val, label) in enumerate((("upscaled", "1024×1024"), ("original", "Original"))):
            ttk.Radiobutton(tab, text=label, value=val, variable=self.export_size,
                            command=lambda: self._update_settings(export_size=self.export_size.get())
                            ).grid(row=1, column=1 + i, sticky="w")

        ttk.Label(tab, text="Export folder").grid(row=2, column=0, sticky="w", pady=4)
        ttk.Entry(tab, textvariable=self.export_dir, width=50, state="readonly").grid(row=2, column=1, columnspan=2, sticky="ew")
        ttk.Button(tab, text="Select…", command=self._choose_export_dir).grid(row=2, column=3, padx=4)

        ttk.Label(tab, text=f"Data folder: {self.store.data_dir}").grid(row=3, column=0, columnspan=4, sticky="w", pady=(12, 0))

    # ---------- Painter ----------
    def _render(self) -> None:
        """Redraw the grid image at the engine's current pan/zoom."""
        self.canvas.delete("all")
        n = self.engine.size
        scale = self.engine.view.scale
        side = max(1, int(round(n * scale)))
        img = rasterize(self.engine.export_snapshot())
        if side != n:
            img = img.resize((side, side), Image.NEAREST)
        self._photo = ImageTk.PhotoImage(img)
        sx, sy = self.engine.view.grid_to_screen(0, 0)
        self.canvas.create_image(sx, sy, anchor="nw", image=self._photo)
        if scale >= 8:
            for i in range(n + 1):
                x0, y0 = self.engine.view.grid_to_screen(i, 0)
                x1, y1 = self.engine.view.grid_to_screen(i, n)
                self.canvas.create_line(x0, y0, x1, y1, fill="#DDDDDD")
                x0, y0 = self.engine.view.grid_to_screen(0, i)
                x1, y1 = self.engine.view.grid_to_screen(n, i)
                self.canvas.create_line(x0, y0, x1, y1, fill="#DDDDDD")

    def _fit(self) -> None:
        w, h = self.canvas.winfo_width(), self.canvas.winfo_height()
        if w > 1 and h > 1:
            self.engine.fit(w, h)
            self._fitted = True
        self._render()

    def _canvas_configure(self, _event) -> None:
        if not self._fitted:
            self._fit()

    def _modifiers(self) -> tuple:
        return ("space",) if self._space_down else ()

    def _set_space(self, down: bool) -> None:
        self._space_down = down
        self.canvas.configure(cursor="fleur" if down else "")

    def _canvas_press(self, event) -> None:
        button = _TK_BUTTONS.get(event.num)
        if button is None or self._button_down is not None:
            return
        self._button_down = button
        changed = self.engine.on_pointer_down(event.x, event.y, button, self._modifiers())
        if self.engine.is_panning:
            self.canvas.configure(cursor="fleur")
        if self.engine.tool_state.kind is ToolKind.EYEDROPPER:
            self.color_swatch.configure(bg=self.engine.tool_state.color)
        if changed:
            self._render()

    def _canvas_motion(self, event) -> None:
        if self._button_down is None:
            return
        panning = self.engine.is_panning
        changed = self.engine.on_pointer_move(event.x, event.y, self._button_down, self._modifiers())
        if changed or panning:
            self._render()

    def _canvas_release(self, event) -> None:
        if _TK_BUTTONS.get(event.num) != self._button_down:
            return
        self.engine.on_pointer_up(event.x, event.y, self._button_down, self._modifiers())
        self._button_down = None
        self.canvas.configure(cursor="fleur" if self._space_down else "")

    def _canvas_wheel(self, event) -> None:
        self._zoom(event, 1 if event.delta > 0 else -1)

    def _zoom(self, event, direction: int) -> None:
        self.engine.on_wheel(event.x, event.y, direction)
        self._render()

    def _grid_size_changed(self) -> None:
        new = int(self.grid_size.get())
        if new == self.engine.size:
            return
        if not messagebox.askyesno("Grid size", "Changing the size discards the current drawing. Continue?"):
            self.grid_size.set(str(self.engine.size))
            return
        self.engine.resize(new)
        self._fit()
        self._append_log(f"Painter: new {new}x{new} grid")

    def _set_color(self, color: str) -> None:
        self.engine.set_active_color(color)
        self.color_swatch.configure(bg=self.engine.tool_state.color)

    def _choose_color(self) -> None:
        _rgb, hexcolor = colorchooser.askcolor(color=self.engine.tool_state.color, parent=self.master)
        if hexcolor:
            self._set_color(hexcolor)

    def _undo_clicked(self) -> None:
        if self.engine.undo():
            self._render()
        else:
            self._append_log("Nothing to undo")

    def _clear_clicked(self) -> None:
        if messagebox.askyesno("Clear", "Erase the whole drawing?") and self.engine.clear():
            self._render()

    def _save_clicked(self) -> None:
        snap = self.engine.export_snapshot()
        entry = self._store_call(self.store.save_artwork, snap)
        if entry is not None:
            self._append_log(f"Saved to gallery ({entry.id})")

    # ---------- Gallery ----------
    def _tab_changed(self, _event) -> None:
        current = self.tabs.index(self.tabs.select())
        if current == 1:
            self._gallery_render()
        elif current == 2:
            self._calendar_render()

    def _thumb(self, data_url: str, size: int) -> ImageTk.PhotoImage:
        img = image_from_data_url(data_url).convert("RGB").resize((size, size), Image.NEAREST)
        photo = ImageTk.PhotoImage(img)
        self._thumbs.append(photo)
        return photo

    def _gallery_render(self) -> None:
        for child in self.gallery_frame.winfo_children():
            child.destroy()
        self._thumbs = []
        entries = self.store.gallery(self.gallery_sort.get())
        if not entries:
            ttk.Label(self.gallery_frame, text="No artworks yet. Paint something in the Painter tab!").grid(row=0, column=0)
            return
        today = date.today()
        cols = 6
        for i, e in enumerate(entries):
            cell = ttk.Frame(self.gallery_frame, padding=4, relief="groove")
            cell.grid(row=i // cols, column=i % cols, padx=4, pady=4)
            ttk.Label(cell, image=self._thumb(e.data_url, _THUMB)).grid(row=0, column=0, columnspan=3)
            pinned = self.store.is_set_for_day(e.id, today)
            ttk.Button(cell, text="★" if pinned else "☆", width=2,
                       command=lambda eid=e.id, p=pinned: self._toggle_today(eid, p)).grid(row=1, column=0)
            ttk.Button(cell, text="Export", width=6,
                       command=lambda eid=e.id: self._export_entry(eid)).grid(row=1, column=1)
            ttk.Button(cell, text="Delete", width=6,
                       command=lambda eid=e.id: self._delete_entry(eid)).grid(row=1, column=2)

    def _gallery_sort_changed(self) -> None:
        self._update_settings(gallery_sort=self.gallery_sort.get())
        self._gallery_render()

    def _toggle_today(self, entry_id: str, pinned: bool) -> None:
        today = date.today()
        if pinned:
            if messagebox.askyesno("Calendar", "Remove this work from today's calendar?"):
                self._store_call(self.store.unset_day, today)
        elif messagebox.askyesno("Calendar", "Show this work on today's calendar?"):
            self._store_call(self.store.set_day, entry_id, today)
        self._gallery_render()

    def _delete_entry(self, entry_id: str) -> None:
        if messagebox.askyesno("Gallery", "Delete this work?"):
            self._store_call(self.store.delete_entry, entry_id)
            self._gallery_render()

    def _export_entry(self, entry_id: str) -> None:
        if not self.store.settings.export_dir:
            if not messagebox.askyesno("Export", "No export folder is set. Choose one now?"):
                return
            self._choose_export_dir()
            if not self.store.settings.export_dir:
                return

        # runs on a stored payload only, never the live grid
        def worker():
            buf_out, buf_err = io.StringIO(), io.StringIO()
            msg = ""
            try:
                with redirect_stdout(buf_out), redirect_stderr(buf_err):
                    path = self.store.export_entry(entry_id)
                msg = f"Exported {path}"
            except DailyPixelError as e:
                msg = str(e)
            finally:
                text = "\n".join(t for t in (buf_out.getvalue().strip(), buf_err.getvalue().strip(), msg) if t)
                self.after(0, self._append_log, text)

        threading.Thread(target=worker, daemon=True).start()

    # ---------- Calendar ----------
    def _change_month(self, delta: int) -> None:
        self._cal_year, self._cal_month = shift_month(self._cal_year, self._cal_month, delta)
        self._calendar_render()

    def _calendar_render(self) -> None:
        for child in self.calendar_frame.winfo_children():
            child.destroy()
        self._thumbs = []
        self.month_label.configure(text=f"{self._cal_year} / {self._cal_month:02d}")
        today_key = date_key(date.today())
        for r, week in enumerate(self.store.month_grid(self._cal_year, self._cal_month)):
            for c, slot in enumerate(week):
                cell = ttk.Frame(self.calendar_frame, padding=2, relief="groove" if slot else "flat")
                cell.grid(row=r, column=c, sticky="nsew", padx=1, pady=1)
                if slot is None:
                    continue
                day, entry = slot
                text = f"{day.day}" + (" (today)" if date_key(day) == today_key else "")
                ttk.Label(cell, text=text).grid(row=0, column=0, sticky="w")
                if entry is not None:
                    ttk.Label(cell, image=self._thumb(entry.data_url, _DAY_THUMB)).grid(row=1, column=0)

    # ---------- Settings ----------
    def _apply_theme(self) -> None:
        self.canvas.configure(bg=_THEME_BG.get(self.theme.get(), _THEME_BG["dark"]))

    def _theme_changed(self) -> None:
        self._update_settings(theme=self.theme.get())
        self._apply_theme()

    def _choose_export_dir(self) -> None:
        p = filedialog.askdirectory(title="Choose export folder")
        if p:
            self.export_dir.set(p)
            self._update_settings(export_dir=str(Path(p)))

    def _update_settings(self, **changes) -> None:
        self._store_call(self.store.update_settings, **changes)

    # ---------- Generic helpers ----------
    def _store_call(self, fn: Callable, *args, **kwargs):
        """Run a store operation, routing its output and errors to the log."""
        buf_out, buf_err = io.StringIO(), io.StringIO()
        try:
            with redirect_stdout(buf_out), redirect_stderr(buf_err):
                return fn(*args, **kwargs)
        except DailyPixelError as e:
            self._append_log(str(e))
            messagebox.showerror("Daily Pixel Art", str(e))
            return None
        finally:
            for text in (buf_out.getvalue(), buf_err.getvalue()):
                if text.strip():
                    self._append_log(text.strip())

    def _append_log(self, text: str) -> None:
        self.log.insert("end", text if text.endswith("\n") else text + "\n")
        self.log.see("end")


def main(data_dir: Optional[Path] = None, verbose: bool = False) -> None:
    root = tk.Tk()
    try:
        store = Store(data_dir, verbose=verbose)
    except DailyPixelError as e:
        messagebox.showerror("Daily Pixel Art", str(e))
        root.destroy()
        return
    try:
        style = ttk.Style()
        if "clam" in style.theme_names():
            style.theme_use("clam")
    except tk.TclError:
        pass
    App(root, store)
    root.mainloop()


if __name__ == "__main__":
    main()
