from __future__ import annotations

import base64
import calendar
import io
import json
import os
import time
from dataclasses import asdict, dataclass, replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image

from .formatting import color_to_rgb, date_key, export_filename, parse_date_key
from .grid import EMPTY, Snapshot


UPSCALE_SIZE = 1024
BACKGROUND = (255, 255, 255)

THEMES = ("dark", "light")
EXPORT_SIZES = ("upscaled", "original")
GALLERY_SORTS = ("newest", "oldest")

GALLERY_FILE = "gallery.json"
CALENDAR_FILE = "calendar.json"
SETTINGS_FILE = "settings.json"

ENV_HOME = "DAILYPIXEL_HOME"


class DailyPixelError(Exception):
    """User-facing one-line errors."""


@dataclass(frozen=True)
class GalleryEntry:
    id: str
    data_url: str
    created_at: str  # ISO-8601, UTC

    def to_json(self) -> dict:
        return {"id": self.id, "dataUrl": self.data_url, "createdAt": self.created_at}

    @classmethod
    def from_json(cls, obj: dict) -> "GalleryEntry":
        try:
            return cls(id=str(obj["id"]), data_url=obj["dataUrl"], created_at=obj["createdAt"])
        except (KeyError, TypeError) as exc:
            raise DailyPixelError(f"Corrupt gallery entry: {obj!r}") from exc


@dataclass(frozen=True)
class Settings:
    theme: str = "dark"
    export_size: str = "upscaled"
    gallery_sort: str = "newest"
    export_dir: Optional[str] = None

    def __post_init__(self) -> None:
        if self.theme not in THEMES:
            raise DailyPixelError(f"Unknown theme: {self.theme!r}")
        if self.export_size not in EXPORT_SIZES:
            raise DailyPixelError(f"Unknown export size: {self.export_size!r}")
        if self.gallery_sort not in GALLERY_SORTS:
            raise DailyPixelError(f"Unknown gallery sort: {self.gallery_sort!r}")


def default_data_dir() -> Path:
    env = os.environ.get(ENV_HOME, "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / ".dailypixel"


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC 'YYYY-MM-DDTHH:MM:SS.sssZ'; naive datetimes are taken as local time."""
    utc = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


# ---------- raster ----------
def rasterize(snap: Snapshot, scale: int = 1) -> Image.Image:
    """
    Render a cell snapshot as an RGB image. Empty cells become the white
    background so saved art has no transparency.
    """
    n = len(snap)
    if n == 0:
        raise DailyPixelError("Cannot rasterize an empty grid")
    img = Image.new("RGB", (n, n), BACKGROUND)
    px = img.load()
    for y, row in enumerate(snap):
        for x, c in enumerate(row):
            if c is not EMPTY:
                px[x, y] = color_to_rgb(c)
    if scale != 1:
        img = img.resize((n * scale, n * scale), Image.NEAREST)
    return img


def upscale(img: Image.Image, size: int = UPSCALE_SIZE) -> Image.Image:
    # nearest-neighbour keeps hard pixel edges
    return img.resize((size, size), Image.NEAREST)


def to_data_url(img: Image.Image) -> str:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def image_from_data_url(data_url: str) -> Image.Image:
    head, sep, payload = data_url.partition(",")
    if not sep or not head.startswith("data:image/") or ";base64" not in head:
        raise DailyPixelError("Not a base64 image data URL")
    try:
        img = Image.open(io.BytesIO(base64.b64decode(payload)))
        img.load()
    except (ValueError, OSError) as exc:
        raise DailyPixelError(f"Unreadable image payload: {exc}") from exc
    return img


def export_image(
    data_url: str,
    out_dir: Path,
    export_size: str = "upscaled",
    now: Optional[datetime] = None,
    verbose: bool = False,
) -> Path:
    if export_size not in EXPORT_SIZES:
        raise DailyPixelError(f"Unknown export size: {export_size!r}")
    img = image_from_data_url(data_url)
    if export_size == "upscaled":
        img = upscale(img)
    out_path = out_dir / export_filename(now)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        img.save(out_path, format="PNG")
    except OSError as exc:
        raise DailyPixelError(f"Export failed: {out_path} ({exc})") from exc
    if verbose:
        print(f"Wrote {out_path} ({img.width}x{img.height})")
    return out_path


# ---------- calendar helpers ----------
def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def month_weeks(year: int, month: int) -> List[List[Optional[date]]]:
    """Sunday-first weeks of the month; days outside it are None."""
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    weeks: List[List[Optional[date]]] = []
    for week in cal.monthdatescalendar(year, month):
        weeks.append([d if d.month == month else None for d in week])
    return weeks


# ---------- store ----------
class Store:
    """
    Gallery, calendar and settings kept as JSON files in one data directory.

    Entries are written through on every change. A failed write raises
    DailyPixelError and leaves the in-memory state as it was before the call.
    """

    def __init__(self, data_dir: Optional[Path] = None, verbose: bool = False) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self.verbose = verbose
        if self.data_dir.exists() and not self.data_dir.is_dir():
            raise DailyPixelError(f"Not a folder: {self.data_dir}")
        self._gallery: List[GalleryEntry] = [
            GalleryEntry.from_json(o) for o in self._read(GALLERY_FILE, [])
        ]
        self._calendar: Dict[str, str] = {
            str(k): str(v) for k, v in self._read(CALENDAR_FILE, {}).items()
        }
        raw_settings = self._read(SETTINGS_FILE, {})
        try:
            self._settings = Settings(**raw_settings)
        except TypeError as exc:
            raise DailyPixelError(f"Corrupt {SETTINGS_FILE}: {exc}") from exc

    # --- io ---
    def _read(self, name: str, default):
        path = self.data_dir / name
        if not path.is_file():
            return default
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DailyPixelError(f"Cannot read {path}: {exc}") from exc
        if not isinstance(data, type(default)):
            raise DailyPixelError(f"Corrupt {path}: expected {type(default).__name__}")
        return data

    def _write_many(self, files: List[Tuple[str, object]]) -> None:
        """
        Stage every file as .tmp before replacing any of them, so a failed
        stage leaves all files on disk untouched.
        """
        staged: List[Tuple[Path, Path]] = []
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for name, data in files:
                path = self.data_dir / name
                tmp = path.with_suffix(".tmp")
                tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
                staged.append((tmp, path))
            for tmp, path in staged:
                tmp.replace(path)
        except OSError as exc:
            names = ", ".join(name for name, _ in files)
            raise DailyPixelError(f"Cannot write {names} in {self.data_dir}: {exc}") from exc
        if self.verbose:
            for _, path in staged:
                print(f"Wrote {path}")

    def _commit(
        self,
        gallery: Optional[List[GalleryEntry]] = None,
        cal: Optional[Dict[str, str]] = None,
    ) -> None:
        # calendar first: a half-applied delete must never leave a dangling id
        files: List[Tuple[str, object]] = []
        if cal is not None:
            files.append((CALENDAR_FILE, cal))
        if gallery is not None:
            files.append((GALLERY_FILE, [e.to_json() for e in gallery]))
        self._write_many(files)
        if cal is not None:
            self._calendar = cal
        if gallery is not None:
            self._gallery = gallery

    # --- gallery ---
    def _new_id(self) -> str:
        taken = {e.id for e in self._gallery}
        n = int(time.time() * 1000)
        while str(n) in taken:
            n += 1
        return str(n)

    def save_artwork(self, snap: Snapshot, now: Optional[datetime] = None) -> GalleryEntry:
        """Rasterize a grid snapshot and put it at the front of the gallery."""
        created = iso_timestamp(now)
        entry = GalleryEntry(id=self._new_id(), data_url=to_data_url(rasterize(snap)), created_at=created)
        self._commit(gallery=[entry] + self._gallery)
        if self.verbose:
            print(f"Saved artwork {entry.id} ({len(snap)}x{len(snap)})")
        return entry

    def gallery(self, sort: Optional[str] = None) -> List[GalleryEntry]:
        sort = sort or self._settings.gallery_sort
        if sort not in GALLERY_SORTS:
            raise DailyPixelError(f"Unknown gallery sort: {sort!r}")
        items = list(self._gallery)
        if sort == "oldest":
            items.reverse()
        return items

    def get_entry(self, entry_id: str) -> GalleryEntry:
        for e in self._gallery:
            if e.id == entry_id:
                return e
        raise DailyPixelError(f"No gallery entry with id {entry_id}")

    def delete_entry(self, entry_id: str) -> None:
        """Remove an entry and any calendar days that show it."""
        self.get_entry(entry_id)
        gallery = [e for e in self._gallery if e.id != entry_id]
        cal = {k: v for k, v in self._calendar.items() if v != entry_id}
        self._commit(gallery=gallery, cal=cal if cal != self._calendar else None)
        if self.verbose:
            print(f"Deleted artwork {entry_id}")

    def export_entry(
        self,
        entry_id: str,
        out_dir: Optional[Path] = None,
        export_size: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Path:
        entry = self.get_entry(entry_id)
        target = out_dir or (Path(self._settings.export_dir) if self._settings.export_dir else None)
        if target is None:
            raise DailyPixelError("No export folder set; pass --out-dir or set export_dir")
        return export_image(
            entry.data_url,
            target,
            export_size=export_size or self._settings.export_size,
            now=now,
            verbose=self.verbose,
        )

    # --- calendar ---
    @property
    def calendar(self) -> Dict[str, str]:
        return dict(self._calendar)

    @staticmethod
    def _key(day: date | str) -> str:
        if isinstance(day, date):
            return date_key(day)
        try:
            return date_key(parse_date_key(day))
        except ValueError as exc:
            raise DailyPixelError(str(exc)) from exc

    def set_day(self, entry_id: str, day: date | str) -> str:
        self.get_entry(entry_id)
        key = self._key(day)
        cal = dict(self._calendar)
        cal[key] = entry_id
        self._commit(cal=cal)
        if self.verbose:
            print(f"Calendar {key} -> {entry_id}")
        return key

    def unset_day(self, day: date | str) -> bool:
        key = self._key(day)
        if key not in self._calendar:
            return False
        cal = dict(self._calendar)
        del cal[key]
        self._commit(cal=cal)
        if self.verbose:
            print(f"Calendar {key} cleared")
        return True

    def entry_for_day(self, day: date | str) -> Optional[GalleryEntry]:
        entry_id = self._calendar.get(self._key(day))
        if entry_id is None:
            return None
        for e in self._gallery:
            if e.id == entry_id:
                return e
        return None

    def is_set_for_day(self, entry_id: str, day: date | str) -> bool:
        return self._calendar.get(self._key(day)) == entry_id

    def month_grid(
        self, year: int, month: int
    ) -> List[List[Optional[Tuple[date, Optional[GalleryEntry]]]]]:
        """Sunday-first weeks; each day carries the entry shown on it, if any."""
        return [
            [None if d is None else (d, self.entry_for_day(d)) for d in week]
            for week in month_weeks(year, month)
        ]

    # --- settings ---
    @property
    def settings(self) -> Settings:
        return self._settings

    def update_settings(self, **changes) -> Settings:
        try:
            new = replace(self._settings, **changes)
        except TypeError as exc:
            raise DailyPixelError(f"Unknown setting: {exc}") from exc
        self._write_many([(SETTINGS_FILE, asdict(new))])
        self._settings = new
        return new

