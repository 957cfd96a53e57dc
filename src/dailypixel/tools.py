from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .formatting import normalize_color
from .grid import EMPTY, Color, PixelGrid
from .history import HistoryStack
from .ops import Cell, brush_cells, flood_fill, paint_cells


BRUSH_SIZES = (1, 2, 3, 4, 5)
DEFAULT_COLOR = "#000000"

PALETTE_COLORS = (
    "#000000",  # black
    "#ffffff",  # white
    "#ff0000",  # red
    "#00ff00",  # green
    "#0000ff",  # blue
    "#ffff00",  # yellow
    "#00ffff",  # cyan
    "#ff00ff",  # magenta
    "#808080",  # gray
    "#ff8000",  # orange
    "#800080",  # purple
    "#008080",  # teal
)


class ToolKind(Enum):
    PEN = "pen"
    ERASER = "eraser"
    FILL = "fill"
    EYEDROPPER = "eyedropper"

    @property
    def continuous(self) -> bool:
        """Drag tools paint on every move; the others act once per click."""
        return self in (ToolKind.PEN, ToolKind.ERASER)

    @classmethod
    def parse(cls, value: "ToolKind | str") -> "ToolKind":
        if isinstance(value, ToolKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(k.value for k in cls)
            raise ValueError(f"unknown tool {value!r} (expected one of: {names})") from None


@dataclass
class ToolState:
    kind: ToolKind = ToolKind.PEN
    brush_size: int = 1
    color: str = DEFAULT_COLOR

    def __post_init__(self) -> None:
        if self.brush_size < 1:
            raise ValueError("brush size must be >= 1")
        self.color = normalize_color(self.color)


class ToolController:
    """
    Turns one pointer gesture (begin -> drag* -> end) on grid coordinates
    into grid edits according to the active tool.

    Pen/Eraser record one history entry when the stroke starts; Fill records
    one per in-bounds click; Eyedropper never records.
    """

    def __init__(self, grid: PixelGrid, history: HistoryStack, state: ToolState) -> None:
        self.grid = grid
        self.history = history
        self.state = state
        self.is_drawing = False
        self._erase = False

    def select(self, kind: ToolKind | str) -> ToolKind:
        self.end()
        self.state.kind = ToolKind.parse(kind)
        return self.state.kind

    def set_brush_size(self, size: int) -> None:
        size = int(size)
        if size < 1:
            raise ValueError("brush size must be >= 1")
        self.state.brush_size = size

    def set_color(self, color: str) -> str:
        self.state.color = normalize_color(color)
        return self.state.color

    def _stroke_color(self) -> Color:
        if self.state.kind is ToolKind.ERASER or self._erase:
            return EMPTY
        return self.state.color

    # ---------- gesture ----------
    def begin(self, gx: int, gy: int, erase: bool = False) -> List[Cell]:
        """
        Start a gesture at grid cell (gx, gy). `erase` makes Pen and Fill
        write EMPTY instead of the active color.
        """
        kind = self.state.kind
        self._erase = erase

        if kind is ToolKind.EYEDROPPER:
            self.pick(gx, gy)
            return []

        if kind is ToolKind.FILL:
            if not self.grid.in_bounds(gx, gy):
                return []
            self.history.push(self.grid)
            target = self.grid.get(gx, gy)
            return flood_fill(self.grid, gx, gy, target, self._stroke_color())

        # pen / eraser
        self.is_drawing = True
        self.history.push(self.grid)
        return self._dab(gx, gy)

    def drag(self, gx: int, gy: int) -> List[Cell]:
        if not self.is_drawing:
            return []
        return self._dab(gx, gy)

    def end(self) -> None:
        self.is_drawing = False
        self._erase = False

    def _dab(self, gx: int, gy: int) -> List[Cell]:
        cells = brush_cells(gx, gy, self.state.brush_size)
        return paint_cells(self.grid, cells, self._stroke_color())

    def pick(self, gx: int, gy: int) -> Optional[str]:
        """Eyedropper: adopt the cell's color if it is on-grid and painted."""
        color = self.grid.get(gx, gy)
        if color is EMPTY:
            return None
        self.state.color = color
        return color
