from __future__ import annotations

from typing import Collection, List, Optional, Tuple

from .grid import GRID_SIZES, PixelGrid, Snapshot
from .history import HistoryStack
from .ops import Cell
from .tools import ToolController, ToolKind, ToolState
from .view import ViewState, ViewTransform


# pointer buttons, numbered like DOM MouseEvent.button
LEFT = 0
MIDDLE = 1
RIGHT = 2

DEFAULT_GRID_SIZE = 16


class Engine:
    """
    One open drawing document: grid, undo history, tool state and view.

    Shells forward raw pointer/wheel events here and re-render the cells
    returned by the pointer handlers (an empty list means nothing changed).
    """

    def __init__(
        self,
        size: int = DEFAULT_GRID_SIZE,
        tool_state: Optional[ToolState] = None,
        view_state: Optional[ViewState] = None,
    ) -> None:
        self.tool_state = tool_state or ToolState()
        self.view = ViewTransform(view_state)
        self.history = HistoryStack()
        self.grid = PixelGrid(size)
        self.tools = ToolController(self.grid, self.history, self.tool_state)
        self._container: Optional[Tuple[float, float]] = None

    @property
    def size(self) -> int:
        return self.grid.size

    @property
    def is_drawing(self) -> bool:
        return self.tools.is_drawing

    @property
    def is_panning(self) -> bool:
        return self.view.state.is_panning

    # ---------- pointer input ----------
    def on_pointer_down(
        self,
        screen_x: float,
        screen_y: float,
        button: int = LEFT,
        modifiers: Collection[str] = (),
    ) -> List[Cell]:
        if button == MIDDLE or (button == LEFT and "space" in modifiers):
            self.view.begin_pan(screen_x, screen_y)
            return []
        if button not in (LEFT, RIGHT):
            return []
        gx, gy = self.view.screen_to_grid(screen_x, screen_y)
        return self.tools.begin(gx, gy, erase=(button == RIGHT))

    def on_pointer_move(
        self,
        screen_x: float,
        screen_y: float,
        button: int = LEFT,
        modifiers: Collection[str] = (),
    ) -> List[Cell]:
        if self.view.drag_pan(screen_x, screen_y):
            return []
        if not self.tools.is_drawing:
            return []
        gx, gy = self.view.screen_to_grid(screen_x, screen_y)
        return self.tools.drag(gx, gy)

    def on_pointer_up(
        self,
        screen_x: float = 0.0,
        screen_y: float = 0.0,
        button: int = LEFT,
        modifiers: Collection[str] = (),
    ) -> List[Cell]:
        self.tools.end()
        self.view.end_pan()
        return []

    def on_wheel(self, screen_x: float, screen_y: float, direction: int) -> float:
        return self.view.zoom_at(screen_x, screen_y, direction)

    # ---------- tool state ----------
    def select_tool(self, kind: ToolKind | str) -> ToolKind:
        return self.tools.select(kind)

    def set_brush_size(self, size: int) -> None:
        self.tools.set_brush_size(size)

    def set_active_color(self, color: str) -> str:
        return self.tools.set_color(color)

    # ---------- document ----------
    def resize(self, size: int, container: Optional[Tuple[float, float]] = None) -> None:
        """Replace the grid with a blank one of the new size and drop history."""
        if size not in GRID_SIZES:
            raise ValueError(f"grid size must be one of {GRID_SIZES}, got {size!r}")
        self.tools.end()
        self.view.end_pan()
        self.grid = PixelGrid(size)
        self.history.clear()
        self.tools = ToolController(self.grid, self.history, self.tool_state)
        container = container or self._container
        if container is not None:
            self.fit(*container)

    def fit(self, container_w: float, container_h: float) -> None:
        self._container = (container_w, container_h)
        self.view.fit_to_container(container_w, container_h, self.grid.size)

    def clear(self) -> bool:
        """Erase every cell as one undoable step. False if already blank."""
        if not any(True for _ in self.grid.painted()):
            return False
        self.history.push(self.grid)
        return self.grid.clear()

    def undo(self) -> bool:
        self.tools.end()
        return self.history.undo(self.grid)

    def export_snapshot(self) -> Snapshot:
        return self.grid.snapshot()
