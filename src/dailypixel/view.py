from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


MIN_SCALE = 0.1
MAX_SCALE = 50.0
ZOOM_STEP = 0.1  # +/- 10% per wheel notch
FIT_PADDING = 40


@dataclass
class ViewState:
    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    # only meaningful while a pan gesture is active
    is_panning: bool = False
    last_x: float = 0.0
    last_y: float = 0.0


def _clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(scale, MAX_SCALE))


class ViewTransform:
    """
    Screen <-> grid mapping: screen = grid * scale + pan.

    Panning is unbounded; the grid may be moved fully off-screen.
    """

    def __init__(self, state: ViewState | None = None) -> None:
        self.state = state or ViewState()

    @property
    def scale(self) -> float:
        return self.state.scale

    def screen_to_grid(self, px: float, py: float) -> Tuple[int, int]:
        s = self.state
        return (
            math.floor((px - s.pan_x) / s.scale),
            math.floor((py - s.pan_y) / s.scale),
        )

    def grid_to_screen(self, gx: float, gy: float) -> Tuple[float, float]:
        s = self.state
        return gx * s.scale + s.pan_x, gy * s.scale + s.pan_y

    def zoom_at(self, px: float, py: float, direction: int) -> float:
        """
        Zoom one step in (direction > 0) or out (direction < 0), keeping
        the grid point under (px, py) fixed on screen. Returns the new scale.
        """
        s = self.state
        if direction == 0:
            return s.scale
        factor = 1 + (ZOOM_STEP if direction > 0 else -ZOOM_STEP)
        new_scale = _clamp_scale(s.scale * factor)

        # grid point under the pointer at the old scale
        gx = (px - s.pan_x) / s.scale
        gy = (py - s.pan_y) / s.scale

        s.pan_x = px - gx * new_scale
        s.pan_y = py - gy * new_scale
        s.scale = new_scale
        return new_scale

    def fit_to_container(
        self,
        container_w: float,
        container_h: float,
        grid_n: int,
        padding: float = FIT_PADDING,
    ) -> None:
        """Largest integer scale that fits, within [1, MAX_SCALE]; grid centered."""
        s = self.state
        scale = math.floor(
            min((container_w - padding) / grid_n, (container_h - padding) / grid_n)
        )
        s.scale = max(1, min(scale, int(MAX_SCALE)))
        displayed = grid_n * s.scale
        s.pan_x = (container_w - displayed) / 2
        s.pan_y = (container_h - displayed) / 2

    def pan(self, dx: float, dy: float) -> None:
        self.state.pan_x += dx
        self.state.pan_y += dy

    # ---------- pan gesture ----------
    def begin_pan(self, x: float, y: float) -> None:
        s = self.state
        s.is_panning = True
        s.last_x = x
        s.last_y = y

    def drag_pan(self, x: float, y: float) -> bool:
        s = self.state
        if not s.is_panning:
            return False
        self.pan(x - s.last_x, y - s.last_y)
        s.last_x = x
        s.last_y = y
        return True

    def end_pan(self) -> None:
        self.state.is_panning = False
